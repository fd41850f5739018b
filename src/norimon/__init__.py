"""norimon: diversity statistics for Norwegian insect monitoring data."""

__version__ = "0.1.0"
