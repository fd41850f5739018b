"""Exceptions raised by the bootstrap statistic algebra."""

from __future__ import annotations


class BootStatError(Exception):
    """Base class for all bootstrap statistic errors."""


class InputShapeError(BootStatError, ValueError):
    """Two raw-value tables cannot be combined (columns or lengths differ)."""


class MalformedInputError(InputShapeError):
    """A raw-value table lacks the ``boot_values`` column."""


class UnsupportedOperandError(BootStatError, TypeError):
    """Operand is neither a scalar nor a BootStat."""


class ScalarArityError(BootStatError, TypeError):
    """Scalar operand holds more than one element."""


class EmptyGroupError(BootStatError, ValueError):
    """A grouping key has no bootstrap draws."""
