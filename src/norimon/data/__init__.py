"""Data access: database handles, observation queries and the region map.

Usage:
    from norimon.data import DatabaseConfig, database_session, get_map, obs_from_db

    with database_session(DatabaseConfig.from_env()) as engine:
        obs = obs_from_db(engine, agg_level="region_habitat_year")
        norway = get_map(engine, region_subset=["Østlandet", "Trøndelag"])
"""

from norimon.data.config import DatabaseConfig
from norimon.data.connection import (
    DatabaseConnectionError,
    check_connection,
    connect_to_database,
    database_session,
)
from norimon.data.models import (
    AggLevel,
    Dataset,
    IdType,
    ObservationQuery,
    Region,
    TrapType,
)
from norimon.data.observations import (
    aggregate_observations,
    build_observation_query,
    obs_from_db,
)
from norimon.data.regions import REGION_DEFINITION, attach_regions, get_map

__all__ = [
    "AggLevel",
    "DatabaseConfig",
    "DatabaseConnectionError",
    "Dataset",
    "IdType",
    "ObservationQuery",
    "REGION_DEFINITION",
    "Region",
    "TrapType",
    "aggregate_observations",
    "attach_regions",
    "build_observation_query",
    "check_connection",
    "connect_to_database",
    "database_session",
    "get_map",
    "obs_from_db",
]
