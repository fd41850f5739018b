"""Explicit database handles.

Every data function takes an :class:`~sqlalchemy.engine.Engine` argument;
there is no module-level connection.

Usage:
    from norimon.data import DatabaseConfig, database_session, obs_from_db

    with database_session(DatabaseConfig.from_env()) as engine:
        beetles = obs_from_db(engine, subset_orders="Coleoptera")
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError

from norimon.data.config import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseConnectionError(RuntimeError):
    """The database handle is missing or cannot reach the server."""


def connect_to_database(config: DatabaseConfig, **engine_kwargs: Any) -> Engine:
    """Create an engine for *config*. No connection is opened yet."""
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(config.url(), **engine_kwargs)
    logger.info("Created engine for %s@%s/%s", config.user, config.host, config.dbname)
    return engine


def check_connection(engine: Engine | None) -> None:
    """Fail fast unless *engine* can run a trivial query.

    Raises:
        DatabaseConnectionError: If *engine* is None or the query fails.
    """
    if engine is None:
        raise DatabaseConnectionError(
            "No database connection; create one with connect_to_database()."
        )
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except DBAPIError as exc:
        raise DatabaseConnectionError(f"Database unreachable: {exc}") from exc


@contextmanager
def database_session(config: DatabaseConfig, **engine_kwargs: Any) -> Iterator[Engine]:
    """Yield a connected engine and dispose of it on exit."""
    engine = connect_to_database(config, **engine_kwargs)
    try:
        check_connection(engine)
        yield engine
    finally:
        engine.dispose()
        logger.debug("Disposed engine for %s", config.host)
