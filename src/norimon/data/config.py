"""Database connection settings.

Credentials come from the environment, never from source:

    NORIMON_DB_HOST      (default: localhost)
    NORIMON_DB_PORT      (default: 5432)
    NORIMON_DB_NAME      (default: insect_monitoring)
    NORIMON_DB_USER      (required)
    NORIMON_DB_PASSWORD  (required)
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, SecretStr
from sqlalchemy.engine import URL

ENV_PREFIX = "NORIMON_DB_"


class DatabaseConfig(BaseModel):
    """Connection parameters for the insect monitoring PostgreSQL database."""

    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    dbname: str = "insect_monitoring"
    user: str
    password: SecretStr
    driver: str = Field(
        default="postgresql+psycopg2",
        description="SQLAlchemy dialect+driver name",
    )

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
    ) -> DatabaseConfig:
        """Build a config from ``{prefix}HOST``, ``{prefix}USER`` etc.

        Raises:
            ValueError: If the user or password variable is unset.
        """
        env = os.environ if environ is None else environ
        missing = [f"{prefix}{key}" for key in ("USER", "PASSWORD") if not env.get(f"{prefix}{key}")]
        if missing:
            raise ValueError(f"Missing database credentials: set {', '.join(missing)}.")

        values: dict[str, str] = {
            "user": env[f"{prefix}USER"],
            "password": env[f"{prefix}PASSWORD"],
        }
        for key, field in (("HOST", "host"), ("PORT", "port"), ("NAME", "dbname")):
            if env.get(f"{prefix}{key}"):
                values[field] = env[f"{prefix}{key}"]
        return cls(**values)

    def url(self) -> URL:
        """SQLAlchemy URL for this config."""
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password.get_secret_value(),
            host=self.host,
            port=self.port,
            database=self.dbname,
        )
