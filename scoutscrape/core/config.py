"""
Resolved run configuration.

The CLI builds one ScoutConfig at startup and passes it explicitly to the
pipeline; nothing in the core reads flags or environment variables itself.
"""

import os
from pathlib import Path

from psycopg import ProgrammingError
from psycopg.conninfo import conninfo_to_dict, make_conninfo
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from scoutscrape.core.constants import APP_NAME, FEED_URL
from scoutscrape.core.errors import ConfigError


def default_cache_dir() -> Path:
    """
    Per-user cache directory for snapshot payloads.

    Honours XDG_CACHE_HOME, falling back to ~/.cache.
    """
    base = os.getenv("XDG_CACHE_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".cache" / APP_NAME


class ScoutConfig(BaseModel):
    """
    Immutable configuration for one invocation.

    Attributes:
        cache_dir: Directory holding one JSON file per live fetch
        replay: Re-ingest every cached snapshot instead of fetching
        db_name: Database name
        db_user: Database user
        db_password: Database password (required)
        db_host: Database host
        db_port: Database port
        db_options: Space separated extra libpq options (e.g. sslmode=require)
        feed_url: Scout API endpoint
        http_timeout: Connect/read timeout for the feed request in seconds
        metrics_file: Optional Prometheus textfile to write after the run
    """

    model_config = ConfigDict(frozen=True)

    cache_dir: Path = Field(default_factory=default_cache_dir)
    replay: bool = False
    db_name: str = "tsdb"
    db_user: str = "tsdbadmin"
    db_password: str = Field(..., min_length=1)
    db_host: str = "127.0.0.1"
    db_port: int = Field(30000, ge=1, le=65535)
    db_options: str = "sslmode=require"
    feed_url: str = FEED_URL
    http_timeout: float = Field(60.0, gt=0)
    metrics_file: Path | None = None

    @field_validator("db_options")
    @classmethod
    def check_db_options(cls, v: str) -> str:
        try:
            conninfo_to_dict(v)
        except ProgrammingError as e:
            raise ValueError(f"invalid connection options: {e}") from e
        return v

    @field_validator("feed_url")
    @classmethod
    def check_feed_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"feed URL must be http(s): {v}")
        return v

    def conninfo(self) -> str:
        """
        Build a libpq connection string from the non-empty settings.

        Every value is quoted as libpq requires. Keys repeated in db_options
        take precedence, as they would when appended to the string.

        Returns:
            Space separated key=value pairs
        """
        settings = {
            "host": self.db_host,
            "port": self.db_port,
            "user": self.db_user,
            "password": self.db_password,
            "dbname": self.db_name,
        }
        base = make_conninfo(**{key: value for key, value in settings.items() if value})
        return make_conninfo(base, **conninfo_to_dict(self.db_options))

    def redacted(self) -> dict:
        """Settings safe to log."""
        data = self.model_dump(mode="json")
        data["db_password"] = "***"
        return data


def load_config(**values) -> ScoutConfig:
    """
    Validate raw settings into a ScoutConfig.

    Raises:
        ConfigError: If a value is missing or invalid
    """
    try:
        return ScoutConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"invalid configuration: {problems}") from e
