"""
Error types raised by the ingestion pipeline.

Every failure that aborts a run derives from ScoutError so the CLI can report
it in one line. Duplicate inserts are not errors: the writer counts them.
"""

from typing import Any


class ScoutError(Exception):
    """Base class for pipeline failures."""

    error_code = "SCOUT_ERROR"


class ConfigError(ScoutError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class FetchError(ScoutError):
    """Raised when the feed cannot be retrieved (transport error or non-2xx)."""

    error_code = "FETCH_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class VersionMismatchError(ScoutError):
    """Raised when a snapshot declares a schema version we do not understand."""

    error_code = "VERSION_MISMATCH"

    def __init__(self, found: str, expected: str, origin: str | None = None):
        self.found = found
        self.expected = expected
        self.origin = origin
        where = f" in {origin}" if origin else ""
        super().__init__(f"unknown version found{where}: {found!r} (expected {expected!r})")


class DecodeError(ScoutError):
    """
    Raised when a payload or one of its fields cannot be decoded.

    Field-level failures carry the field name and the raw token that was
    rejected; structural failures (bad JSON, wrong envelope) leave both unset.
    """

    error_code = "DECODE_ERROR"

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        raw_token: Any = None,
        origin: str | None = None,
    ):
        self.field_name = field_name
        self.raw_token = raw_token
        self.origin = origin
        self.message = message
        if field_name is not None:
            message = f"{field_name}: {message} (raw token {raw_token!r})"
        if origin is not None:
            message = f"failed to decode {origin}: {message}"
        super().__init__(message)


class CacheError(ScoutError):
    """Raised for filesystem failures in the snapshot cache."""

    error_code = "CACHE_ERROR"


class PersistenceError(ScoutError):
    """Raised when the database rejects schema provisioning or an insert."""

    error_code = "PERSISTENCE_ERROR"

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"{stage}: {message}")
