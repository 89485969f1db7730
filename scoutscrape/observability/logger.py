"""
Structured logging for scoutscrape

Modules log through get_logger(__name__). The CLI calls setup_logger once;
JSON lines go to stdout for cron/container log shippers, text is for
running by hand.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Iterator

from pythonjsonlogger import jsonlogger

from scoutscrape import __version__

ROOT_LOGGER_NAME = "scoutscrape"

JSON_FIELDS = ("timestamp", "level", "logger", "module", "function", "message")
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    One JSON object per line with level, origin and app version
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", None)
        if not log_record["timestamp"]:
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["app_version"] = __version__


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        fmt = " ".join(f"%({field})s" for field in JSON_FIELDS)
        return CustomJsonFormatter(fmt=fmt, datefmt="%Y-%m-%dT%H:%M:%S%z")
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Configure the package logger with a single stdout handler

    Child loggers from get_logger() propagate here, so one call covers the
    whole package. Calling it again replaces the handler.

    Args:
        name: Logger name
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (env LOG_LEVEL)
        format_type: "json" or "text" (env LOG_FORMAT)

    Returns:
        The configured logger
    """
    log_level = _resolve_level(level)
    format_type = format_type or os.getenv("LOG_FORMAT") or "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(_build_formatter(format_type))

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Logger nested under the package root."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


@contextmanager
def log_operation(
    operation_name: str, logger: logging.Logger | None = None, **extra_fields
) -> Iterator[None]:
    """
    Log start (debug), completion (info) or failure (error) with duration

    Exceptions are logged and re-raised.

    Usage:
        with log_operation("write snapshots", logger=logger, snapshots=3):
            ...
    """
    logger = logger or get_logger()
    context = {"operation": operation_name, **extra_fields}
    started = time.monotonic()
    logger.debug(f"Starting: {operation_name}", extra=context)

    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed: {operation_name}",
            extra={
                **context,
                "duration_seconds": round(time.monotonic() - started, 3),
                "status": "error",
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
        )
        raise

    logger.info(
        f"Completed: {operation_name}",
        extra={**context, "duration_seconds": round(time.monotonic() - started, 3), "status": "success"},
    )
