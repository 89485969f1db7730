"""
Command-line entry point.

Usage:
    scoutscrape --password <pw> [options]
    scoutscrape --replay [options]

Each flag falls back to an environment variable (see --help), so the job can
run from cron or a container with only SCOUT_DB_PASSWORD set.
"""

import argparse
import os
import sys
import time
from pathlib import Path

from scoutscrape.core.config import default_cache_dir, load_config
from scoutscrape.core.constants import EXIT_FAILURE, EXIT_SUCCESS, FEED_URL
from scoutscrape.core.errors import ScoutError
from scoutscrape.ingest.pipeline import IngestPipeline
from scoutscrape.observability import metrics
from scoutscrape.observability.logger import get_logger, setup_logger
from scoutscrape.warehouse.hazard_store import postgres_store

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; defaults are read from the environment."""
    env = os.environ.get

    parser = argparse.ArgumentParser(
        prog="scoutscrape",
        description="Cache JPL Scout hazard assessments and load them into TimescaleDB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch the feed (at most once every 15 minutes) and store new rows
  SCOUT_DB_PASSWORD=secret scoutscrape

  # Re-ingest every cached snapshot
  scoutscrape --replay --password secret --host db.internal --port 5432
        """
    )

    parser.add_argument(
        "--cachedir",
        default=env("SCOUT_CACHE_DIR") or str(default_cache_dir()),
        help="Directory to cache results in (env SCOUT_CACHE_DIR)"
    )
    parser.add_argument(
        "--replay",
        action="store_true",
        help="Replay data from the disk cache instead of fetching"
    )

    # Database connection arguments
    parser.add_argument(
        "--dbname",
        default=env("SCOUT_DB_NAME", "tsdb"),
        help="Name of the database to connect to (env SCOUT_DB_NAME, default: tsdb)"
    )
    parser.add_argument(
        "--user",
        default=env("SCOUT_DB_USER", "tsdbadmin"),
        help="Name of the database user (env SCOUT_DB_USER, default: tsdbadmin)"
    )
    parser.add_argument(
        "--password",
        default=env("SCOUT_DB_PASSWORD"),
        help="Password of the database user (env SCOUT_DB_PASSWORD, required)"
    )
    parser.add_argument(
        "--host",
        default=env("SCOUT_DB_HOST", "127.0.0.1"),
        help="Hostname of the server to connect to (env SCOUT_DB_HOST, default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        default=env("SCOUT_DB_PORT", "30000"),
        help="Port of the server to connect to (env SCOUT_DB_PORT, default: 30000)"
    )
    parser.add_argument(
        "--dbopts",
        default=env("SCOUT_DB_OPTS", "sslmode=require"),
        help="Space separated list of additional connection options (env SCOUT_DB_OPTS)"
    )

    # Feed arguments
    parser.add_argument(
        "--feed-url",
        default=env("SCOUT_FEED_URL", FEED_URL),
        help="Scout API endpoint (env SCOUT_FEED_URL)"
    )
    parser.add_argument(
        "--http-timeout",
        default=env("SCOUT_HTTP_TIMEOUT", "60"),
        help="Connect/read timeout in seconds for the feed request (env SCOUT_HTTP_TIMEOUT)"
    )

    # Observability arguments
    parser.add_argument(
        "--log-level",
        default=env("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level (env LOG_LEVEL, default: INFO)"
    )
    parser.add_argument(
        "--log-format",
        default=env("LOG_FORMAT", "json"),
        choices=["json", "text"],
        help="Log format (env LOG_FORMAT, default: json)"
    )
    parser.add_argument(
        "--metrics-file",
        default=env("SCOUT_METRICS_FILE"),
        help="Write Prometheus metrics to this textfile after the run (env SCOUT_METRICS_FILE)"
    )

    return parser


def _write_metrics(path: str | None) -> None:
    if not path:
        return
    try:
        metrics.write_metrics_file(Path(path))
    except OSError as e:
        logger.warning(f"Could not write metrics file {path}: {e}")


def main(argv: list[str] | None = None) -> int:
    """
    Run one fetch or replay.

    Returns:
        Process exit status: 0 on success (including "nothing to do"),
        1 on any fatal error
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logger(level=args.log_level, format_type=args.log_format)
    logger.info(f"using cache directory {args.cachedir}")

    exit_code = EXIT_SUCCESS
    try:
        config = load_config(
            cache_dir=args.cachedir,
            replay=args.replay,
            db_name=args.dbname,
            db_user=args.user,
            db_password=args.password,
            db_host=args.host,
            db_port=args.port,
            db_options=args.dbopts,
            feed_url=args.feed_url,
            http_timeout=args.http_timeout,
            metrics_file=args.metrics_file,
        )
        logger.debug("Resolved configuration", extra={"config": config.redacted()})

        with IngestPipeline.from_config(config, lambda: postgres_store(config)) as pipeline:
            outcome = pipeline.run()

        metrics.last_success_timestamp_seconds.set(time.time())
        logger.info(
            "Run finished",
            extra={"mode": outcome.mode, "status": outcome.status, "snapshots": outcome.snapshots},
        )
    except ScoutError as e:
        metrics.increment_counter(metrics.errors_total, error_type=e.error_code)
        logger.error(str(e), extra={"error_code": e.error_code})
        exit_code = EXIT_FAILURE
    except Exception as e:
        metrics.increment_counter(metrics.errors_total, error_type=type(e).__name__)
        logger.error(f"Unexpected error: {e}", exc_info=True)
        exit_code = EXIT_FAILURE
    finally:
        _write_metrics(args.metrics_file)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
