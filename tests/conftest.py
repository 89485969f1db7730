"""
Pytest configuration and fixtures for scoutscrape tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest

from scoutscrape.core.models import HazardRecord, Snapshot
from scoutscrape.core.nullable import Present

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """The CLI reconfigures the package logger; undo it so caplog keeps working."""
    yield
    logger = logging.getLogger("scoutscrape")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# =======================
# PAYLOAD FIXTURES
# =======================

@pytest.fixture(scope="session")
def sample_payload() -> dict:
    """Three-record Scout response with null, quoted and bare tokens"""
    with open(FIXTURES_DIR / "scout_sample.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def sample_payload_bytes(sample_payload) -> bytes:
    return json.dumps(sample_payload).encode("utf-8")


def _make_payload(records: list[dict], version: str = "1.2") -> dict:
    return {
        "signature": {"source": "NASA/JPL Scout API", "version": version},
        "count": str(len(records)),
        "data": records,
    }


def _make_record(object_name: str = "2025 AB", minute: int = 0, **fields) -> HazardRecord:
    return HazardRecord(
        object_name=object_name,
        last_run=datetime(2025, 1, 1, 0, minute, tzinfo=timezone.utc),
        **fields,
    )


def _make_snapshot(*records: HazardRecord, origin: str = "test") -> Snapshot:
    return Snapshot(version="1.2", source="NASA/JPL Scout API", records=tuple(records), origin=origin)


@pytest.fixture
def make_payload():
    """Build a Scout response around raw record objects"""
    return _make_payload


@pytest.fixture
def make_record():
    """Build a HazardRecord at 2025-01-01 00:<minute> UTC"""
    return _make_record


@pytest.fixture
def make_snapshot():
    return _make_snapshot


@pytest.fixture
def write_cache_file(tmp_path):
    """Write a payload into a cache directory under tmp_path"""
    cache_dir = tmp_path / "cache"

    def _write(name: str, payload, mtime: float | None = None) -> Path:
        cache_dir.mkdir(parents=True, exist_ok=True)
        path = cache_dir / name
        if isinstance(payload, (bytes, str)):
            data = payload.encode("utf-8") if isinstance(payload, str) else payload
            path.write_bytes(data)
        else:
            path.write_text(json.dumps(payload), encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    _write.cache_dir = cache_dir
    return _write


@pytest.fixture
def sample_record() -> HazardRecord:
    return _make_record(rating=Present(2), ca_dist=Present(0.5), ra="11:02")


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator:
    """
    Start a TimescaleDB container for integration tests

    Yields:
        PostgresContainer instance
    """
    from testcontainers.postgres import PostgresContainer

    container = PostgresContainer(
        image="timescale/timescaledb:latest-pg16",
        username="test_scout",
        password="test_password",
        dbname="test_tsdb",
    )
    try:
        container.start()
    except Exception as e:  # Docker unavailable
        pytest.skip(f"Cannot start TimescaleDB container: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture
def db_config(postgres_container, tmp_path):
    """ScoutConfig pointing at the test container"""
    from scoutscrape.core.config import ScoutConfig

    return ScoutConfig(
        cache_dir=tmp_path / "cache",
        db_name="test_tsdb",
        db_user="test_scout",
        db_password="test_password",
        db_host=postgres_container.get_container_host_ip(),
        db_port=int(postgres_container.get_exposed_port(5432)),
        db_options="sslmode=disable",
    )


@pytest.fixture
def pg_pool(db_config):
    """Open pool with an empty scout table"""
    import psycopg

    from scoutscrape.warehouse.connection import DatabaseConnectionPool

    pool = DatabaseConnectionPool.from_config(db_config)
    pool.open()
    try:
        with pool.get_connection() as conn:
            try:
                conn.execute("TRUNCATE TABLE scout")
            except psycopg.errors.UndefinedTable:
                conn.rollback()
        yield pool
    finally:
        pool.close()
