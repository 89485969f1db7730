"""
Prometheus metrics for scoutscrape

The scraper runs as a short-lived job, so metrics live in a private registry
and are written to a node-exporter textfile at the end of a run rather than
served over HTTP.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    write_to_textfile,
)

REGISTRY = CollectorRegistry()


# =======================
# FETCH METRICS
# =======================

fetches_total = Counter(
    name="scout_fetches_total",
    documentation="Live fetch attempts against the Scout API",
    labelnames=["status"],  # status: success, failure, skipped
    registry=REGISTRY,
)

# =======================
# INGEST METRICS
# =======================

records_total = Counter(
    name="scout_records_total",
    documentation="Records offered to the store",
    labelnames=["outcome"],  # outcome: inserted, duplicate
    registry=REGISTRY,
)

snapshots_skipped_total = Counter(
    name="scout_snapshots_skipped_total",
    documentation="Cached snapshots skipped during replay",
    labelnames=["reason"],
    registry=REGISTRY,
)

ingest_duration_seconds = Histogram(
    name="scout_ingest_duration_seconds",
    documentation="Wall time of one pipeline run",
    labelnames=["mode"],  # mode: live, replay
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

last_success_timestamp_seconds = Gauge(
    name="scout_last_success_timestamp_seconds",
    documentation="Unix time of the last successful run",
    registry=REGISTRY,
)

# =======================
# ERROR METRICS
# =======================

errors_total = Counter(
    name="scout_errors_total",
    documentation="Fatal errors by type",
    labelnames=["error_type"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def write_metrics_file(path: Path) -> None:
    """
    Write the registry atomically for the node-exporter textfile collector

    Args:
        path: Target .prom file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(path), REGISTRY)


@contextmanager
def track_duration(histogram: Histogram, **labels) -> Iterator[None]:
    """
    Observe the wall time of the block, also when it raises

    Usage:
        with track_duration(ingest_duration_seconds, mode="live"):
            ...
    """
    with histogram.labels(**labels).time():
        yield


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Increment ``counter``, selecting the child by ``labels`` when given."""
    target = counter.labels(**labels) if labels else counter
    target.inc(value)


def record_ingest_result(inserted: int, duplicates: int) -> None:
    """Count inserted and duplicate records from one transaction."""
    if inserted:
        records_total.labels(outcome="inserted").inc(inserted)
    if duplicates:
        records_total.labels(outcome="duplicate").inc(duplicates)
