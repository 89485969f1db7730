"""
Data models for Scout snapshots and ingestion results.
"""

from .hazard_record import HazardRecord
from .ingest_result import IngestResult, RunOutcome
from .snapshot import Signature, Snapshot, SnapshotEnvelope

__all__ = [
    "HazardRecord",
    "Snapshot",
    "SnapshotEnvelope",
    "Signature",
    "IngestResult",
    "RunOutcome",
]
