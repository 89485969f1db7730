"""
Replay of cached snapshots.
"""

from dataclasses import dataclass, field

from scoutscrape.cache.snapshot_cache import SnapshotCache
from scoutscrape.core.errors import VersionMismatchError
from scoutscrape.core.models import Snapshot
from scoutscrape.ingest.decoder import SnapshotDecoder
from scoutscrape.observability import metrics
from scoutscrape.observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReplayResult:
    snapshots: list[Snapshot] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def replay_from_cache(cache: SnapshotCache, decoder: SnapshotDecoder) -> ReplayResult:
    """
    Decode every cached payload.

    A payload that cannot be decoded aborts the replay. A payload with an
    unknown version is logged and skipped, and the rest are still processed.

    Args:
        cache: Snapshot cache to enumerate
        decoder: Decoder holding the expected version

    Returns:
        ReplayResult with the usable snapshots and the skipped file names

    Raises:
        DecodeError: If any entry is malformed
        CacheError: If an entry cannot be read
    """
    result = ReplayResult()

    for entry in cache.list_entries():
        with entry.open() as stream:
            snapshot = decoder.decode(stream, origin=entry.name)
        try:
            decoder.check_version(snapshot)
        except VersionMismatchError as e:
            logger.warning(
                f"Skipping cached snapshot: {e}",
                extra={"cache_file": entry.name, "version": e.found},
            )
            metrics.increment_counter(metrics.snapshots_skipped_total, reason="version_mismatch")
            result.skipped.append(entry.name)
            continue
        result.snapshots.append(snapshot)

    logger.info(
        f"replaying {len(result.snapshots)} summaries",
        extra={"snapshots": len(result.snapshots), "skipped": len(result.skipped)},
    )
    return result
