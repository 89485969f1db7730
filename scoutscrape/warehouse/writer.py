"""
Transactional, conflict-tolerant ingestion of decoded snapshots.
"""

from typing import Iterable

from scoutscrape.core.models import IngestResult, Snapshot
from scoutscrape.observability import metrics
from scoutscrape.observability.logger import get_logger, log_operation

from .store import HazardStore

logger = get_logger(__name__)


class IngestionWriter:
    """
    Writes every record of a set of snapshots in a single transaction.

    Duplicates of already stored natural keys are skipped silently and
    counted; any other failure rolls the whole transaction back.
    """

    def __init__(self, store: HazardStore):
        """
        Args:
            store: Backend honouring the insert-or-ignore contract
        """
        self.store = store

    def write(self, snapshots: Iterable[Snapshot]) -> IngestResult:
        """
        Persist all records of ``snapshots``.

        Args:
            snapshots: Decoded snapshots with the expected version

        Returns:
            IngestResult with candidate and inserted counts

        Raises:
            PersistenceError: If schema provisioning fails (nothing is
                written) or an insert fails (everything is rolled back)
        """
        snapshots = list(snapshots)
        self.store.ensure_schema()

        candidates = 0
        inserted = 0
        with log_operation("write snapshots", logger=logger, snapshots=len(snapshots)):
            with self.store.transaction() as txn:
                for snapshot in snapshots:
                    for record in snapshot.records:
                        candidates += 1
                        if txn.insert_ignore(record):
                            inserted += 1

        result = IngestResult(candidates=candidates, inserted=inserted)
        metrics.record_ingest_result(result.inserted, result.duplicates)
        logger.info(
            f"added {result.inserted} observations ({result.duplicates} duplicates ignored)",
            extra={"candidates": result.candidates, "inserted": result.inserted},
        )
        return result
