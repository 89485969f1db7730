"""
Run orchestration.

Flow: replay the cache, or (when nothing was fetched recently) fetch one live
snapshot, then write the snapshots in a single transaction.
"""

from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Callable

from scoutscrape.cache.snapshot_cache import SnapshotCache
from scoutscrape.core.config import ScoutConfig
from scoutscrape.core.constants import MIN_TIME_BETWEEN_FETCHES
from scoutscrape.core.errors import ScoutError
from scoutscrape.core.models import RunOutcome, Snapshot
from scoutscrape.ingest.decoder import SnapshotDecoder
from scoutscrape.ingest.fetcher import FeedClient, SnapshotFetcher, TimeoutConfig
from scoutscrape.ingest.replay import replay_from_cache
from scoutscrape.observability import metrics
from scoutscrape.observability.logger import get_logger
from scoutscrape.warehouse.store import HazardStore
from scoutscrape.warehouse.writer import IngestionWriter

logger = get_logger(__name__)

StoreProvider = Callable[[], AbstractContextManager[HazardStore]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestPipeline:
    """
    One invocation of the scraper.

    The database is only opened once there is something to write, so a
    run skipped by the freshness check never connects.
    """

    def __init__(
        self,
        config: ScoutConfig,
        cache: SnapshotCache,
        fetcher: SnapshotFetcher,
        store_provider: StoreProvider,
        decoder: SnapshotDecoder | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            config: Resolved configuration
            cache: Snapshot cache rooted at config.cache_dir
            fetcher: Live fetcher writing into the same cache
            store_provider: Returns a context manager yielding the store
            decoder: Decoder used for replay (defaults to the fetcher's)
            clock: Current time, timezone-aware
        """
        self.config = config
        self.cache = cache
        self.fetcher = fetcher
        self.store_provider = store_provider
        self.decoder = decoder or fetcher.decoder
        self.clock = clock

    @classmethod
    def from_config(cls, config: ScoutConfig, store_provider: StoreProvider) -> "IngestPipeline":
        cache = SnapshotCache(config.cache_dir)
        decoder = SnapshotDecoder()
        client = FeedClient(timeout=TimeoutConfig(connect=config.http_timeout, read=config.http_timeout))
        fetcher = SnapshotFetcher(client, cache, decoder, url=config.feed_url)
        return cls(config, cache, fetcher, store_provider, decoder=decoder)

    def close(self) -> None:
        self.fetcher.client.close()

    def __enter__(self) -> "IngestPipeline":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def run(self) -> RunOutcome:
        """
        Execute the run selected by ``config.replay``.

        Returns:
            RunOutcome describing what was done

        Raises:
            ScoutError: Any fatal pipeline failure
        """
        mode = "replay" if self.config.replay else "live"
        with metrics.track_duration(metrics.ingest_duration_seconds, mode=mode):
            if self.config.replay:
                return self._replay()
            return self._live()

    def _write(self, snapshots: list[Snapshot]):
        with self.store_provider() as store:
            return IngestionWriter(store).write(snapshots)

    def _replay(self) -> RunOutcome:
        if not self.cache.cache_dir.is_dir():
            logger.info(
                "nothing to do, cache directory does not exist",
                extra={"cache_dir": str(self.cache.cache_dir)},
            )
            return RunOutcome(mode="replay", status="nothing_to_do")

        replayed = replay_from_cache(self.cache, self.decoder)
        result = self._write(replayed.snapshots)
        return RunOutcome(
            mode="replay",
            status="ingested",
            snapshots=len(replayed.snapshots),
            skipped=len(replayed.skipped),
            result=result,
        )

    def _live(self) -> RunOutcome:
        threshold = self.clock() - MIN_TIME_BETWEEN_FETCHES
        if self.cache.is_fresh_since(threshold):
            logger.info("nothing to do, already fetched recently")
            metrics.increment_counter(metrics.fetches_total, status="skipped")
            return RunOutcome(mode="live", status="nothing_to_do")

        try:
            snapshot = self.fetcher.fetch()
        except ScoutError:
            metrics.increment_counter(metrics.fetches_total, status="failure")
            raise
        metrics.increment_counter(metrics.fetches_total, status="success")

        result = self._write([snapshot])
        return RunOutcome(mode="live", status="ingested", snapshots=1, result=result)
