"""
Live retrieval of the Scout feed.

One GET per invocation, no retries. The response body is streamed through a
TeeReader into a new cache entry while the decoder consumes it.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Iterator

import requests

from scoutscrape.cache.snapshot_cache import SnapshotCache
from scoutscrape.core.constants import FEED_URL, USER_AGENT
from scoutscrape.core.errors import FetchError
from scoutscrape.core.models import Snapshot
from scoutscrape.ingest.decoder import SnapshotDecoder
from scoutscrape.ingest.tee import CHUNK_SIZE, TeeReader
from scoutscrape.observability.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 60.0


class ResponseStream:
    """
    Minimal readable over ``Response.iter_content``.

    iter_content undoes content-encoding and converts urllib3 failures into
    requests exceptions, which the fetcher reports as FetchError.
    """

    def __init__(self, response: requests.Response, chunk_size: int = CHUNK_SIZE):
        self._chunks = response.iter_content(chunk_size=chunk_size)
        self._buffer = b""

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            data = self._buffer + b"".join(self._chunks)
            self._buffer = b""
            return data
        while not self._buffer:
            chunk = next(self._chunks, None)
            if chunk is None:
                return b""
            self._buffer = chunk
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data


class FeedClient:
    """
    HTTP client for the feed endpoint.
    """

    def __init__(self, *, timeout: TimeoutConfig | None = None) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "FeedClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT, "Accept": "application/json"}

    @contextmanager
    def open_stream(self, url: str) -> Iterator[ResponseStream]:
        """
        Issue one GET and yield the body as a byte stream.

        Raises:
            FetchError: On a transport error or a non-2xx status
        """
        try:
            response = self.session.get(
                url,
                headers=self._headers(),
                stream=True,
                timeout=(self.timeout.connect, self.timeout.read),
            )
        except requests.RequestException as e:
            raise FetchError(f"fetch: {e}") from e

        try:
            if not 200 <= response.status_code < 300:
                raise FetchError(
                    f"fetch: bad response {response.status_code} {response.reason or ''}".rstrip(),
                    status_code=response.status_code,
                )
            yield ResponseStream(response)
        finally:
            response.close()


class SnapshotFetcher:
    """
    Fetches one snapshot, capturing the raw bytes to the cache.
    """

    def __init__(
        self,
        client: FeedClient,
        cache: SnapshotCache,
        decoder: SnapshotDecoder,
        url: str = FEED_URL,
    ):
        self.client = client
        self.cache = cache
        self.decoder = decoder
        self.url = url

    def fetch(self) -> Snapshot:
        """
        Retrieve, capture and decode the current feed.

        The cache entry is created only after a 2xx status and keeps
        whatever bytes were read even when decoding fails.

        Returns:
            Snapshot with the expected version

        Raises:
            FetchError: Transport failure or non-2xx status
            CacheError: The cache entry cannot be created or written
            DecodeError: The payload is not a valid Scout document
            VersionMismatchError: The payload declares another version
        """
        logger.info("Fetching Scout feed", extra={"url": self.url})
        with self.client.open_stream(self.url) as body:
            with self.cache.create_entry() as sink:
                tee = TeeReader(body, sink)
                origin = Path(sink.name).name
                try:
                    snapshot = self.decoder.decode(tee, origin=origin)
                except requests.RequestException as e:
                    raise FetchError(f"fetch: body read failed after {tee.bytes_read} bytes: {e}") from e

        logger.info(
            "Fetched snapshot",
            extra={
                "cache_file": origin,
                "bytes": tee.bytes_read,
                "records": len(snapshot),
                "version": snapshot.version,
            },
        )
        return self.decoder.check_version(snapshot)
