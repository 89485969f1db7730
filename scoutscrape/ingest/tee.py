"""
Byte-stream tee used while fetching.

Every chunk pulled from the source is written to the sink before it is
returned to the reader, so a consumer that fails halfway (a JSON decode
error, a dropped connection) still leaves everything read so far on disk.
"""

import io
from typing import BinaryIO

from scoutscrape.core.errors import CacheError

CHUNK_SIZE = 64 * 1024


class TeeReader(io.RawIOBase):
    """
    Readable wrapper mirroring reads from ``source`` into ``sink``.

    A failed sink write is raised from read() as CacheError, which aborts
    whatever is consuming the stream.
    """

    def __init__(self, source: BinaryIO, sink: BinaryIO, chunk_size: int = CHUNK_SIZE):
        super().__init__()
        self.source = source
        self.sink = sink
        self.chunk_size = chunk_size
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def _mirror(self, chunk: bytes) -> bytes:
        if chunk:
            try:
                self.sink.write(chunk)
            except OSError as e:
                raise CacheError(f"failed to write to cache: {e}") from e
            self.bytes_read += len(chunk)
        return chunk

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self.readall()
        return self._mirror(self.source.read(size))

    def readall(self) -> bytes:
        chunks = []
        while True:
            chunk = self.read(self.chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)

    def readinto(self, buffer) -> int:
        chunk = self.read(len(buffer))
        n = len(chunk)
        buffer[:n] = chunk
        return n
