"""
Directory-backed cache of raw Scout payloads.

One file per live fetch, named ``<epoch-seconds>.json``. Files are written
once, never modified and never purged by this package; replay mode reads
them back in directory-listing order.
"""

import os
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from scoutscrape.core.constants import CACHE_DIR_MODE, CACHE_FILE_MODE, CACHE_SUFFIX
from scoutscrape.core.errors import CacheError
from scoutscrape.observability.logger import get_logger

logger = get_logger(__name__)


def _owner_only_opener(path, flags):
    return os.open(path, flags, CACHE_FILE_MODE)


def _make_owner_only_dirs(directory: Path) -> None:
    """Create ``directory`` and every missing parent with CACHE_DIR_MODE."""
    missing = []
    current = directory
    while not current.exists() and current != current.parent:
        missing.append(current)
        current = current.parent
    for path in reversed(missing):
        path.mkdir(mode=CACHE_DIR_MODE, exist_ok=True)


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload on disk."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    def open(self) -> BinaryIO:
        """
        Open the payload for reading; the caller closes it.

        Raises:
            CacheError: If the file cannot be opened
        """
        try:
            return self.path.open("rb")
        except OSError as e:
            raise CacheError(f"cannot open cache entry {self.path}: {e}") from e


class SnapshotCache:
    """
    Snapshot payload store rooted at one directory.
    """

    def __init__(self, cache_dir: Path, clock=time.time):
        """
        Args:
            cache_dir: Directory holding the payload files
            clock: Returns the current epoch time; used to name new entries
        """
        self.cache_dir = Path(cache_dir)
        self._clock = clock

    def _regular_files(self) -> list[os.DirEntry]:
        try:
            with os.scandir(self.cache_dir) as it:
                return [entry for entry in it if entry.is_file(follow_symlinks=False)]
        except FileNotFoundError:
            return []
        except OSError as e:
            raise CacheError(f"cannot list cache directory {self.cache_dir}: {e}") from e

    def is_fresh_since(self, threshold: datetime) -> bool:
        """
        Check whether anything was cached after ``threshold``.

        Args:
            threshold: Timezone-aware (or local naive) point in time

        Returns:
            True iff a regular file's modification time is strictly later
            than threshold. A missing directory is not an error and yields
            False.
        """
        cutoff = threshold.timestamp()
        for entry in self._regular_files():
            try:
                mtime = entry.stat(follow_symlinks=False).st_mtime
            except OSError as e:
                raise CacheError(f"cannot stat {entry.path}: {e}") from e
            if mtime > cutoff:
                return True
        return False

    def create_entry(self) -> BinaryIO:
        """
        Create a new, empty entry named after the current epoch second.

        The directory and any missing parents are created on demand
        (owner-only). The returned file
        is open for binary writing and must be closed by the caller.

        Raises:
            CacheError: If the directory or the file cannot be created
        """
        try:
            _make_owner_only_dirs(self.cache_dir)
        except OSError as e:
            raise CacheError(f"cannot create cache directory {self.cache_dir}: {e}") from e

        path = self.cache_dir / f"{int(self._clock())}{CACHE_SUFFIX}"
        try:
            handle = open(path, "wb", opener=_owner_only_opener)
        except OSError as e:
            raise CacheError(f"cannot create cache entry {path}: {e}") from e

        logger.debug("Created cache entry", extra={"path": str(path)})
        return handle

    def list_entries(self) -> list[CacheEntry]:
        """
        Enumerate cached payloads in directory-listing order.

        Returns:
            One CacheEntry per regular file; empty when the directory
            does not exist
        """
        return [CacheEntry(Path(entry.path)) for entry in self._regular_files()]
