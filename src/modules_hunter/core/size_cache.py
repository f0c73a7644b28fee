"""Recursive size calculation with a short-lived per-path memo."""

from __future__ import annotations

import logging
import os
import stat
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from modules_hunter.core.parallel import ParallelConfig, parallel_map

logger = logging.getLogger(__name__)

# Seconds a computed directory size stays valid
DEFAULT_CACHE_TIMEOUT = 60.0


@dataclass(frozen=True)
class SizeCacheEntry:
    """A memoized directory size and when it was computed."""

    size: int
    timestamp: float


@dataclass(frozen=True)
class LargestFile:
    path: Path
    size: int


@dataclass(frozen=True)
class DirectoryStats:
    """Per-file statistics for a directory tree."""

    total_size: int
    file_count: int
    directory_count: int
    largest_file: LargestFile | None
    average_file_size: float


def _cache_key(path: str | Path) -> str:
    return os.path.normpath(os.path.abspath(path))


class SizeCache:
    """
    Computes byte sizes of files and directory trees.

    Directory results are memoized per path for ``timeout`` seconds. A stale
    entry is recomputed on the next lookup, never evicted proactively.
    Concurrent cold lookups of the same path may both compute and both
    store; the last write wins, which is harmless because the values agree.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_CACHE_TIMEOUT,
        parallel_config: ParallelConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if timeout < 0:
            raise ValueError(f"Cache timeout cannot be negative: {timeout}")
        self.timeout = timeout
        self.parallel_config = parallel_config or ParallelConfig()
        self._clock = clock
        self._entries: dict[str, SizeCacheEntry] = {}

    def get_size(self, path: str | Path) -> int:
        """
        Return the size of a file, or the recursive size of a directory.

        Missing or unreadable paths count as zero. The immediate
        subdirectories of ``path`` are sized concurrently.
        """
        key = _cache_key(path)
        cached = self._lookup(key)
        if cached is not None:
            return cached

        try:
            st = os.stat(path)
        except OSError as e:
            logger.debug("Cannot stat %s: %s", path, e)
            return 0

        if not stat.S_ISDIR(st.st_mode):
            return st.st_size

        return self._directory_size(key, self.parallel_config)

    def get_sizes(self, paths: Iterable[str | Path]) -> dict[Path, int]:
        """Size several paths concurrently, keyed by the given path."""
        items = [Path(p) for p in paths]
        sizes: dict[Path, int] = {}
        for item, size, error in parallel_map(self.get_size, items, self.parallel_config):
            if error is not None:
                logger.debug("Failed to size %s: %s", item, error)
            sizes[item] = size or 0
        return sizes

    def _lookup(self, key: str) -> int | None:
        entry = self._entries.get(key)
        if entry is not None and self._clock() - entry.timestamp < self.timeout:
            return entry.size
        return None

    def _directory_size(self, key: str, config: ParallelConfig) -> int:
        cached = self._lookup(key)
        if cached is not None:
            return cached

        total = 0
        subdirs: list[str] = []
        try:
            with os.scandir(key) as entries:
                for entry in entries:
                    try:
                        if entry.is_symlink():
                            total += self._symlink_size(entry.path)
                        elif entry.is_dir(follow_symlinks=False):
                            subdirs.append(entry.path)
                        elif entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                    except OSError as e:
                        logger.debug("Cannot size %s: %s", entry.path, e)
        except OSError as e:
            logger.debug("Cannot read directory %s: %s", key, e)
            return 0

        sequential = ParallelConfig.sequential()
        for subdir, size, error in parallel_map(
            lambda p: self._directory_size(p, sequential), subdirs, config
        ):
            if error is not None:
                logger.debug("Failed to size %s: %s", subdir, error)
                continue
            total += size or 0

        self._entries[key] = SizeCacheEntry(size=total, timestamp=self._clock())
        return total

    @staticmethod
    def _symlink_size(path: str) -> int:
        # Size of the link target; broken links count as zero
        try:
            return os.stat(path).st_size
        except OSError:
            return 0

    def get_directory_stats(self, path: str | Path) -> DirectoryStats:
        """
        Walk a directory and collect per-file statistics.

        This traversal bypasses the size memo because it needs every file.
        """
        total_size = 0
        file_count = 0
        directory_count = 0
        largest: LargestFile | None = None

        pending = [Path(path)]
        while pending:
            current = pending.pop()
            try:
                with os.scandir(current) as entries:
                    for entry in entries:
                        try:
                            if entry.is_dir(follow_symlinks=False):
                                directory_count += 1
                                pending.append(Path(entry.path))
                            elif entry.is_file(follow_symlinks=False):
                                size = entry.stat(follow_symlinks=False).st_size
                                total_size += size
                                file_count += 1
                                if largest is None or size > largest.size:
                                    largest = LargestFile(path=Path(entry.path), size=size)
                        except OSError as e:
                            logger.debug("Cannot stat %s: %s", entry.path, e)
            except OSError as e:
                logger.debug("Cannot read directory %s: %s", current, e)

        return DirectoryStats(
            total_size=total_size,
            file_count=file_count,
            directory_count=directory_count,
            largest_file=largest,
            average_file_size=total_size / file_count if file_count else 0.0,
        )

    def clear_cache(self) -> None:
        self._entries.clear()

    def set_cache_timeout(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Cache timeout cannot be negative: {seconds}")
        self.timeout = seconds

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return self._lookup(_cache_key(path)) is not None
