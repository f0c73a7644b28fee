"""Bounded concurrent execution for filesystem work."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")

# Directory reads are I/O bound; cap the pool so wide trees cannot exhaust file handles
DEFAULT_WORKERS = min((os.cpu_count() or 4) * 2, 16)
MAX_WORKERS = 32

# Below this many items a pool costs more than it saves
MIN_PARALLEL_ITEMS = 2


@dataclass
class ParallelConfig:
    """Configuration for concurrent execution."""

    enabled: bool = True
    max_workers: int = DEFAULT_WORKERS

    def __post_init__(self) -> None:
        self.max_workers = max(1, min(self.max_workers, MAX_WORKERS))

    @classmethod
    def sequential(cls) -> ParallelConfig:
        return cls(enabled=False, max_workers=1)


def parallel_map(
    func: Callable[[T], R],
    items: list[T],
    config: ParallelConfig | None = None,
) -> Iterator[tuple[T, R | None, Exception | None]]:
    """
    Apply a function to items, concurrently when enabled.

    Sequential execution yields in input order; concurrent execution
    yields in completion order.

    Args:
        func: Function to apply to each item
        items: List of items to process
        config: Execution configuration

    Yields:
        Tuple of (item, result, error) for each item.
        If successful, error is None. If failed, result is None.
    """
    if config is None:
        config = ParallelConfig()

    if not config.enabled or len(items) < MIN_PARALLEL_ITEMS:
        for item in items:
            try:
                yield (item, func(item), None)
            except Exception as e:
                yield (item, None, e)
        return

    workers = min(config.max_workers, len(items))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_item = {executor.submit(func, item): item for item in items}

        for future in as_completed(future_to_item):
            item = future_to_item[future]
            try:
                yield (item, future.result(), None)
            except Exception as e:
                yield (item, None, e)
