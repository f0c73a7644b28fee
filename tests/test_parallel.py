"""Tests for parallel execution utilities."""

from __future__ import annotations

import threading
import time

from modules_hunter.core.parallel import (
    DEFAULT_WORKERS,
    MAX_WORKERS,
    ParallelConfig,
    parallel_map,
)


class TestParallelConfig:
    """Tests for ParallelConfig dataclass."""

    def test_defaults(self) -> None:
        """Test default configuration values."""
        config = ParallelConfig()
        assert config.enabled is True
        assert config.max_workers == DEFAULT_WORKERS

    def test_custom_values(self) -> None:
        config = ParallelConfig(enabled=False, max_workers=4)
        assert config.enabled is False
        assert config.max_workers == 4

    def test_min_workers_clamp(self) -> None:
        """Test that workers < 1 are clamped to 1."""
        assert ParallelConfig(max_workers=0).max_workers == 1
        assert ParallelConfig(max_workers=-5).max_workers == 1

    def test_max_workers_clamp(self) -> None:
        assert ParallelConfig(max_workers=100).max_workers == MAX_WORKERS

    def test_sequential(self) -> None:
        config = ParallelConfig.sequential()
        assert config.enabled is False
        assert config.max_workers == 1


class TestParallelMap:
    """Tests for parallel_map function."""

    def test_empty_list(self) -> None:
        assert list(parallel_map(lambda x: x * 2, [])) == []

    def test_single_item_sequential(self) -> None:
        """Test that single item uses sequential execution."""
        results = list(parallel_map(lambda x: x * 2, [5]))
        assert results == [(5, 10, None)]

    def test_disabled_parallel_preserves_order(self) -> None:
        config = ParallelConfig(enabled=False)
        results = list(parallel_map(lambda x: x * 2, [3, 1, 2], config))
        assert results == [(3, 6, None), (1, 2, None), (2, 4, None)]

    def test_disabled_parallel_runs_on_caller_thread(self) -> None:
        caller = threading.get_ident()
        config = ParallelConfig.sequential()
        results = list(parallel_map(lambda _: threading.get_ident(), [1, 2, 3], config))
        assert {result for _, result, _ in results} == {caller}

    def test_parallel_execution(self) -> None:
        config = ParallelConfig(enabled=True, max_workers=4)
        results = list(parallel_map(lambda x: x ** 2, [1, 2, 3, 4, 5], config))

        assert len(results) == 5
        values = {item: result for item, result, _ in results}
        assert values == {1: 1, 2: 4, 3: 9, 4: 16, 5: 25}

    def test_error_handling(self) -> None:
        """Test that errors are captured per item."""
        def maybe_fail(x: int) -> int:
            if x == 3:
                raise ValueError("Three is unlucky")
            return x * 2

        results = list(parallel_map(maybe_fail, [1, 2, 3, 4]))
        assert len(results) == 4

        for item, result, error in results:
            if item == 3:
                assert result is None
                assert error is not None
                assert "Three is unlucky" in str(error)
            else:
                assert result == item * 2
                assert error is None

    def test_sequential_error_handling(self) -> None:
        def fail(x: int) -> int:
            raise OSError("unreadable")

        results = list(parallel_map(fail, [1, 2], ParallelConfig.sequential()))
        assert [item for item, _, _ in results] == [1, 2]
        assert all(isinstance(error, OSError) for _, _, error in results)

    def test_actually_parallel(self) -> None:
        """Test that execution is actually parallel (faster than sequential)."""
        def slow_task(x: int) -> int:
            time.sleep(0.05)  # 50ms per task
            return x

        items = list(range(8))
        config = ParallelConfig(enabled=True, max_workers=8)

        start = time.time()
        results = list(parallel_map(slow_task, items, config))
        parallel_time = time.time() - start

        # Sequential would take 8 * 50 = 400ms
        assert len(results) == 8
        assert parallel_time < 0.3

    def test_worker_bound(self) -> None:
        """No more than max_workers calls run at once."""
        lock = threading.Lock()
        active = 0
        peak = 0

        def track(_: int) -> None:
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1

        list(parallel_map(track, list(range(12)), ParallelConfig(max_workers=3)))
        assert peak <= 3
