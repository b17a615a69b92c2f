"""
Tests for RunStats counters.

Validates:
- Success and error counters under concurrent updates
- Throughput rounding
- Zero elapsed time yields no throughput
"""

import threading

from sql2store.core.stats import RunStats, RunSummary


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_counters_start_at_zero():
    """Test that a fresh RunStats has nothing recorded."""
    stats = RunStats()

    assert stats.lines_written == 0
    assert stats.write_errors == 0


def test_concurrent_updates_are_not_lost():
    """Test that increments from several threads are all counted."""
    stats = RunStats()

    def work():
        for _ in range(1000):
            stats.record_success()
            stats.record_error()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert stats.lines_written == 8000
    assert stats.write_errors == 8000


def test_snapshot_rounds_throughput():
    """Test that lines per second is lines / elapsed rounded to the nearest integer."""
    clock = FakeClock()
    stats = RunStats(clock=clock)
    stats.start()

    for _ in range(10):
        stats.record_success()
    stats.record_error()
    clock.now += 4.0

    summary = stats.snapshot()

    assert summary == RunSummary(
        lines_written=10,
        write_errors=1,
        elapsed_seconds=4.0,
        lines_per_second=2,
    )
    assert summary.total_count == 11


def test_snapshot_with_no_elapsed_time():
    """Test that throughput is None instead of dividing by zero."""
    clock = FakeClock()
    stats = RunStats(clock=clock)
    stats.start()
    stats.record_success()

    summary = stats.snapshot()

    assert summary.elapsed_seconds == 0.0
    assert summary.lines_per_second is None


def test_start_resets_timer():
    """Test that start() moves the reference point for elapsed time."""
    clock = FakeClock(now=0.0)
    stats = RunStats(clock=clock)

    clock.now = 50.0
    stats.start()
    clock.now = 52.0

    assert stats.snapshot().elapsed_seconds == 2.0
