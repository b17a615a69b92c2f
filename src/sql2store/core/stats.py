"""
Run statistics shared between the sink and the pipeline coordinator.

RunStats is the only mutable state touched from more than one place during an
export, so every access goes through its lock.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class RunSummary:
    """
    Final statistics for one export run.

    Attributes:
        lines_written: Number of lines that reached the output channel
        write_errors: Number of lines whose write failed
        elapsed_seconds: Wall time between start() and the snapshot
        lines_per_second: Rounded throughput, None if no time elapsed

    Example:
        >>> summary = sink.close()
        >>> print(f"Wrote {summary.lines_written} lines at {summary.lines_per_second} lines/second")
    """

    lines_written: int
    write_errors: int
    elapsed_seconds: float
    lines_per_second: Optional[int]

    @property
    def total_count(self) -> int:
        """Number of lines the sink was asked to write."""
        return self.lines_written + self.write_errors


class RunStats:
    """
    Thread-safe success/failure counters with a start timestamp.

    The clock is injectable so tests can control elapsed time.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._lines_written = 0
        self._write_errors = 0
        self._started_at = clock()

    def start(self) -> None:
        """Reset the start timestamp to now."""
        with self._lock:
            self._started_at = self._clock()

    def record_success(self) -> None:
        with self._lock:
            self._lines_written += 1

    def record_error(self) -> None:
        with self._lock:
            self._write_errors += 1

    @property
    def lines_written(self) -> int:
        with self._lock:
            return self._lines_written

    @property
    def write_errors(self) -> int:
        with self._lock:
            return self._write_errors

    def snapshot(self) -> RunSummary:
        """
        Read counters and elapsed time under one lock acquisition.

        Returns:
            RunSummary with throughput rounded to the nearest integer
        """
        with self._lock:
            elapsed = max(0.0, self._clock() - self._started_at)
            lines = self._lines_written
            errors = self._write_errors

        speed = round(lines / elapsed) if elapsed > 0 else None
        return RunSummary(
            lines_written=lines,
            write_errors=errors,
            elapsed_seconds=elapsed,
            lines_per_second=speed,
        )

    def __repr__(self) -> str:
        return f"RunStats(lines_written={self.lines_written}, write_errors={self.write_errors})"
