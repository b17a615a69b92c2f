"""
Abstract base class for line sinks.

Sinks persist serialized lines and keep count of what was written and what
failed. A failed line is recorded, never raised: the export is best-effort
per line and reports failures in aggregate.
"""

from abc import ABC, abstractmethod

from ..core.stats import RunStats, RunSummary


class AbstractSink(ABC):
    """
    Base class for all sinks in the pipeline.

    Subclasses must implement accept() for single-line writes and close() to
    flush the destination and produce the final RunSummary.

    Attributes:
        stats: Thread-safe counters updated by accept()

    Example:
        >>> class ListSink(AbstractSink):
        ...     def __init__(self):
        ...         self.stats = RunStats()
        ...         self.lines = []
        ...
        ...     def accept(self, line: str) -> bool:
        ...         self.lines.append(line)
        ...         self.stats.record_success()
        ...         return True
        ...
        ...     def close(self) -> RunSummary:
        ...         return self.stats.snapshot()
    """

    stats: RunStats

    def start(self) -> None:
        """Mark the beginning of the run for throughput calculation."""
        self.stats.start()

    @abstractmethod
    def accept(self, line: str) -> bool:
        """
        Write one line.

        Args:
            line: Newline-terminated text line

        Returns:
            True if the line was written, False if the write failed and was counted
        """
        pass

    @abstractmethod
    def close(self) -> RunSummary:
        """
        Flush and close the destination.

        Returns:
            Final statistics for the run

        Raises:
            CloseError: If the destination cannot be flushed or closed
        """
        pass
