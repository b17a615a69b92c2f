"""
Pipeline orchestration for sql2store.

Connects the query source, the line formatter and the object sink, drives the
row loop to completion or failure, and releases the cursor, output channel and
connection exactly once on every exit path.
"""

import logging
from enum import Enum
from typing import Any, Optional

from ..sinks.object_sink import ObjectSink
from ..sources.query_source import QuerySource
from ..steps.line_formatter import LineFormatter
from ..storage.base import AbstractStorage
from .config import ExportConfig
from .exceptions import CloseError
from .stats import RunStats, RunSummary


class PipelineState(Enum):
    """Lifecycle of a single export run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ExportPipeline:
    """
    Single-use export of one query to one object.

    Flow: open output channel -> execute query -> for each row, format and
    write -> release cursor, channel and connection -> log summary.

    The loop is strictly one row at a time: a row is formatted and written
    before the next one is fetched, so memory use does not depend on the size
    of the result set and output order matches cursor order.

    Attributes:
        name: Identifier used in the logger name
        state: Current PipelineState
        summary: RunSummary once the run has finished (None before)

    Example:
        >>> pipeline = ExportPipeline(config, connection, S3Storage())
        >>> summary = pipeline.run()
        >>> pipeline.state
        <PipelineState.COMPLETED: 'completed'>
        >>> print(f"Wrote {summary.lines_written} lines, {summary.write_errors} errors")
    """

    def __init__(
        self,
        config: ExportConfig,
        connection: Any,
        storage: AbstractStorage,
        name: Optional[str] = None,
        stats: Optional[RunStats] = None,
        progress_interval: int = 100_000,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Resolved export configuration
            connection: Open DB-API connection; the pipeline takes ownership
                        and closes it when the run ends
            storage: Backend holding the destination object
            name: Identifier for log messages (defaults to the destination path)
            stats: Counters shared with the sink (a fresh RunStats if None)
            progress_interval: Log progress every this many rows
        """
        self.config = config
        self.connection = connection
        self.storage = storage
        self.name = name or config.file
        self.progress_interval = max(1, progress_interval)
        self.formatter = LineFormatter(config.separator)

        self.state = PipelineState.IDLE
        self.summary: Optional[RunSummary] = None
        self.source: Optional[QuerySource] = None
        self.sink: Optional[ObjectSink] = None

        self._stats = stats
        self._rows_read = 0
        self._released = False

        self.logger = logging.getLogger(f"sql2store.pipeline.{self.name}")

    @property
    def rows_read(self) -> int:
        """Rows produced by the source so far."""
        return self._rows_read

    def run(self) -> RunSummary:
        """
        Execute the export.

        Returns:
            Final RunSummary for the run

        Raises:
            RuntimeError: If the pipeline has already been run
            StorageError: If the destination cannot be opened (connection is closed)
            QueryError: If the query fails; resources are released first and
                        partial output is kept
            CloseError: If the output channel or connection cannot be closed
                        after the last row; the run is not reported as completed
        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(
                f"Pipeline '{self.name}' already ran (state={self.state.value}); "
                f"create a new pipeline for each export"
            )

        self.logger.info(f"Exporting to {self.config.destination_url}")

        try:
            self.sink = ObjectSink.open(
                self.storage,
                self.config.bucket,
                self.config.file,
                access_policy=self.config.access_policy,
                stats=self._stats,
            )
        except Exception:
            self.state = PipelineState.FAILED
            self._release(strict=False)
            raise

        self.state = PipelineState.RUNNING
        self.sink.start()

        try:
            self._pump()
        except (Exception, KeyboardInterrupt) as e:
            self.state = PipelineState.FAILED
            self.logger.error(f"Export failed after {self._rows_read} rows: {e}")
            self.summary = self._release(strict=False)
            if self.summary is not None:
                self._log_summary(self.summary, completed=False)
            raise

        try:
            self.summary = self._release(strict=True)
        except CloseError as e:
            self.state = PipelineState.FAILED
            self.logger.error(f"Exception while closing connections/channels: {e}")
            raise

        self.state = PipelineState.COMPLETED
        self._log_summary(self.summary, completed=True)
        return self.summary

    def _pump(self) -> None:
        """Execute the query and move every row through the formatter into the sink."""
        self.source = QuerySource(self.connection, self.config.query)

        for row in self.source:
            self._rows_read += 1
            self.sink.accept(self.formatter(row))

            if self._rows_read % self.progress_interval == 0:
                self.logger.info(
                    f"Progress: {self._rows_read} rows - "
                    f"Written: {self.sink.stats.lines_written}, "
                    f"Failed: {self.sink.stats.write_errors}"
                )

    def _release(self, strict: bool) -> Optional[RunSummary]:
        """
        Close cursor, output channel and connection, in that order, once.

        Every close is attempted even if an earlier one fails.

        Args:
            strict: Raise the first output channel/connection failure instead of
                    only logging it

        Returns:
            The sink's summary, or None if the sink never opened or failed to close

        Raises:
            CloseError: If strict and the output channel or connection failed to close
        """
        if self._released:
            return self.summary
        self._released = True

        errors: list[CloseError] = []
        summary = None

        if self.source is not None:
            try:
                self.source.close()
            except CloseError as e:
                # No written data depends on the cursor
                self.logger.warning(str(e))

        if self.sink is not None:
            try:
                summary = self.sink.close()
            except CloseError as e:
                errors.append(e)

        try:
            self.connection.close()
        except Exception as e:
            errors.append(CloseError(resource="connection", original_error=e))

        if errors:
            if strict:
                for extra in errors[1:]:
                    self.logger.error(str(extra))
                raise errors[0]
            for error in errors:
                self.logger.warning(f"Ignoring during cleanup: {error}")

        return summary

    def _log_summary(self, summary: RunSummary, completed: bool) -> None:
        """Log elapsed time, throughput and error count."""
        self.logger.info(f"Job took {summary.elapsed_seconds:.1f} seconds.")

        if summary.lines_per_second is None:
            self.logger.info(f"Wrote {summary.lines_written} lines.")
        else:
            self.logger.info(
                f"Wrote {summary.lines_written} lines at "
                f"{summary.lines_per_second} lines/second."
            )

        if summary.write_errors > 0:
            self.logger.warning(f"Encountered {summary.write_errors} errors while writing.")
        elif completed:
            self.logger.info("Run has been successfully completed.")

    def __repr__(self) -> str:
        return (
            f"ExportPipeline(name={self.name!r}, "
            f"state={self.state.value}, rows_read={self._rows_read})"
        )


def run_export(
    config: ExportConfig,
    connection: Any = None,
    storage: Optional[AbstractStorage] = None,
) -> RunSummary:
    """
    Convenience wrapper: connect, pick the storage backend and run one export.

    Args:
        config: Resolved export configuration
        connection: Open DB-API connection (an ODBC connection is opened if None)
        storage: Storage backend (built from config.storage if None)

    Returns:
        Final RunSummary

    Raises:
        QueryError, StorageError, CloseError: As raised by ExportPipeline.run()
    """
    if storage is None:
        from ..storage import get_storage

        kwargs = {"part_size": config.part_size} if config.storage == "s3" else {}
        storage = get_storage(config.storage, **kwargs)

    if connection is None:
        from ..sources.odbc import connect

        connection = connect(config)

    return ExportPipeline(config, connection, storage).run()
