"""
Object storage sink.

Writes UTF-8 encoded lines to a single object through a storage backend's
write channel, counting successes and failures as it goes.
"""

import logging
import threading
from typing import Optional

from ..core.exceptions import CloseError, StorageError, WriteError
from ..core.stats import RunStats, RunSummary
from ..storage.base import AbstractStorage, ByteWriter
from .base import AbstractSink

logger = logging.getLogger(__name__)


class ObjectSink(AbstractSink):
    """
    Write lines to one object in storage.

    Lines are written in the order accept() is called. A line whose write
    fails is dropped without shifting later lines; the failure only shows up
    in the error counter.

    Thread-safety note:
        Counters live in RunStats behind a lock. Writes to the channel are
        also serialized, so accept() may be called from a thread other than
        the one that will call close().

    Example:
        >>> sink = ObjectSink.open(S3Storage(), "exports", "orders.txt")
        >>> sink.start()
        >>> sink.accept("1~~widget\\n")
        True
        >>> summary = sink.close()
        >>> summary.lines_written
        1
    """

    def __init__(
        self,
        writer: ByteWriter,
        destination: str = "",
        stats: Optional[RunStats] = None,
    ):
        """
        Initialize the sink around an already opened channel.

        Args:
            writer: Open write channel
            destination: Description of the target used in log messages
            stats: Counters to update (a fresh RunStats if None)
        """
        self.writer = writer
        self.destination = destination
        self.stats = stats if stats is not None else RunStats()
        self._lock = threading.Lock()
        self._summary: Optional[RunSummary] = None

    @classmethod
    def open(
        cls,
        storage: AbstractStorage,
        bucket: str,
        path: str,
        access_policy: Optional[str] = None,
        stats: Optional[RunStats] = None,
    ) -> "ObjectSink":
        """
        Resolve or create the destination object and open its write channel.

        An existing object is overwritten. A missing one is created first with
        the given access policy.

        Args:
            storage: Storage backend
            bucket: Destination bucket
            path: Object path inside the bucket
            access_policy: Policy for a newly created object (None for default)
            stats: Counters to update (a fresh RunStats if None)

        Returns:
            Sink ready to accept lines

        Raises:
            StorageError: If the object cannot be resolved, created or opened
        """
        destination = f"{bucket}/{path}"
        try:
            stored = storage.resolve(bucket, path)
            if stored is None:
                stored = storage.create(bucket, path, access_policy)
            else:
                logger.info(f"Overwriting existing object {destination}")
            writer = stored.open_writer()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to open {destination} for writing: {e}") from e

        return cls(writer, destination=destination, stats=stats)

    @property
    def closed(self) -> bool:
        return self._summary is not None

    def accept(self, line: str) -> bool:
        """
        Encode and write one line.

        Args:
            line: Newline-terminated text line

        Returns:
            True on success, False if the line could not be encoded or written
            (the error is counted)
        """
        try:
            data = line.encode("utf-8")
        except UnicodeEncodeError as e:
            logger.warning(f"Dropped line that cannot be encoded as UTF-8: {e}")
            self.stats.record_error()
            return False

        with self._lock:
            try:
                self.writer.write(data)
            except WriteError as e:
                logger.warning(f"Dropped line after write failure: {e}")
                self.stats.record_error()
                return False

        self.stats.record_success()
        return True

    def close(self) -> RunSummary:
        """
        Compute final statistics, then flush and close the channel.

        Only the first call touches the channel; later calls log a warning and
        return the same summary.

        Returns:
            Final statistics for the run

        Raises:
            CloseError: If the channel cannot be flushed or closed
        """
        with self._lock:
            if self._summary is not None:
                logger.warning(f"Sink for {self.destination} is already closed")
                return self._summary

            self._summary = self.stats.snapshot()
            try:
                self.writer.close()
            except Exception as e:
                raise CloseError(resource="output channel", original_error=e) from e

        logger.debug(
            f"Closed {self.destination}: {self._summary.lines_written} lines, "
            f"{self._summary.write_errors} errors"
        )
        return self._summary

    def __repr__(self) -> str:
        return f"ObjectSink(destination={self.destination!r}, stats={self.stats!r})"
