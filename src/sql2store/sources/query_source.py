"""
DB-API query source.

Executes a single SELECT statement on an open DB-API 2.0 connection (pyodbc in
production, sqlite3 in tests) and streams the result as rows of text.
"""

import logging
from typing import Any, Iterator, Optional

from ..core.exceptions import CloseError, QueryError
from .base import AbstractSource, Row

logger = logging.getLogger(__name__)


def to_text(value: Any) -> Optional[str]:
    """
    Map a driver value to its text form, keeping NULL distinct.

    Args:
        value: Value as returned by the driver

    Returns:
        None for NULL, decoded text for binary values, str(value) otherwise
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class QuerySource(AbstractSource):
    """
    Row source backed by a DB-API cursor.

    The statement is executed at construction so that syntax errors and
    permission problems surface before any output is produced. Rows are then
    fetched one at a time; nothing is read ahead of the consumer.

    The cursor is closed when a fetch fails or the consumer stops early. After
    normal exhaustion the owner calls close() (or uses the source as a
    context manager) so that a failing close can be reported as such.

    Attributes:
        query: The SQL text that was executed
        column_count: Number of columns reported by the cursor

    Example:
        >>> source = QuerySource(connection, "SELECT id, name FROM users")
        >>> for row in source:
        ...     print(row)  # ('1', 'alice'), ('2', None), ...
    """

    def __init__(self, connection: Any, query: str):
        """
        Prepare and execute the query.

        Args:
            connection: Open DB-API connection; it is not closed by the source
            query: SELECT statement to execute

        Raises:
            QueryError: If the statement cannot be prepared or executed, or
                        returns no result columns
        """
        self.query = query
        self._consumed = False
        self._closed = False

        try:
            self._cursor = connection.cursor()
        except Exception as e:
            self._closed = True
            raise QueryError(f"Failed to open cursor: {e}") from e

        try:
            self._cursor.execute(query)
        except Exception as e:
            self._close_quietly()
            raise QueryError(
                f"Failed to execute query: {e}. "
                f"Check your SQL syntax and table permissions."
            ) from e

        if self._cursor.description is None:
            self._close_quietly()
            raise QueryError(
                "Query did not return any columns. Ensure the query is a SELECT statement."
            )

        self.column_count = len(self._cursor.description)

    def __iter__(self) -> Iterator[Row]:
        """
        Fetch rows until the cursor is exhausted.

        Yields:
            One tuple of text-or-None per row, in cursor order

        Raises:
            QueryError: If a fetch fails, a row has the wrong width, or the
                        stream was already consumed
        """
        if self._consumed or self._closed:
            raise QueryError("Query result has already been consumed; sources are single-pass")
        self._consumed = True

        logger.info("Started reading")
        count = 0
        try:
            while True:
                try:
                    raw = self._cursor.fetchone()
                except Exception as e:
                    raise QueryError(f"Failed to fetch row {count + 1}: {e}") from e

                if raw is None:
                    break

                if len(raw) != self.column_count:
                    raise QueryError(
                        f"Row {count + 1} has {len(raw)} fields, "
                        f"expected {self.column_count}"
                    )

                count += 1
                yield tuple(to_text(value) for value in raw)
        except BaseException:
            # Covers QueryError and early exit by the consumer (GeneratorExit)
            self._close_quietly()
            raise

        logger.info(f"Done reading ({count} rows)")

    def close(self) -> None:
        """
        Close the cursor once.

        Raises:
            CloseError: If the driver fails to close the cursor
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._cursor.close()
        except Exception as e:
            raise CloseError(resource="cursor", original_error=e) from e

    @property
    def closed(self) -> bool:
        return self._closed

    def _close_quietly(self) -> None:
        """Close the cursor while another error is already propagating."""
        try:
            self.close()
        except CloseError as e:
            logger.warning(f"Ignoring cursor close failure after query error: {e}")

    def __enter__(self) -> "QuerySource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self._close_quietly()

    def __repr__(self) -> str:
        return f"QuerySource(query={self.query!r}, closed={self._closed})"
