"""
Abstract base class for row sources.

Sources execute a query and produce its result one row at a time as a tuple of
nullable text fields, in cursor order.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

# One field per query column; None marks a SQL NULL
Row = tuple[Optional[str], ...]


class AbstractSource(ABC):
    """
    Base class for all row sources in the pipeline.

    Subclasses must implement __iter__() to yield rows lazily and close() to
    release whatever cursor or handle backs the stream.

    A source is single-pass: once its stream has been exhausted or has failed
    it cannot be iterated again.

    Example:
        >>> class ListSource(AbstractSource):
        ...     def __init__(self, rows):
        ...         self.rows = rows
        ...
        ...     def __iter__(self) -> Iterator[Row]:
        ...         yield from self.rows
        ...
        ...     def close(self) -> None:
        ...         pass
    """

    @abstractmethod
    def __iter__(self) -> Iterator[Row]:
        """
        Iterate over the query result.

        Yields:
            Rows in cursor order

        Raises:
            QueryError: If reading from the source fails
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Release the underlying cursor.

        Must be safe to call more than once; only the first call has an effect.

        Raises:
            CloseError: If the cursor fails to close
        """
        pass
