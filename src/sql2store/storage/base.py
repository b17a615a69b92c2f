"""
Abstract storage interfaces.

A storage backend resolves or creates an object addressed by bucket + path and
opens a byte channel to it. The sink only ever sees these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ByteWriter(ABC):
    """
    Sequential byte channel to a single stored object.

    Bytes are persisted in the order they are written. Implementations may
    buffer; nothing is guaranteed to be durable until close() returns.
    """

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Append bytes to the object.

        Args:
            data: Bytes to write

        Raises:
            WriteError: If the bytes could not be accepted; the channel stays usable
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Flush pending bytes and finalize the object.

        Raises:
            Exception: Whatever the transport raised; callers treat it as fatal
        """
        pass


class StoredObject(ABC):
    """Handle to an object that exists (or has just been created) in storage."""

    bucket: str
    path: str

    @abstractmethod
    def open_writer(self) -> ByteWriter:
        """
        Open a write channel that replaces the object's content.

        Raises:
            StorageError: If the channel cannot be opened
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(bucket={self.bucket!r}, path={self.path!r})"


class AbstractStorage(ABC):
    """
    Base class for storage backends.

    Example:
        >>> obj = storage.resolve("exports", "daily.txt")
        >>> if obj is None:
        ...     obj = storage.create("exports", "daily.txt", access_policy="private")
        >>> writer = obj.open_writer()
    """

    @abstractmethod
    def resolve(self, bucket: str, path: str) -> Optional[StoredObject]:
        """
        Look up an existing object.

        Returns:
            The object, or None if nothing exists at bucket + path

        Raises:
            StorageError: If the lookup itself fails
        """
        pass

    @abstractmethod
    def create(
        self, bucket: str, path: str, access_policy: Optional[str] = None
    ) -> StoredObject:
        """
        Create an empty object.

        Args:
            bucket: Destination bucket
            path: Object path inside the bucket
            access_policy: Backend-specific access policy, None for the default

        Raises:
            StorageError: If the object cannot be created
        """
        pass
