"""
Local filesystem storage backend.

Treats the bucket as a directory and the path as a file below it. Useful for
running exports without cloud credentials and for tests.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

from ..core.exceptions import StorageError, WriteError
from .base import AbstractStorage, ByteWriter, StoredObject

logger = logging.getLogger(__name__)


class LocalWriter(ByteWriter):
    """Binary file handle opened for overwrite."""

    def __init__(self, handle: BinaryIO, file_path: Path):
        self._handle = handle
        self.file_path = file_path

    def write(self, data: bytes) -> None:
        try:
            self._handle.write(data)
        except OSError as e:
            raise WriteError(e) from e

    def close(self) -> None:
        if self._handle.closed:
            return
        self._handle.close()


class LocalObject(StoredObject):
    def __init__(self, bucket: str, path: str, file_path: Path):
        self.bucket = bucket
        self.path = path
        self.file_path = file_path

    def open_writer(self) -> LocalWriter:
        try:
            handle = self.file_path.open("wb")
        except OSError as e:
            raise StorageError(f"Failed to open {self.file_path} for writing: {e}") from e
        return LocalWriter(handle, self.file_path)


class LocalStorage(AbstractStorage):
    """
    Filesystem backend.

    Attributes:
        root: Directory that relative bucket names are resolved against

    Example:
        >>> storage = LocalStorage(root="/var/exports")
        >>> obj = storage.resolve("daily", "orders.txt")  # /var/exports/daily/orders.txt
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else Path.cwd()

    def resolve(self, bucket: str, path: str) -> Optional[LocalObject]:
        file_path = self._file_path(bucket, path)
        if file_path.is_dir():
            raise StorageError(f"Destination {file_path} is a directory")
        if not file_path.exists():
            return None
        return LocalObject(bucket, path, file_path)

    def create(
        self, bucket: str, path: str, access_policy: Optional[str] = None
    ) -> LocalObject:
        if access_policy:
            logger.debug(f"Access policy {access_policy!r} does not apply to local files, ignoring")

        file_path = self._file_path(bucket, path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.touch()
        except OSError as e:
            raise StorageError(f"Failed to create {file_path}: {e}") from e

        logger.info(f"Created {file_path}")
        return LocalObject(bucket, path, file_path)

    def _file_path(self, bucket: str, path: str) -> Path:
        return self.root / bucket / path
