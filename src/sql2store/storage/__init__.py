"""
Storage backends for export output.

Backends resolve or create the destination object and open its write channel.
"""

from sql2store.storage.base import AbstractStorage, ByteWriter, StoredObject
from sql2store.storage.local import LocalStorage
from sql2store.storage.s3 import S3Storage


def get_storage(kind: str, **kwargs) -> AbstractStorage:
    """
    Build the backend named in the configuration.

    Args:
        kind: "s3" or "file"
        **kwargs: Passed to the backend constructor

    Raises:
        ValueError: If kind is not a known backend
    """
    if kind == "s3":
        return S3Storage(**kwargs)
    if kind == "file":
        return LocalStorage(**kwargs)
    raise ValueError(f"Unknown storage backend: {kind!r}. Must be one of: s3, file")


__all__ = [
    "AbstractStorage",
    "ByteWriter",
    "StoredObject",
    "LocalStorage",
    "S3Storage",
    "get_storage",
]
