"""
Shared fixtures and test doubles.

The doubles avoid real network and database drivers:
- sqlite3 in-memory connections stand in for ODBC connections
- FakeS3Client mimics the handful of S3 calls the storage backend makes and
  raises real botocore ClientError payloads
- FakeStorage/FakeWriter capture bytes and can fail on chosen writes or on close
"""

import sqlite3
import tempfile
from pathlib import Path
from typing import Any, Optional

import pytest
from botocore.exceptions import ClientError

from sql2store.core.config import ExportConfig
from sql2store.core.exceptions import WriteError
from sql2store.storage.base import AbstractStorage, ByteWriter, StoredObject


def make_client_error(operation_name: str, code: str = "AccessDenied", message: str = "Denied") -> ClientError:
    """Build a botocore ClientError payload for tests."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation_name)


class TrackingConnection:
    """DB-API connection wrapper that counts close() calls and can fail them."""

    def __init__(self, connection: sqlite3.Connection, fail_on_close: bool = False):
        self._connection = connection
        self.fail_on_close = fail_on_close
        self.close_calls = 0

    def cursor(self):
        return self._connection.cursor()

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_on_close:
            raise sqlite3.OperationalError("connection reset")
        self._connection.close()


class FakeWriter(ByteWriter):
    """Collects written bytes; fails the writes listed in fail_on (1-based)."""

    def __init__(self, fail_on: tuple = (), fail_on_close: bool = False):
        self.fail_on = set(fail_on)
        self.fail_on_close = fail_on_close
        self.chunks: list[bytes] = []
        self.write_calls = 0
        self.close_calls = 0

    def write(self, data: bytes) -> None:
        self.write_calls += 1
        if self.write_calls in self.fail_on:
            raise WriteError(OSError(f"write {self.write_calls} rejected"))
        self.chunks.append(data)

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_on_close:
            raise OSError("flush failed")

    @property
    def text(self) -> str:
        return b"".join(self.chunks).decode("utf-8")


class FakeObject(StoredObject):
    def __init__(self, bucket: str, path: str, writer: FakeWriter):
        self.bucket = bucket
        self.path = path
        self._writer = writer

    def open_writer(self) -> FakeWriter:
        return self._writer


class FakeStorage(AbstractStorage):
    """In-memory storage handing out a single FakeWriter."""

    def __init__(self, writer: Optional[FakeWriter] = None, exists: bool = False):
        self.writer = writer or FakeWriter()
        self.exists = exists
        self.created: list[tuple] = []

    def resolve(self, bucket: str, path: str) -> Optional[FakeObject]:
        if not self.exists:
            return None
        return FakeObject(bucket, path, self.writer)

    def create(self, bucket: str, path: str, access_policy: Optional[str] = None) -> FakeObject:
        self.created.append((bucket, path, access_policy))
        self.exists = True
        return FakeObject(bucket, path, self.writer)


class FakeS3Client:
    """
    Minimal S3 client covering head/put and the multipart upload calls.

    Completed objects land in self.objects keyed by (bucket, key).
    """

    def __init__(self, existing: tuple = (), fail_parts: tuple = (), fail_complete: bool = False, head_error_code: Optional[str] = None):
        self.objects: dict[tuple, bytes] = {key: b"old content" for key in existing}
        self.fail_parts = set(fail_parts)
        self.fail_complete = fail_complete
        self.head_error_code = head_error_code
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.uploads: dict[str, dict[int, bytes]] = {}
        self.aborted: list[str] = []
        self._part_attempts = 0

    def head_object(self, **kwargs):
        self.calls.append(("head_object", kwargs))
        if self.head_error_code is not None:
            raise make_client_error("HeadObject", code=self.head_error_code)
        if (kwargs["Bucket"], kwargs["Key"]) not in self.objects:
            raise make_client_error("HeadObject", code="404", message="Not Found")
        return {"ContentLength": len(self.objects[(kwargs["Bucket"], kwargs["Key"])])}

    def put_object(self, **kwargs):
        self.calls.append(("put_object", kwargs))
        self.objects[(kwargs["Bucket"], kwargs["Key"])] = bytes(kwargs["Body"])
        return {"ETag": '"put"'}

    def create_multipart_upload(self, **kwargs):
        self.calls.append(("create_multipart_upload", kwargs))
        upload_id = f"upload-{len(self.uploads) + 1}"
        self.uploads[upload_id] = {}
        return {"UploadId": upload_id}

    def upload_part(self, **kwargs):
        self.calls.append(("upload_part", kwargs))
        self._part_attempts += 1
        if self._part_attempts in self.fail_parts:
            raise make_client_error("UploadPart", code="InternalError", message="Try again")
        self.uploads[kwargs["UploadId"]][kwargs["PartNumber"]] = bytes(kwargs["Body"])
        return {"ETag": f'"etag-{kwargs["PartNumber"]}"'}

    def complete_multipart_upload(self, **kwargs):
        self.calls.append(("complete_multipart_upload", kwargs))
        if self.fail_complete:
            raise make_client_error("CompleteMultipartUpload", code="InternalError", message="Try again")
        parts = self.uploads.pop(kwargs["UploadId"])
        numbers = [part["PartNumber"] for part in kwargs["MultipartUpload"]["Parts"]]
        self.objects[(kwargs["Bucket"], kwargs["Key"])] = b"".join(parts[n] for n in numbers)
        return {"ETag": '"complete"'}

    def abort_multipart_upload(self, **kwargs):
        self.calls.append(("abort_multipart_upload", kwargs))
        self.aborted.append(kwargs["UploadId"])
        self.uploads.pop(kwargs["UploadId"], None)
        return {}

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sqlite_connection():
    """In-memory database with a small 'foo' table."""
    connection = sqlite3.connect(":memory:")
    connection.execute("CREATE TABLE foo (a TEXT, b TEXT)")
    connection.executemany(
        "INSERT INTO foo (a, b) VALUES (?, ?)",
        [("a", "b"), ("c,d", "e"), (None, "f")],
    )
    connection.commit()
    yield connection
    connection.close()


@pytest.fixture
def tracking_connection(sqlite_connection):
    """The sqlite connection wrapped so close() calls are counted."""
    return TrackingConnection(sqlite_connection)


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def fake_writer_factory():
    """Build FakeWriter instances with chosen failures."""
    return FakeWriter


@pytest.fixture
def fake_storage_factory():
    """Build FakeStorage instances around a chosen writer."""
    return FakeStorage


@pytest.fixture
def fake_s3_factory():
    """Build FakeS3Client instances with chosen failures."""
    return FakeS3Client


@pytest.fixture
def connection_factory():
    """Wrap a sqlite connection in a TrackingConnection."""
    return TrackingConnection


@pytest.fixture
def export_config():
    """Factory for a valid ExportConfig with optional overrides."""

    def _make(**overrides) -> ExportConfig:
        values = {
            "database": "DSN=test",
            "user": "reporter",
            "password": "secret",
            "bucket": "exports",
            "file": "foo.txt",
            "separator": ",",
            "query": "SELECT a, b FROM foo ORDER BY rowid",
        }
        values.update(overrides)
        return ExportConfig(**values)

    return _make
