"""
Amazon S3 storage backend.

Objects are written through a multipart upload so an export of any size
streams to S3 with bounded memory: bytes are buffered until a part is full,
then uploaded in order. Small exports (including empty ones) fall back to a
single put_object on close.
"""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import DEFAULT_PART_SIZE
from ..core.exceptions import StorageError, WriteError
from .base import AbstractStorage, ByteWriter, StoredObject

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _acl_kwargs(access_policy: Optional[str]) -> dict[str, str]:
    return {"ACL": access_policy} if access_policy else {}


class S3Writer(ByteWriter):
    """
    Multipart upload channel to one S3 object.

    A failed part upload raises WriteError and drops only the bytes passed to
    that write() call; earlier buffered bytes are kept and retried with the
    next full part or on close().

    Attributes:
        bucket: Destination bucket
        key: Destination key
        part_size: Bytes buffered before a part is uploaded
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        key: str,
        access_policy: Optional[str] = None,
        part_size: int = DEFAULT_PART_SIZE,
    ):
        self.client = client
        self.bucket = bucket
        self.key = key
        self.access_policy = access_policy
        self.part_size = part_size

        self._buffer = bytearray()
        self._parts: list[dict[str, Any]] = []
        self._upload_id: Optional[str] = None
        self._closed = False

    def write(self, data: bytes) -> None:
        if self._closed:
            raise WriteError(ValueError(f"Channel to s3://{self.bucket}/{self.key} is closed"))

        mark = len(self._buffer)
        self._buffer += data

        if len(self._buffer) >= self.part_size:
            try:
                self._upload_part()
            except WriteError:
                del self._buffer[mark:]
                raise

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        try:
            if not self._parts:
                self._abort()
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=self.key,
                    Body=bytes(self._buffer),
                    **_acl_kwargs(self.access_policy),
                )
            else:
                if self._buffer:
                    self._upload_part()
                self.client.complete_multipart_upload(
                    Bucket=self.bucket,
                    Key=self.key,
                    UploadId=self._upload_id,
                    MultipartUpload={"Parts": self._parts},
                )
        except (ClientError, BotoCoreError, WriteError):
            self._abort()
            raise
        finally:
            self._buffer.clear()

        logger.debug(
            f"Finalized s3://{self.bucket}/{self.key} "
            f"({len(self._parts) or 1} part(s))"
        )

    def _upload_part(self) -> None:
        """Upload the whole buffer as the next part and clear it."""
        try:
            if self._upload_id is None:
                response = self.client.create_multipart_upload(
                    Bucket=self.bucket,
                    Key=self.key,
                    **_acl_kwargs(self.access_policy),
                )
                self._upload_id = response["UploadId"]

            part_number = len(self._parts) + 1
            response = self.client.upload_part(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self._upload_id,
                PartNumber=part_number,
                Body=bytes(self._buffer),
            )
        except (ClientError, BotoCoreError) as e:
            raise WriteError(e) from e

        self._parts.append({"ETag": response["ETag"], "PartNumber": part_number})
        self._buffer.clear()

    def _abort(self) -> None:
        """Abort a started multipart upload so S3 does not keep orphaned parts."""
        if self._upload_id is None:
            return
        upload_id, self._upload_id = self._upload_id, None
        try:
            self.client.abort_multipart_upload(
                Bucket=self.bucket, Key=self.key, UploadId=upload_id
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Failed to abort multipart upload {upload_id}: {e}")


class S3Object(StoredObject):
    """An S3 object that writers replace in full."""

    def __init__(
        self,
        client: Any,
        bucket: str,
        path: str,
        access_policy: Optional[str] = None,
        part_size: int = DEFAULT_PART_SIZE,
    ):
        self.client = client
        self.bucket = bucket
        self.path = path
        self.access_policy = access_policy
        self.part_size = part_size

    def open_writer(self) -> S3Writer:
        return S3Writer(
            self.client,
            self.bucket,
            self.path,
            access_policy=self.access_policy,
            part_size=self.part_size,
        )


class S3Storage(AbstractStorage):
    """
    S3 backend built on a boto3 client.

    Example:
        >>> storage = S3Storage()  # uses the default boto3 credential chain
        >>> obj = storage.resolve("exports", "orders.txt") or storage.create(
        ...     "exports", "orders.txt", access_policy="bucket-owner-full-control"
        ... )
    """

    def __init__(self, client: Any = None, part_size: int = DEFAULT_PART_SIZE):
        """
        Initialize the backend.

        Args:
            client: boto3 S3 client; a default one is created if None
            part_size: Multipart part size passed to writers
        """
        self.client = client if client is not None else boto3.client("s3")
        self.part_size = part_size

    def resolve(self, bucket: str, path: str) -> Optional[S3Object]:
        try:
            self.client.head_object(Bucket=bucket, Key=path)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                return None
            raise StorageError(f"Failed to look up s3://{bucket}/{path}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to look up s3://{bucket}/{path}: {e}") from e

        # Existing objects keep the bucket default ACL on overwrite
        return S3Object(self.client, bucket, path, part_size=self.part_size)

    def create(
        self, bucket: str, path: str, access_policy: Optional[str] = None
    ) -> S3Object:
        try:
            self.client.put_object(
                Bucket=bucket, Key=path, Body=b"", **_acl_kwargs(access_policy)
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to create s3://{bucket}/{path}: {e}") from e

        logger.info(f"Created s3://{bucket}/{path}")
        return S3Object(
            self.client,
            bucket,
            path,
            access_policy=access_policy,
            part_size=self.part_size,
        )
