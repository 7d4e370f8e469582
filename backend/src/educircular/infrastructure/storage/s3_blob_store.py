"""S3 Blob Store - Implementation of BlobStorePort using boto3.

Stores circular PDFs in an S3-compatible bucket (AWS S3, MinIO). Every
upload gets a fresh key; content is never deduplicated or cached.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterator, Optional
from urllib.parse import quote, unquote
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ...domain.circulars.ports.blob_store_port import BlobStorePort, BlobStream, StoredBlob
from ...errors import BlobNotFoundError, StorageError

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"404", "NoSuchKey", "NotFound"}
_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class S3BlobStore(BlobStorePort):
    """S3-compatible blob store using boto3.

    Features:
    - Fresh key per upload: circulars/{year}/{month}/{uuid}.{ext}
    - Original filename kept in object metadata (URL-quoted, S3 metadata is ASCII)
    - Chunked streaming downloads with short-read detection
    - Lazy re-initialization when the bucket was unreachable at startup

    Example:
        config = load_storage_config()
        store = S3BlobStore(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )
        store.initialize()
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        create_bucket: bool = False,
        chunk_size: int = 64 * 1024,
    ):
        """Initialize S3 blob store.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')
            create_bucket: Create the bucket in initialize() if it is missing
            chunk_size: Read size used when streaming downloads

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        self.create_bucket = create_bucket
        self.chunk_size = chunk_size
        self._initialized = False

        logger.info(
            f"Configured S3 blob store: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Verify the bucket exists, creating it when configured to.

        Idempotent: returns immediately once it has succeeded.

        Raises:
            StorageError: If the bucket is missing or unreachable
        """
        if self._initialized:
            return

        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            error_code = _error_code(e)
            if error_code not in _MISSING_BUCKET_CODES:
                raise StorageError(f"Failed to verify bucket: {error_code}")
            if not self.create_bucket:
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or set S3_CREATE_BUCKET=true."
                )
            self._create_bucket()
        except BotoCoreError as e:
            raise StorageError(f"Object storage unreachable: {e}")

        self._initialized = True
        logger.info(f"Blob store ready: bucket={self.bucket_name}")

    def _create_bucket(self) -> None:
        kwargs = {"Bucket": self.bucket_name}
        if self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.s3_client.create_bucket(**kwargs)
        except ClientError as e:
            raise StorageError(f"Failed to create bucket: {_error_code(e)}")
        logger.info(f"Created bucket: {self.bucket_name}")

    def _ensure_initialized(self) -> None:
        """Retry initialization once if startup could not reach the medium."""
        if self._initialized:
            return
        logger.warning("Blob store not initialized, initializing on demand")
        self.initialize()

    async def store(self, data: BinaryIO, filename: str, content_type: str) -> StoredBlob:
        """Store bytes under a fresh key.

        Raises:
            StorageError: If the store is unavailable or the upload fails
            ValueError: If data is empty
        """
        self._ensure_initialized()

        chunks = []
        size_bytes = 0
        while True:
            chunk = data.read(self.chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
            size_bytes += len(chunk)

        if size_bytes == 0:
            raise ValueError("Cannot store empty file")

        blob_id = self._generate_blob_id(filename)

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=blob_id,
                Body=b"".join(chunks),
                ContentType=content_type,
                Metadata={"original_filename": quote(filename)},
            )
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(f"S3 upload failed: blob_id={blob_id}, error={error_code}")
            raise StorageError(f"Failed to upload file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 upload failed: blob_id={blob_id}, error={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(
            f"Stored blob: blob_id={blob_id}, filename={filename}, "
            f"size={size_bytes}, content_type={content_type}"
        )
        return StoredBlob(
            blob_id=blob_id,
            filename=filename,
            content_type=content_type,
            size_bytes=size_bytes,
        )

    async def retrieve(self, blob_id: str) -> BlobStream:
        """Open a blob for chunked streaming.

        Raises:
            BlobNotFoundError: If the key doesn't exist
            StorageError: If retrieval fails
        """
        self._ensure_initialized()

        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=blob_id)
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in _MISSING_KEY_CODES:
                logger.warning(f"Blob not found: blob_id={blob_id}")
                raise BlobNotFoundError(f"File not found: {blob_id}")
            logger.error(f"S3 retrieval failed: blob_id={blob_id}, error={error_code}")
            raise StorageError(f"Failed to retrieve file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 retrieval failed: blob_id={blob_id}, error={e}")
            raise StorageError(f"Failed to retrieve file: {e}")

        size_bytes = int(response.get("ContentLength", 0))
        metadata = response.get("Metadata") or {}
        filename = unquote(metadata.get("original_filename", "")) or Path(blob_id).name

        logger.info(f"Opened blob: blob_id={blob_id}, size={size_bytes}")
        return BlobStream(
            blob_id=blob_id,
            filename=filename,
            content_type=response.get("ContentType") or "application/octet-stream",
            size_bytes=size_bytes,
            chunks=self._iter_body(response["Body"], blob_id, size_bytes),
        )

    def _iter_body(self, body, blob_id: str, expected_size: int) -> Iterator[bytes]:
        """Yield the object body in chunks; a short or broken read is an error."""
        received = 0
        try:
            for chunk in body.iter_chunks(self.chunk_size):
                received += len(chunk)
                yield chunk
        except (BotoCoreError, OSError) as e:
            logger.error(f"S3 stream failed: blob_id={blob_id}, received={received}, error={e}")
            raise StorageError(f"Download interrupted: {e}")
        finally:
            body.close()

        if received != expected_size:
            logger.error(
                f"S3 stream ended early: blob_id={blob_id}, "
                f"received={received}, expected={expected_size}"
            )
            raise StorageError(
                f"Download incomplete: received {received} of {expected_size} bytes"
            )

    async def delete(self, blob_id: str) -> None:
        """Delete a blob.

        Raises:
            BlobNotFoundError: If the key doesn't exist
            StorageError: If deletion fails
        """
        self._ensure_initialized()

        if not await self.exists(blob_id):
            logger.info(f"Blob not found for deletion: blob_id={blob_id}")
            raise BlobNotFoundError(f"File not found: {blob_id}")

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=blob_id)
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(f"S3 deletion failed: blob_id={blob_id}, error={error_code}")
            raise StorageError(f"Failed to delete file: {error_code}")
        except BotoCoreError as e:
            logger.error(f"S3 deletion failed: blob_id={blob_id}, error={e}")
            raise StorageError(f"Failed to delete file: {e}")

        logger.info(f"Deleted blob: blob_id={blob_id}")

    async def exists(self, blob_id: str) -> bool:
        """Check if a blob exists using a HEAD request.

        Raises:
            StorageError: If the check itself fails
        """
        self._ensure_initialized()

        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=blob_id)
            return True
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in _MISSING_KEY_CODES:
                return False
            raise StorageError(f"Failed to check file: {error_code}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to check file: {e}")

    def _generate_blob_id(self, filename: str) -> str:
        """Generate a fresh key: circulars/{year}/{month}/{uuid}.{ext}

        Example:
            >>> store._generate_blob_id('notice.PDF')
            'circulars/2026/10/3f2b...e1.pdf'
        """
        now = datetime.now(timezone.utc)
        ext = Path(filename).suffix.lower()
        return f"circulars/{now.year}/{now.month:02d}/{uuid4().hex}{ext}"
