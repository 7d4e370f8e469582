"""Blob store calls shared by the moderation workflow and the circulars service.

Wraps the store with the registry-facing rules: empty content is a
validation failure, a missing blob behind a record being deleted is
tolerated, and every operation is counted.
"""

import logging
from io import BytesIO

from .domain.circulars.forms import CheckedUpload
from .domain.circulars.ports import BlobStorePort, BlobStream
from .errors import BlobNotFoundError, StorageError, ValidationFailure
from .observability.metrics import blob_operations_total, upload_size_bytes

logger = logging.getLogger(__name__)


async def store_upload_blob(storage: BlobStorePort, checked: CheckedUpload) -> str:
    """Write the upload's bytes to the blob store and return the blob id.

    Raises:
        ValidationFailure: If the content turns out to be empty
        StorageError: If the blob store is unavailable
    """
    try:
        stored = await storage.store(BytesIO(checked.data), checked.filename, checked.content_type)
    except ValueError as e:
        raise ValidationFailure(str(e))
    except StorageError:
        blob_operations_total.labels(operation="store", status="error").inc()
        raise

    blob_operations_total.labels(operation="store", status="success").inc()
    upload_size_bytes.observe(stored.size_bytes)
    return stored.blob_id


async def discard_blob(storage: BlobStorePort, blob_id: str) -> None:
    """Delete a blob whose registry write failed.

    Failures are logged with the orphaned id rather than raised, so the
    original registry error reaches the caller.
    """
    try:
        await storage.delete(blob_id)
    except BlobNotFoundError:
        return
    except StorageError as e:
        blob_operations_total.labels(operation="delete", status="error").inc()
        logger.error(
            f"Orphaned blob after failed registry write: blob_id={blob_id}, error={e.message}",
            extra={"blob_id": blob_id},
        )
        return
    blob_operations_total.labels(operation="delete", status="success").inc()
    logger.info(f"Discarded blob after failed registry write: blob_id={blob_id}")


async def delete_blob_for_record(storage: BlobStorePort, blob_id: str) -> None:
    """Delete the blob behind a registry record that is about to be removed.

    A blob that is already gone is not an error here; any other storage
    failure propagates so the record is left in place.
    """
    try:
        await storage.delete(blob_id)
    except BlobNotFoundError:
        blob_operations_total.labels(operation="delete", status="not_found").inc()
        logger.warning(f"Blob already missing, deleting record anyway: blob_id={blob_id}")
        return
    except StorageError:
        blob_operations_total.labels(operation="delete", status="error").inc()
        raise
    blob_operations_total.labels(operation="delete", status="success").inc()


async def open_blob(storage: BlobStorePort, blob_id: str) -> BlobStream:
    try:
        stream = await storage.retrieve(blob_id)
    except BlobNotFoundError:
        blob_operations_total.labels(operation="retrieve", status="not_found").inc()
        raise
    except StorageError:
        blob_operations_total.labels(operation="retrieve", status="error").inc()
        raise
    blob_operations_total.labels(operation="retrieve", status="success").inc()
    return stream
