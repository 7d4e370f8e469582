"""Blob Store Port - Domain interface for circular file storage.

This port defines the contract for storing, streaming and deleting the PDF
bytes behind every registry record. Records only hold the opaque blob id.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterator


@dataclass
class StoredBlob:
    """Metadata for a blob written to the store.

    Attributes:
        blob_id: Opaque identifier, fresh for every store() call
        filename: Original filename supplied by the uploader
        content_type: Declared MIME type
        size_bytes: Number of bytes stored
    """
    blob_id: str
    filename: str
    content_type: str
    size_bytes: int


@dataclass
class BlobStream:
    """An open blob ready to be streamed to a client.

    chunks yields the content in order and raises StorageError if the medium
    fails or ends before size_bytes have been read.
    """
    blob_id: str
    filename: str
    content_type: str
    size_bytes: int
    chunks: Iterator[bytes]


class BlobStorePort(ABC):
    """Port interface for blob storage.

    Key Design Principles:
    - No deduplication: identical content stored twice yields two blobs
    - No caching: every retrieve reads the backing medium
    - Explicit initialization, performed once at startup and retried on
      demand if the medium was not reachable then

    Example Usage:
        store = S3BlobStore(...)
        store.initialize()

        stored = await store.store(io.BytesIO(pdf_bytes), "notice.pdf", "application/pdf")
        stream = await store.retrieve(stored.blob_id)
        for chunk in stream.chunks:
            ...
    """

    @abstractmethod
    def initialize(self) -> None:
        """Connect to the medium and verify it is usable.

        Idempotent; safe to call again after a failure.

        Raises:
            StorageError: If the medium is unavailable
        """

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """Whether initialize() has succeeded."""

    @abstractmethod
    async def store(self, data: BinaryIO, filename: str, content_type: str) -> StoredBlob:
        """Persist bytes under a fresh identifier.

        Raises:
            StorageError: If the medium is unavailable or the write fails
            ValueError: If data is empty
        """

    @abstractmethod
    async def retrieve(self, blob_id: str) -> BlobStream:
        """Open a blob for streaming.

        Raises:
            BlobNotFoundError: If blob_id does not resolve to stored content
            StorageError: If the medium is unavailable or the read fails
        """

    @abstractmethod
    async def delete(self, blob_id: str) -> None:
        """Delete a blob.

        Not idempotent: deleting an unknown id raises BlobNotFoundError.
        Callers cleaning up a record should treat that as non-fatal.

        Raises:
            BlobNotFoundError: If blob_id does not resolve to stored content
            StorageError: If deletion fails
        """

    @abstractmethod
    async def exists(self, blob_id: str) -> bool:
        """Check whether a blob exists (HEAD only, no content read)."""
