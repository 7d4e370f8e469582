"""Shared FastAPI dependencies.

The blob store is built once in the application lifespan and kept on
app.state; request handlers receive it through these dependencies so tests
can substitute their own store via dependency_overrides.
"""

from typing import Optional

from fastapi import Request

from .domain.circulars.ports import BlobStorePort
from .errors import StorageError


def get_optional_blob_store(request: Request) -> Optional[BlobStorePort]:
    return getattr(request.app.state, "blob_store", None)


def get_blob_store(request: Request) -> BlobStorePort:
    """Return the process-wide blob store.

    Raises:
        StorageError: If the application started without a blob store
    """
    store = get_optional_blob_store(request)
    if store is None:
        raise StorageError("Blob store is not configured")
    return store
