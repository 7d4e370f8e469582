"""Error taxonomy shared by the workflow, storage and HTTP layers.

Every failure surfaced to a caller carries a kind (the ``error`` code), an
HTTP status and a human-readable message. ``main`` turns these into JSON
responses; services raise them and never build HTTP responses themselves.
"""

from typing import Optional

from fastapi import status


class CircularsError(Exception):
    """Base class for expected application failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "internal_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailure(CircularsError):
    """Missing or malformed required input."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "validation_error"


class Unauthenticated(CircularsError):
    """No credential, or the credential could not be verified."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error = "unauthenticated"


class Forbidden(CircularsError):
    """Authenticated, but lacking the capability or ownership required."""

    status_code = status.HTTP_403_FORBIDDEN
    error = "forbidden"


class NotFoundError(CircularsError):
    """No record at the given identifier."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"


class InvalidState(CircularsError):
    """Operation not valid for the record's current status."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "invalid_state"


class StorageError(CircularsError):
    """Blob medium unavailable, not initialized, or failed mid-operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "storage_error"


class BlobNotFoundError(NotFoundError):
    """Blob identifier does not resolve to stored content."""

    error = "blob_not_found"
