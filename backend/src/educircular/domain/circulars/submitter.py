"""Who submitted a circular, and where a circular came from.

Both are stored as optional columns on the registry tables; these variants
are the typed view the workflow works with.
"""

from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

ANONYMOUS_GUEST_NAME = "Anonymous"


@dataclass(frozen=True)
class GuestSubmitter:
    """Unauthenticated submitter known only by a free-text name/email pair."""
    name: str = ANONYMOUS_GUEST_NAME
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthenticatedSubmitter:
    """Submission attributed to a signed-in account."""
    user_id: UUID


Submitter = Union[GuestSubmitter, AuthenticatedSubmitter]


@dataclass(frozen=True)
class DirectUpload:
    """Circular uploaded by an administrator without moderation."""
    value = "direct_upload"


@dataclass(frozen=True)
class FromSubmission:
    """Circular materialized from a reviewed pending upload."""
    original_submission_id: UUID
    value = "submission"


CircularOrigin = Union[DirectUpload, FromSubmission]


def guest_from_form(name: Optional[str], email: Optional[str]) -> GuestSubmitter:
    """Build a guest submitter from raw form values.

    Blank names fall back to "Anonymous"; blank emails are dropped.
    """
    clean_name = (name or "").strip() or ANONYMOUS_GUEST_NAME
    clean_email = (email or "").strip() or None
    return GuestSubmitter(name=clean_name, email=clean_email)


def submitter_columns(submitter: Submitter) -> dict:
    """Registry column values for a submitter."""
    if isinstance(submitter, AuthenticatedSubmitter):
        return {"uploaded_by_id": submitter.user_id, "guest_name": None, "guest_email": None}
    return {"uploaded_by_id": None, "guest_name": submitter.name, "guest_email": submitter.email}


def origin_columns(origin: CircularOrigin) -> dict:
    """Registry column values for a circular origin."""
    if isinstance(origin, FromSubmission):
        return {"origin": origin.value, "source_submission_id": origin.original_submission_id}
    return {"origin": origin.value, "source_submission_id": None}
