"""User roles and the access policy for circulars.

Callers without an account are guests. Higher roles hold every capability
of the lower ones.

Permission Matrix:
┌─────────────────────────────────────┬───────┬──────────┬───────┐
│ Action                              │ guest │ user     │ admin │
├─────────────────────────────────────┼───────┼──────────┼───────┤
│ Submit circular for review          │   ✓   │    ✓     │   ✓   │
│ List/get/download published         │   ✓   │    ✓     │   ✓   │
│ View own submissions                │       │    ✓     │   ✓   │
│ Delete own pending submission       │       │ if owner │   ✓   │
│ Upload circular directly            │       │          │   ✓   │
│ List pending / preview pending file │       │          │   ✓   │
│ Approve / reject submission         │       │          │   ✓   │
│ Delete any submission               │       │          │   ✓   │
│ Update / delete circular            │       │          │   ✓   │
└─────────────────────────────────────┴───────┴──────────┴───────┘
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional


class UserRole(str, Enum):
    """Account roles. Values are stored as TEXT and must match exactly."""
    ADMIN = "admin"
    USER = "user"


class Capability(str, Enum):
    SUBMIT_CIRCULAR = "submit_circular"
    VIEW_PUBLISHED = "view_published"
    VIEW_OWN_SUBMISSIONS = "view_own_submissions"
    DELETE_OWN_SUBMISSION = "delete_own_submission"
    UPLOAD_DIRECT = "upload_direct"
    LIST_PENDING = "list_pending"
    PREVIEW_PENDING_FILE = "preview_pending_file"
    REVIEW_SUBMISSION = "review_submission"
    DELETE_ANY_SUBMISSION = "delete_any_submission"
    UPDATE_CIRCULAR = "update_circular"
    DELETE_CIRCULAR = "delete_circular"
    VIEW_UNPUBLISHED = "view_unpublished"
    VIEW_SUBMITTER_CONTACT = "view_submitter_contact"


_GUEST_CAPABILITIES = frozenset({
    Capability.SUBMIT_CIRCULAR,
    Capability.VIEW_PUBLISHED,
})

_USER_CAPABILITIES = _GUEST_CAPABILITIES | {
    Capability.VIEW_OWN_SUBMISSIONS,
    Capability.DELETE_OWN_SUBMISSION,
}

# None is the guest (no account)
CAPABILITIES: Dict[Optional[UserRole], FrozenSet[Capability]] = {
    None: _GUEST_CAPABILITIES,
    UserRole.USER: frozenset(_USER_CAPABILITIES),
    UserRole.ADMIN: frozenset(Capability),
}


def has_capability(role: Optional[UserRole], capability: Capability) -> bool:
    """Check whether a role (None for guests) holds a capability.

    Examples:
        >>> has_capability(None, Capability.SUBMIT_CIRCULAR)
        True
        >>> has_capability(UserRole.USER, Capability.REVIEW_SUBMISSION)
        False
        >>> has_capability(UserRole.ADMIN, Capability.REVIEW_SUBMISSION)
        True
    """
    return capability in CAPABILITIES.get(role, frozenset())


def role_of(user) -> Optional[UserRole]:
    """Role of a User row, or None for a guest.

    Raises:
        ValueError: If the stored role is unknown
    """
    if user is None:
        return None
    return UserRole(user.role)


def can_delete_submission(requester, submission) -> bool:
    """Admins may delete any submission; users only their own.

    Guest-owned submissions (no uploaded_by_id) are admin-only.
    """
    role = role_of(requester)
    if has_capability(role, Capability.DELETE_ANY_SUBMISSION):
        return True
    if not has_capability(role, Capability.DELETE_OWN_SUBMISSION):
        return False
    return submission.uploaded_by_id is not None and submission.uploaded_by_id == requester.id


def can_view_unpublished(viewer) -> bool:
    """Only administrators see rejected or unpublished circulars."""
    return has_capability(role_of(viewer), Capability.VIEW_UNPUBLISHED)


def can_view_submitter_contact(viewer) -> bool:
    """Guest submitter emails are shown to administrators only."""
    return has_capability(role_of(viewer), Capability.VIEW_SUBMITTER_CONTACT)
