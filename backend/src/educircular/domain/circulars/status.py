"""Review status state machine for submitted circulars.

State flow:
    pending → approved | rejected

Terminal States: approved, rejected
"""

from enum import Enum
from typing import Dict, List, Optional


class SubmissionStatus(str, Enum):
    """Moderation status shared by pending uploads and circulars."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


ALLOWED_TRANSITIONS: Dict[Optional[SubmissionStatus], List[SubmissionStatus]] = {
    None: [SubmissionStatus.PENDING],
    SubmissionStatus.PENDING: [SubmissionStatus.APPROVED, SubmissionStatus.REJECTED],
    SubmissionStatus.APPROVED: [],  # Terminal state
    SubmissionStatus.REJECTED: [],  # Terminal state
}


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def can_transition(
    from_status: Optional[SubmissionStatus],
    to_status: SubmissionStatus
) -> bool:
    """Check if a state transition is allowed without raising exception.

    Example:
        >>> can_transition(SubmissionStatus.PENDING, SubmissionStatus.APPROVED)
        True
        >>> can_transition(SubmissionStatus.REJECTED, SubmissionStatus.APPROVED)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def validate_transition(
    from_status: Optional[SubmissionStatus],
    to_status: SubmissionStatus
) -> None:
    """Validate that a state transition is allowed.

    Raises:
        StateTransitionError: If transition is not allowed
    """
    if not can_transition(from_status, to_status):
        allowed = ALLOWED_TRANSITIONS.get(from_status, [])
        current = from_status.value if from_status else "new"
        raise StateTransitionError(
            f"Invalid transition: {current} -> {to_status.value}. "
            f"Allowed transitions from {current}: {[s.value for s in allowed]}"
        )


def is_terminal(status: SubmissionStatus) -> bool:
    return not ALLOWED_TRANSITIONS.get(status)


def parse_status(value: Optional[str]) -> Optional[SubmissionStatus]:
    """Convert a stored or requested status string to the enum.

    Returns None for None; raises ValueError for unknown values.
    """
    if value is None:
        return None
    return SubmissionStatus(value)
