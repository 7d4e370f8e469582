"""Circulars domain module - review status, submitters, upload validation

The moderation rules live here; persistence and HTTP concerns do not.
"""

from .status import (
    SubmissionStatus,
    StateTransitionError,
    ALLOWED_TRANSITIONS,
    can_transition,
    validate_transition,
    is_terminal,
    parse_status,
)
from .submitter import (
    ANONYMOUS_GUEST_NAME,
    GuestSubmitter,
    AuthenticatedSubmitter,
    Submitter,
    DirectUpload,
    FromSubmission,
    CircularOrigin,
    guest_from_form,
    submitter_columns,
    origin_columns,
)
from .forms import (
    SubmissionForm,
    UploadedPdf,
    CheckedUpload,
    check_upload,
)
from .validation import (
    SUPPORTED_MIME_TYPES,
    PDF_CONTENT_TYPE,
    is_supported_mime_type,
    validate_file_size,
    validate_filename,
    validate_required_fields,
    validate_guest_email,
    parse_order_date,
    clean_filename,
)

__all__ = [
    "SubmissionStatus",
    "StateTransitionError",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "validate_transition",
    "is_terminal",
    "parse_status",
    "ANONYMOUS_GUEST_NAME",
    "GuestSubmitter",
    "AuthenticatedSubmitter",
    "Submitter",
    "DirectUpload",
    "FromSubmission",
    "CircularOrigin",
    "guest_from_form",
    "submitter_columns",
    "origin_columns",
    "SubmissionForm",
    "UploadedPdf",
    "CheckedUpload",
    "check_upload",
    "SUPPORTED_MIME_TYPES",
    "PDF_CONTENT_TYPE",
    "is_supported_mime_type",
    "validate_file_size",
    "validate_filename",
    "validate_required_fields",
    "validate_guest_email",
    "parse_order_date",
    "clean_filename",
]
