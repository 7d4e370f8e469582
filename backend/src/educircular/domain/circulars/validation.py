"""Input validation for circular uploads and submissions.

Validators return (is_valid, error_message) tuples; the workflow turns a
failed check into a ValidationFailure.
"""

import os
import re
from datetime import datetime, timezone
from typing import Optional, Tuple


SUPPORTED_MIME_TYPES = {
    'application/pdf',
}

PDF_CONTENT_TYPE = 'application/pdf'

# Same pattern the public submission form has always used
GUEST_EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

MISSING_FILE_MESSAGE = "Please upload a PDF file"
MISSING_FIELDS_MESSAGE = "Please provide title, description, and category"


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    """Check if MIME type is accepted for upload

    Example:
        >>> is_supported_mime_type('application/pdf')
        True
        >>> is_supported_mime_type('application/msword')
        False
    """
    return mime_type in SUPPORTED_MIME_TYPES


def validate_file_size(size_bytes: int, max_size: int) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Example:
        >>> validate_file_size(1024, 2048)
        (True, None)
        >>> validate_file_size(0, 2048)
        (False, 'File is empty (0 bytes)')
    """
    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate an uploaded filename

    Validation rules:
    - Not empty
    - Max 255 characters
    - No path traversal (../, ..\\)
    - No null bytes or control characters

    Example:
        >>> validate_filename('notice.pdf')
        (True, None)
        >>> validate_filename('../../etc/passwd')
        (False, 'Filename contains path traversal or directory separators')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '..' in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains path traversal or directory separators"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def validate_required_fields(
    title: Optional[str],
    description: Optional[str],
    category: Optional[str],
) -> Tuple[bool, Optional[str]]:
    """Title, description and category must be present after trimming."""
    if not (title or "").strip() or not (description or "").strip() or not (category or "").strip():
        return False, MISSING_FIELDS_MESSAGE
    return True, None


def validate_guest_email(email: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Check guest email format, only when one was supplied.

    Example:
        >>> validate_guest_email('')
        (True, None)
        >>> validate_guest_email('not-an-email')
        (False, 'Invalid email format')
    """
    clean = (email or "").strip()
    if clean and not GUEST_EMAIL_PATTERN.match(clean):
        return False, "Invalid email format"
    return True, None


def parse_order_date(value: Optional[str]) -> Tuple[Optional[datetime], Optional[str]]:
    """Parse an optional ISO-8601 date or datetime from a form field.

    Returns (date, error_message); blank input yields (None, None).
    """
    clean = (value or "").strip()
    if not clean:
        return None, None
    try:
        parsed = datetime.fromisoformat(clean.replace("Z", "+00:00"))
    except ValueError:
        return None, f"Invalid order date: {clean}"
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed, None


def clean_filename(filename: str) -> str:
    """Strip any client-side directory components from a filename."""
    return os.path.basename(filename.replace('\\', '/'))
