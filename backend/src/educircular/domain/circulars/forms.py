"""Upload form values as received, and the checked form the services store.

Both the moderated submission path and the direct admin upload accept the
same multipart form; check_upload applies the shared rules in the order the
public API has always reported them (file first, then required fields).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...errors import ValidationFailure
from .validation import (
    MISSING_FILE_MESSAGE,
    PDF_CONTENT_TYPE,
    clean_filename,
    is_supported_mime_type,
    parse_order_date,
    validate_file_size,
    validate_filename,
    validate_required_fields,
)


@dataclass
class SubmissionForm:
    """Descriptive fields of an upload, untrimmed and unvalidated."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    order_date: Optional[str] = None


@dataclass
class UploadedPdf:
    """File part of an upload, already read into memory by the router."""
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


@dataclass
class CheckedUpload:
    title: str
    description: str
    category: str
    order_date: Optional[datetime]
    filename: str
    content_type: str
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def check_upload(
    form: SubmissionForm,
    upload: Optional[UploadedPdf],
    max_size_bytes: int,
) -> CheckedUpload:
    """Validate an upload form and its file.

    Raises:
        ValidationFailure: On the first rule the upload breaks
    """
    if upload is None or not upload.filename:
        raise ValidationFailure(MISSING_FILE_MESSAGE)

    is_valid, error_msg = validate_required_fields(form.title, form.description, form.category)
    if not is_valid:
        raise ValidationFailure(error_msg)

    if not is_supported_mime_type(upload.content_type):
        raise ValidationFailure(f"Only PDF files are allowed (got {upload.content_type})")

    filename = clean_filename(upload.filename)
    is_valid, error_msg = validate_filename(filename)
    if not is_valid:
        raise ValidationFailure(error_msg)

    is_valid, error_msg = validate_file_size(len(upload.data), max_size_bytes)
    if not is_valid:
        raise ValidationFailure(error_msg)

    order_date, error_msg = parse_order_date(form.order_date)
    if error_msg:
        raise ValidationFailure(error_msg)

    return CheckedUpload(
        title=form.title.strip(),
        description=form.description.strip(),
        category=form.category.strip(),
        order_date=order_date,
        filename=filename,
        content_type=PDF_CONTENT_TYPE,
        data=upload.data,
    )
