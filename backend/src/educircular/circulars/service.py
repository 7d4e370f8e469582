"""Published circulars: listing, retrieval, direct upload and admin edits."""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..blobs import delete_blob_for_record, discard_blob, open_blob, store_upload_blob
from ..domain.circulars import (
    DirectUpload,
    SubmissionForm,
    SubmissionStatus,
    UploadedPdf,
    check_upload,
    origin_columns,
)
from ..domain.circulars.ports import BlobStorePort, BlobStream
from ..errors import NotFoundError, ValidationFailure
from ..models.circular import Circular
from ..models.user import User
from ..observability.metrics import direct_uploads_total

logger = logging.getLogger(__name__)

CIRCULAR_NOT_FOUND_MESSAGE = "Circular not found"
INVALID_STATUS_MESSAGE = "Invalid status"

# Fields an administrator may change through update_circular
UPDATABLE_FIELDS = ("title", "order_date", "description", "category", "is_published", "status")


def _parse_status(value: Optional[str]) -> SubmissionStatus:
    try:
        return SubmissionStatus(value)
    except ValueError:
        raise ValidationFailure(INVALID_STATUS_MESSAGE)


def list_circulars(
    db: Session,
    category: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 100,
) -> Tuple[List[Circular], int]:
    """Page through published circulars, newest first.

    Only published circulars are ever listed. Filtering by approved also
    matches records with no status at all, which predate the column.

    Returns:
        (circulars on this page, total matching)

    Raises:
        ValidationFailure: If status is not a known review status
    """
    query = db.query(Circular).filter(Circular.is_published.is_(True))

    if category:
        query = query.filter(Circular.category == category)

    if status:
        wanted = _parse_status(status)
        if wanted == SubmissionStatus.APPROVED:
            query = query.filter(or_(Circular.status == wanted.value, Circular.status.is_(None)))
        else:
            query = query.filter(Circular.status == wanted.value)

    total = query.count()
    circulars = (
        query.order_by(Circular.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return circulars, total


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def get_circular(db: Session, circular_id: UUID, published_only: bool = False) -> Circular:
    """Load one circular by id.

    With published_only, unpublished circulars (rejected, or withdrawn by an
    administrator) are reported as missing.

    Raises:
        NotFoundError: If it doesn't exist, or isn't visible
    """
    query = db.query(Circular).filter(Circular.id == circular_id)
    if published_only:
        query = query.filter(Circular.is_published.is_(True))
    circular = query.first()
    if circular is None:
        raise NotFoundError(CIRCULAR_NOT_FOUND_MESSAGE)
    return circular


async def open_circular_download(
    db: Session,
    storage: BlobStorePort,
    circular_id: UUID,
    published_only: bool = False,
) -> Tuple[Circular, BlobStream]:
    """Open a circular's PDF for download.

    Raises:
        NotFoundError: If the circular or its blob doesn't exist, or the
            circular is unpublished and published_only is set
    """
    circular = get_circular(db, circular_id, published_only=published_only)
    stream = await open_blob(storage, circular.file_id)
    return circular, stream


async def create_direct_circular(
    db: Session,
    storage: BlobStorePort,
    form: SubmissionForm,
    upload: Optional[UploadedPdf],
    admin: User,
    max_size_bytes: int,
) -> Circular:
    """Publish a circular uploaded by an administrator, skipping moderation.

    Raises:
        ValidationFailure: Missing fields or file, or not a PDF
        StorageError: If the blob store is unavailable
    """
    checked = check_upload(form, upload, max_size_bytes)
    blob_id = await store_upload_blob(storage, checked)

    circular = Circular(
        title=checked.title,
        order_date=checked.order_date,
        description=checked.description,
        category=checked.category,
        file_id=blob_id,
        file_name=checked.filename,
        file_size=checked.size_bytes,
        uploaded_by_id=admin.id,
        is_published=True,
        is_approved_by_admin=True,
        status=SubmissionStatus.APPROVED.value,
        **origin_columns(DirectUpload()),
    )

    try:
        db.add(circular)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record circular for blob_id={blob_id}: {e}")
        await discard_blob(storage, blob_id)
        raise

    db.refresh(circular)
    direct_uploads_total.inc()
    logger.info(
        f"Published circular directly: id={circular.id}, admin_id={admin.id}, file_id={blob_id}",
        extra={"circular_id": circular.id},
    )
    return circular


def update_circular_status(db: Session, circular_id: UUID, status: Optional[str]) -> Circular:
    """Set a circular's review status.

    Raises:
        ValidationFailure: If status is missing or unknown
        NotFoundError: If the circular doesn't exist
    """
    wanted = _parse_status(status)
    circular = get_circular(db, circular_id)

    circular.status = wanted.value
    db.commit()
    db.refresh(circular)

    logger.info(
        f"Updated circular status: id={circular_id}, status={wanted.value}",
        extra={"circular_id": circular_id},
    )
    return circular


def update_circular(db: Session, circular_id: UUID, changes: Dict[str, Any]) -> Circular:
    """Apply a partial update to a circular.

    Keys outside the descriptive fields are ignored. Blank text values are
    rejected; a None order_date clears it.

    Raises:
        ValidationFailure: If a text field is blank
        NotFoundError: If the circular doesn't exist
    """
    circular = get_circular(db, circular_id)

    applied = []
    for field in UPDATABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field in ("title", "description", "category"):
            if value is None or not str(value).strip():
                raise ValidationFailure(f"{field} cannot be empty")
            value = str(value).strip()
        elif value is None and field != "order_date":
            continue
        elif field == "status":
            value = _parse_status(getattr(value, "value", value)).value
        setattr(circular, field, value)
        applied.append(field)

    db.commit()
    db.refresh(circular)

    logger.info(
        f"Updated circular: id={circular_id}, fields={applied}",
        extra={"circular_id": circular_id},
    )
    return circular


async def delete_circular(db: Session, storage: BlobStorePort, circular_id: UUID) -> None:
    """Delete a circular and its file.

    Raises:
        NotFoundError: If the circular doesn't exist
        StorageError: If the blob could not be deleted; the record is kept
    """
    circular = get_circular(db, circular_id)
    await delete_blob_for_record(storage, circular.file_id)

    db.delete(circular)
    db.commit()

    logger.info(
        f"Deleted circular: id={circular_id}, file_id={circular.file_id}",
        extra={"circular_id": circular_id},
    )
