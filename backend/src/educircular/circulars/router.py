"""Circular endpoints

Public listing, lookup and download of published circulars, plus the
administrator's direct upload and maintenance operations.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..auth.dependencies import AdminUser, OptionalUser
from ..auth.roles import can_view_submitter_contact, can_view_unpublished
from ..config import get_settings
from ..database import get_db
from ..dependencies import get_blob_store
from ..domain.circulars import SubmissionForm
from ..domain.circulars.ports import BlobStorePort
from ..files import pdf_response, read_upload
from ..models.circular import Circular
from ..models.user import User
from . import service
from .schemas import (
    CircularEnvelope,
    CircularListResponse,
    CircularResponse,
    CircularUpdateRequest,
    MessageResponse,
    Pagination,
    StatusUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/circulars", tags=["Circulars"])


def _present(circular: Circular, viewer: Optional[User]) -> CircularResponse:
    response = CircularResponse.model_validate(circular)
    if not can_view_submitter_contact(viewer):
        response.guest_email = None
    return response


@router.post("/upload", response_model=CircularEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_circular(
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStorePort, Depends(get_blob_store)],
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    order_date: Optional[str] = Form(None, alias="orderDate"),
):
    """Upload and publish a circular directly (admin only).

    The circular is approved immediately; no pending submission is created.
    """
    max_size = get_settings().MAX_UPLOAD_SIZE_BYTES
    upload = await read_upload(file, max_size)
    form = SubmissionForm(title=title, description=description, category=category, order_date=order_date)

    circular = await service.create_direct_circular(db, storage, form, upload, admin, max_size)
    return CircularEnvelope(
        message="Circular uploaded successfully",
        circular=CircularResponse.model_validate(circular),
    )


@router.get("", response_model=CircularListResponse)
async def list_circulars(
    viewer: OptionalUser,
    db: Annotated[Session, Depends(get_db)],
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
):
    """List published circulars, newest first, optionally by category and status."""
    circulars, total = service.list_circulars(
        db, category=category, status=status_filter, page=page, limit=limit
    )
    return CircularListResponse(
        circulars=[_present(c, viewer) for c in circulars],
        pagination=Pagination(total=total, page=page, pages=service.page_count(total, limit)),
    )


@router.get("/{circular_id}/download")
async def download_circular(
    circular_id: UUID,
    viewer: OptionalUser,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStorePort, Depends(get_blob_store)],
):
    """Download a circular's PDF. Unpublished circulars are admin only."""
    circular, stream = await service.open_circular_download(
        db, storage, circular_id, published_only=not can_view_unpublished(viewer)
    )
    return pdf_response(stream, circular.file_name, disposition="attachment")


@router.get("/{circular_id}", response_model=CircularEnvelope)
async def get_circular(
    circular_id: UUID,
    viewer: OptionalUser,
    db: Annotated[Session, Depends(get_db)],
):
    circular = service.get_circular(db, circular_id, published_only=not can_view_unpublished(viewer))
    return CircularEnvelope(circular=_present(circular, viewer))


@router.put("/{circular_id}/status", response_model=CircularEnvelope)
async def update_status(
    circular_id: UUID,
    payload: StatusUpdateRequest,
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
):
    """Set a circular's status to pending, approved or rejected (admin only)."""
    circular = service.update_circular_status(db, circular_id, payload.status)
    return CircularEnvelope(
        message=f"Circular status updated to {circular.status}",
        circular=CircularResponse.model_validate(circular),
    )


@router.put("/{circular_id}", response_model=CircularEnvelope)
async def update_circular(
    circular_id: UUID,
    payload: CircularUpdateRequest,
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
):
    """Edit a circular's descriptive fields (admin only)."""
    changes = payload.model_dump(exclude_unset=True)
    circular = service.update_circular(db, circular_id, changes)
    return CircularEnvelope(
        message="Circular updated successfully",
        circular=CircularResponse.model_validate(circular),
    )


@router.delete("/{circular_id}", response_model=MessageResponse)
async def delete_circular(
    circular_id: UUID,
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStorePort, Depends(get_blob_store)],
):
    """Delete a circular and its file (admin only)."""
    await service.delete_circular(db, storage, circular_id)
    return MessageResponse(message="Circular deleted successfully")
