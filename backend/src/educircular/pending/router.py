"""Submission and moderation endpoints

Guests and users submit circulars here; administrators list, preview,
approve, reject, and delete them.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..auth.dependencies import AdminUser, CurrentUser, OptionalUser
from ..config import get_settings
from ..database import get_db
from ..dependencies import get_blob_store
from ..domain.circulars import AuthenticatedSubmitter, SubmissionForm, guest_from_form
from ..domain.circulars.ports import BlobStorePort
from ..files import pdf_response, read_upload
from ..models.pending_upload import PendingUpload
from ..circulars.schemas import CircularEnvelope, CircularResponse, MessageResponse
from . import workflow
from .schemas import (
    MySubmissionsResponse,
    RejectRequest,
    SubmissionEnvelope,
    SubmissionListResponse,
    SubmissionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pending", tags=["Moderation"])

GUEST_SUBMITTED_MESSAGE = "Circular submitted for admin review. Thank you!"
USER_SUBMITTED_MESSAGE = "Circular submitted for review"


async def _submit(
    db: Session,
    storage: BlobStorePort,
    file: Optional[UploadFile],
    form: SubmissionForm,
    submitter,
) -> PendingUpload:
    max_size = get_settings().MAX_UPLOAD_SIZE_BYTES
    upload = await read_upload(file, max_size)
    return await workflow.submit_circular(db, storage, form, upload, submitter, max_size)


@router.post("/guest-upload", response_model=SubmissionEnvelope, status_code=status.HTTP_201_CREATED)
async def guest_upload(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStorePort, Depends(get_blob_store)],
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    order_date: Optional[str] = Form(None, alias="orderDate"),
    guest_name: Optional[str] = Form(None, alias="guestName"),
    guest_email: Optional[str] = Form(None, alias="guestEmail"),
):
    """Submit a circular without an account.

    The submission is attributed to guestName ("Anonymous" when blank) and
    waits for an administrator's review.

    Example:
        curl -X POST https://api.example.edu/api/pending/guest-upload \\
             -F "file=@notice.pdf" -F "title=Holiday Notice" \\
             -F "description=School closed" -F "category=Education"
    """
    form = SubmissionForm(title=title, description=description, category=category, order_date=order_date)
    submission = await _submit(db, storage, file, form, guest_from_form(guest_name, guest_email))
    return SubmissionEnvelope(
        message=GUEST_SUBMITTED_MESSAGE,
        pending_upload=SubmissionResponse.model_validate(submission),
    )


@router.post("/upload", response_model=SubmissionEnvelope, status_code=status.HTTP_201_CREATED)
async def upload(
    current_user: OptionalUser,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStorePort, Depends(get_blob_store)],
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    order_date: Optional[str] = Form(None, alias="orderDate"),
    guest_name: Optional[str] = Form(None, alias="guestName"),
    guest_email: Optional[str] = Form(None, alias="guestEmail"),
):
    """Submit a circular, attributed to the caller when signed in.

    Without a valid token the request is treated exactly like a guest upload.
    """
    form = SubmissionForm(title=title, description=description, category=category, order_date=order_date)
    if current_user is not None:
        submitter = AuthenticatedSubmitter(user_id=current_user.id)
        message = USER_SUBMITTED_MESSAGE
    else:
        submitter = guest_from_form(guest_name, guest_email)
        message = GUEST_SUBMITTED_MESSAGE

    submission = await _submit(db, storage, file, form, submitter)
    return SubmissionEnvelope(
        message=message,
        pending_upload=SubmissionResponse.model_validate(submission),
    )


@router.get("", response_model=SubmissionListResponse)
async def list_pending(
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
):
    """List submissions for review, newest first."""
    submissions = workflow.list_pending(db, status=status_filter, limit=limit)
    return SubmissionListResponse(
        pending_uploads=[SubmissionResponse.model_validate(s) for s in submissions]
    )


@router.get("/my-submissions", response_model=MySubmissionsResponse)
async def my_submissions(
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
):
    """The caller's submissions: still pending, and the circulars reviewed ones became."""
    records = workflow.list_my_submissions(db, current_user.id)
    items = [
        SubmissionResponse.model_validate(r) if isinstance(r, PendingUpload)
        else CircularResponse.model_validate(r)
        for r in records
    ]
    return MySubmissionsResponse(pending_uploads=items)


@router.get("/{submission_id}/file")
async def preview_file(
    submission_id: UUID,
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStorePort, Depends(get_blob_store)],
):
    """Stream a pending submission's PDF inline for review."""
    submission, stream = await workflow.open_submission_file(db, storage, submission_id)
    return pdf_response(stream, submission.file_name, disposition="inline")


@router.put("/{submission_id}/approve", response_model=CircularEnvelope)
async def approve(
    submission_id: UUID,
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
):
    """Approve a submission; it becomes a published circular."""
    circular = workflow.approve_submission(db, submission_id, admin)
    return CircularEnvelope(
        message="Circular approved and published",
        circular=CircularResponse.model_validate(circular),
    )


@router.put("/{submission_id}/reject", response_model=CircularEnvelope)
async def reject(
    submission_id: UUID,
    admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    payload: Optional[RejectRequest] = None,
):
    """Reject a submission; it is kept unpublished with the review notes."""
    notes = payload.review_notes if payload else None
    circular = workflow.reject_submission(db, submission_id, admin, notes)
    return CircularEnvelope(
        message="Circular rejected",
        circular=CircularResponse.model_validate(circular),
    )


@router.delete("/{submission_id}", response_model=MessageResponse)
async def delete(
    submission_id: UUID,
    current_user: CurrentUser,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStorePort, Depends(get_blob_store)],
):
    """Withdraw a submission. Owners may delete their own; admins any."""
    await workflow.delete_submission(db, storage, submission_id, current_user)
    return MessageResponse(message="Submission deleted successfully")
