"""Moderation workflow for submitted circulars.

A submission's bytes go to the blob store first, then a PendingUpload row
records it. Review consumes that row: the status flips from pending exactly
once through a conditional UPDATE, a Circular is materialized from it, and
the pending row is deleted, all inside one database transaction. The blob is
never copied; its reference moves from the pending row to the circular.
"""

import logging
from typing import List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.roles import can_delete_submission
from ..blobs import delete_blob_for_record, discard_blob, open_blob, store_upload_blob
from ..domain.circulars import (
    AuthenticatedSubmitter,
    FromSubmission,
    GuestSubmitter,
    StateTransitionError,
    SubmissionForm,
    SubmissionStatus,
    Submitter,
    UploadedPdf,
    check_upload,
    origin_columns,
    parse_status,
    submitter_columns,
    validate_guest_email,
    validate_transition,
)
from ..domain.circulars.ports import BlobStorePort, BlobStream
from ..errors import Forbidden, InvalidState, NotFoundError, ValidationFailure
from ..models.circular import Circular
from ..models.pending_upload import PendingUpload
from ..models.user import User
from ..observability.metrics import reviews_total, submissions_total

logger = logging.getLogger(__name__)

SUBMISSION_NOT_FOUND_MESSAGE = "Pending upload not found"
ALREADY_REVIEWED_MESSAGE = "This upload has already been reviewed"
NOT_OWNER_MESSAGE = "Not authorized to delete this submission"
APPROVED_DELETE_MESSAGE = (
    "Cannot delete approved circulars. This circular has been approved and published. "
    "Only administrators can manage published circulars."
)

TERMINAL_CIRCULAR_STATUSES = (SubmissionStatus.APPROVED.value, SubmissionStatus.REJECTED.value)


async def submit_circular(
    db: Session,
    storage: BlobStorePort,
    form: SubmissionForm,
    upload: Optional[UploadedPdf],
    submitter: Submitter,
    max_size_bytes: int,
) -> PendingUpload:
    """Accept a circular for moderation.

    Stores the file, then records a pending submission pointing at it. If
    the record cannot be written, the stored blob is deleted again.

    Raises:
        ValidationFailure: Missing fields or file, non-PDF, bad guest email
        StorageError: If the blob store is unavailable
    """
    checked = check_upload(form, upload, max_size_bytes)

    if isinstance(submitter, GuestSubmitter):
        is_valid, error_msg = validate_guest_email(submitter.email)
        if not is_valid:
            raise ValidationFailure(error_msg)

    blob_id = await store_upload_blob(storage, checked)

    submission = PendingUpload(
        title=checked.title,
        order_date=checked.order_date,
        description=checked.description,
        category=checked.category,
        file_id=blob_id,
        file_name=checked.filename,
        file_size=checked.size_bytes,
        status=SubmissionStatus.PENDING.value,
        **submitter_columns(submitter),
    )

    try:
        db.add(submission)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record submission for blob_id={blob_id}: {e}")
        await discard_blob(storage, blob_id)
        raise

    db.refresh(submission)

    kind = "user" if isinstance(submitter, AuthenticatedSubmitter) else "guest"
    submissions_total.labels(submitter=kind).inc()
    logger.info(
        f"Submitted circular for review: id={submission.id}, submitter={kind}, "
        f"file_id={blob_id}, size={checked.size_bytes}",
        extra={"submission_id": submission.id},
    )
    return submission


def get_submission(db: Session, submission_id: UUID) -> PendingUpload:
    """Load a pending upload.

    Raises:
        NotFoundError: If no pending upload has that id
    """
    submission = db.query(PendingUpload).filter(PendingUpload.id == submission_id).first()
    if submission is None:
        raise NotFoundError(SUBMISSION_NOT_FOUND_MESSAGE)
    return submission


def claim_submission(
    db: Session,
    submission_id: UUID,
    decision: SubmissionStatus,
    reviewer_id: UUID,
    review_notes: Optional[str] = None,
) -> bool:
    """Flip a submission out of pending if, and only if, it is still pending.

    This is the single compare-and-swap on status that decides a review:
    of any number of concurrent reviewers exactly one gets True. Does not
    commit.
    """
    validate_transition(SubmissionStatus.PENDING, decision)
    updated = (
        db.query(PendingUpload)
        .filter(
            PendingUpload.id == submission_id,
            PendingUpload.status == SubmissionStatus.PENDING.value,
        )
        .update(
            {
                PendingUpload.status: decision.value,
                PendingUpload.reviewed_by_id: reviewer_id,
                PendingUpload.review_notes: review_notes,
            },
            synchronize_session="fetch",
        )
    )
    return updated == 1


def _load_for_review(db: Session, submission_id: UUID, decision: SubmissionStatus) -> PendingUpload:
    """Load a submission that is about to be reviewed.

    A submission that was already materialized no longer has a pending row;
    it is reported as already reviewed rather than as unknown.

    Raises:
        NotFoundError: If the id was never a submission
        InvalidState: If the submission has already been reviewed
    """
    submission = db.query(PendingUpload).filter(PendingUpload.id == submission_id).first()
    if submission is None:
        materialized = (
            db.query(Circular.id)
            .filter(Circular.source_submission_id == submission_id)
            .first()
        )
        if materialized is not None:
            raise InvalidState(ALREADY_REVIEWED_MESSAGE)
        raise NotFoundError(SUBMISSION_NOT_FOUND_MESSAGE)

    try:
        validate_transition(parse_status(submission.status), decision)
    except StateTransitionError:
        raise InvalidState(ALREADY_REVIEWED_MESSAGE)

    return submission


def _review(
    db: Session,
    submission_id: UUID,
    reviewer: User,
    decision: SubmissionStatus,
    review_notes: Optional[str] = None,
) -> Circular:
    submission = _load_for_review(db, submission_id, decision)

    if not claim_submission(db, submission_id, decision, reviewer.id, review_notes):
        db.rollback()
        reviews_total.labels(outcome="conflict").inc()
        logger.warning(
            f"Lost review race: id={submission_id}, decision={decision.value}",
            extra={"submission_id": submission_id},
        )
        raise InvalidState(ALREADY_REVIEWED_MESSAGE)

    approved = decision == SubmissionStatus.APPROVED
    circular = Circular(
        title=submission.title,
        order_date=submission.order_date,
        description=submission.description,
        category=submission.category,
        file_id=submission.file_id,
        file_name=submission.file_name,
        file_size=submission.file_size,
        uploaded_by_id=submission.uploaded_by_id,
        guest_name=submission.guest_name,
        guest_email=submission.guest_email,
        is_published=approved,
        is_approved_by_admin=approved,
        status=decision.value,
        review_notes=review_notes,
        **origin_columns(FromSubmission(original_submission_id=submission.id)),
    )

    try:
        db.add(circular)
        # Circular row is written before the pending row goes away
        db.flush()
        db.delete(submission)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        reviews_total.labels(outcome="conflict").inc()
        logger.warning(f"Submission already materialized: id={submission_id}, error={e.orig}")
        raise InvalidState(ALREADY_REVIEWED_MESSAGE)
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(circular)
    reviews_total.labels(outcome=decision.value).inc()
    logger.info(
        f"Reviewed submission: id={submission_id}, decision={decision.value}, "
        f"circular_id={circular.id}, reviewer_id={reviewer.id}",
        extra={"submission_id": submission_id, "circular_id": circular.id},
    )
    return circular


def approve_submission(db: Session, submission_id: UUID, reviewer: User) -> Circular:
    """Approve and publish a pending submission.

    Raises:
        NotFoundError: If the submission doesn't exist
        InvalidState: If it has already been reviewed
    """
    return _review(db, submission_id, reviewer, SubmissionStatus.APPROVED)


def reject_submission(
    db: Session,
    submission_id: UUID,
    reviewer: User,
    review_notes: Optional[str] = None,
) -> Circular:
    """Reject a pending submission, retaining it unpublished with the notes.

    The notes are stored exactly as given.

    Raises:
        NotFoundError: If the submission doesn't exist
        InvalidState: If it has already been reviewed
    """
    return _review(db, submission_id, reviewer, SubmissionStatus.REJECTED, review_notes)


async def delete_submission(
    db: Session,
    storage: BlobStorePort,
    submission_id: UUID,
    requester: User,
) -> None:
    """Withdraw a submission and its file.

    Raises:
        NotFoundError: If the submission doesn't exist
        Forbidden: If the requester is neither an admin nor the owner
        InvalidState: If the submission is approved (reported as 403)
        StorageError: If the blob could not be deleted; the record is kept
    """
    submission = get_submission(db, submission_id)

    if not can_delete_submission(requester, submission):
        logger.info(f"Refused delete of submission id={submission_id} by user_id={requester.id}")
        raise Forbidden(NOT_OWNER_MESSAGE)

    if submission.status == SubmissionStatus.APPROVED.value:
        raise InvalidState(APPROVED_DELETE_MESSAGE, status_code=403)

    await delete_blob_for_record(storage, submission.file_id)

    db.delete(submission)
    db.commit()

    logger.info(
        f"Deleted submission: id={submission_id}, file_id={submission.file_id}, "
        f"by user_id={requester.id}",
        extra={"submission_id": submission_id},
    )


def list_pending(
    db: Session,
    status: Optional[str] = None,
    limit: int = 100,
) -> List[PendingUpload]:
    """Admin listing of submissions, newest first.

    Raises:
        ValidationFailure: If status is not a known review status
    """
    query = db.query(PendingUpload)
    if status:
        try:
            query = query.filter(PendingUpload.status == SubmissionStatus(status).value)
        except ValueError:
            raise ValidationFailure(f"Invalid status: {status}")

    return query.order_by(PendingUpload.created_at.desc()).limit(limit).all()


def list_my_submissions(db: Session, user_id: UUID) -> List[Union[PendingUpload, Circular]]:
    """Everything a user has submitted, newest first.

    Combines the user's pending rows with the circulars their reviewed
    submissions became.
    """
    pending = (
        db.query(PendingUpload)
        .filter(PendingUpload.uploaded_by_id == user_id)
        .all()
    )
    reviewed = (
        db.query(Circular)
        .filter(
            Circular.uploaded_by_id == user_id,
            Circular.status.in_(TERMINAL_CIRCULAR_STATUSES),
        )
        .all()
    )

    combined: List[Union[PendingUpload, Circular]] = [*pending, *reviewed]
    combined.sort(key=lambda record: record.created_at, reverse=True)
    return combined


async def open_submission_file(
    db: Session,
    storage: BlobStorePort,
    submission_id: UUID,
) -> Tuple[PendingUpload, BlobStream]:
    """Open a pending submission's file for preview.

    Returns:
        (submission, blob stream)

    Raises:
        NotFoundError: If the submission or its blob doesn't exist
    """
    submission = get_submission(db, submission_id)
    stream = await open_blob(storage, submission.file_id)
    return submission, stream
