"""Unit tests for the moderation workflow

Runs the workflow functions against SQLite and a moto-backed blob store.

Tests cover:
- Submission by guests and users, including the compensating blob delete
- Approve / reject materialization and the single-review rule
- The conditional status update that decides concurrent reviews
- Deletion rules (ownership, approved guard, blob failures)
- Listings
"""

from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from educircular.domain.circulars import (
    AuthenticatedSubmitter,
    GuestSubmitter,
    SubmissionForm,
    SubmissionStatus,
    UploadedPdf,
)
from educircular.errors import (
    Forbidden,
    InvalidState,
    NotFoundError,
    StorageError,
    ValidationFailure,
)
from educircular.models import Circular, PendingUpload
from educircular.pending import workflow

MAX_SIZE = 1024 * 1024
TEST_BUCKET = "test-educircular-bucket"


def _form(title="Holiday Notice") -> SubmissionForm:
    return SubmissionForm(title=title, description="School closed on Friday", category="Education")


def _bucket_keys(s3_client):
    response = s3_client.list_objects_v2(Bucket=TEST_BUCKET)
    return [obj["Key"] for obj in response.get("Contents", [])]


@pytest.fixture
def pdf(make_pdf):
    return UploadedPdf(filename="notice.pdf", content_type="application/pdf", data=make_pdf(10240))


@pytest.fixture
def submit(db_session, blob_store, pdf):
    """Submit a circular with sensible defaults."""
    async def _submit(submitter=None, title="Holiday Notice"):
        return await workflow.submit_circular(
            db_session,
            blob_store,
            _form(title),
            pdf,
            submitter or GuestSubmitter(),
            MAX_SIZE,
        )
    return _submit


class TestSubmit:

    @pytest.mark.asyncio
    async def test_guest_submission(self, submit, blob_store):
        submission = await submit(GuestSubmitter())

        assert submission.status == "pending"
        assert submission.guest_name == "Anonymous"
        assert submission.guest_email is None
        assert submission.uploaded_by_id is None
        assert submission.file_size == 10240
        assert submission.file_name == "notice.pdf"
        assert await blob_store.exists(submission.file_id)

    @pytest.mark.asyncio
    async def test_user_submission(self, submit, regular_user):
        submission = await submit(AuthenticatedSubmitter(user_id=regular_user.id))

        assert submission.uploaded_by_id == regular_user.id
        assert submission.guest_name is None
        assert submission.guest_email is None

    @pytest.mark.asyncio
    async def test_invalid_guest_email_stores_nothing(self, submit, s3_client):
        with pytest.raises(ValidationFailure, match="Invalid email format"):
            await submit(GuestSubmitter(name="Parent", email="not-an-email"))

        assert _bucket_keys(s3_client) == []

    @pytest.mark.asyncio
    async def test_missing_file(self, db_session, blob_store):
        with pytest.raises(ValidationFailure, match="Please upload a PDF file"):
            await workflow.submit_circular(db_session, blob_store, _form(), None, GuestSubmitter(), MAX_SIZE)

    @pytest.mark.asyncio
    async def test_failed_record_write_discards_blob(self, submit, db_session, s3_client, monkeypatch):
        def failing_commit():
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(OperationalError):
            await submit()

        assert _bucket_keys(s3_client) == []

    @pytest.mark.asyncio
    async def test_storage_unavailable(self, submit, blob_store, db_session, monkeypatch):
        async def failing_store(data, filename, content_type):
            raise StorageError("Object storage unreachable")

        monkeypatch.setattr(blob_store, "store", failing_store)

        with pytest.raises(StorageError):
            await submit()

        assert db_session.query(PendingUpload).count() == 0


class TestReview:

    @pytest.mark.asyncio
    async def test_approve_materializes_published_circular(self, submit, db_session, admin_user):
        submission = await submit()
        submission_id, file_id = submission.id, submission.file_id

        circular = workflow.approve_submission(db_session, submission_id, admin_user)

        assert circular.is_published is True
        assert circular.is_approved_by_admin is True
        assert circular.status == "approved"
        assert circular.file_id == file_id
        assert circular.file_size == 10240
        assert circular.title == "Holiday Notice"
        assert circular.guest_name == "Anonymous"
        assert circular.origin == "submission"
        assert circular.source_submission_id == submission_id

        assert db_session.query(PendingUpload).filter(PendingUpload.id == submission_id).first() is None
        assert db_session.query(Circular).filter(Circular.file_id == file_id).count() == 1

    @pytest.mark.asyncio
    async def test_reject_retains_unpublished_circular(self, submit, db_session, admin_user):
        submission = await submit()
        submission_id = submission.id

        circular = workflow.reject_submission(db_session, submission_id, admin_user, "Duplicate notice")

        assert circular.is_published is False
        assert circular.is_approved_by_admin is False
        assert circular.status == "rejected"
        assert circular.review_notes == "Duplicate notice"
        assert db_session.query(PendingUpload).count() == 0

    @pytest.mark.asyncio
    async def test_reject_without_notes(self, submit, db_session, admin_user):
        submission = await submit()

        circular = workflow.reject_submission(db_session, submission.id, admin_user)

        assert circular.review_notes is None

    @pytest.mark.asyncio
    async def test_reject_notes_stored_as_given(self, submit, db_session, admin_user):
        submission = await submit()
        notes = "  Signature missing.\n  Please resubmit.  "

        circular = workflow.reject_submission(db_session, submission.id, admin_user, notes)

        assert circular.review_notes == notes

    @pytest.mark.asyncio
    async def test_user_submission_keeps_owner(self, submit, db_session, admin_user, regular_user):
        submission = await submit(AuthenticatedSubmitter(user_id=regular_user.id))

        circular = workflow.approve_submission(db_session, submission.id, admin_user)

        assert circular.uploaded_by_id == regular_user.id
        assert circular.guest_name is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("first,second", [
        ("approve", "approve"),
        ("approve", "reject"),
        ("reject", "approve"),
        ("reject", "reject"),
    ])
    async def test_second_review_is_invalid_state(self, submit, db_session, admin_user, first, second):
        submission = await submit()
        submission_id = submission.id
        actions = {
            "approve": lambda: workflow.approve_submission(db_session, submission_id, admin_user),
            "reject": lambda: workflow.reject_submission(db_session, submission_id, admin_user),
        }

        actions[first]()
        with pytest.raises(InvalidState, match="already been reviewed"):
            actions[second]()

        assert db_session.query(Circular).count() == 1

    def test_unknown_submission_is_not_found(self, db_session, admin_user):
        with pytest.raises(NotFoundError):
            workflow.approve_submission(db_session, uuid4(), admin_user)
        with pytest.raises(NotFoundError):
            workflow.reject_submission(db_session, uuid4(), admin_user)


class TestConditionalClaim:

    @pytest.mark.asyncio
    async def test_only_first_claim_wins(self, submit, db_session, admin_user):
        submission = await submit()

        first = workflow.claim_submission(db_session, submission.id, SubmissionStatus.APPROVED, admin_user.id)
        second = workflow.claim_submission(db_session, submission.id, SubmissionStatus.REJECTED, admin_user.id)

        assert first is True
        assert second is False

    @pytest.mark.asyncio
    async def test_reviewer_that_loses_the_race_gets_invalid_state(
        self, submit, db_session, admin_user, monkeypatch
    ):
        submission = await submit()
        submission_id = submission.id
        stale = workflow.get_submission(db_session, submission_id)

        # Another reviewer flips the status between our read and our write
        assert workflow.claim_submission(db_session, submission_id, SubmissionStatus.REJECTED, admin_user.id)
        db_session.commit()
        monkeypatch.setattr(workflow, "_load_for_review", lambda db, sid, decision: stale)

        with pytest.raises(InvalidState):
            workflow.approve_submission(db_session, submission_id, admin_user)

        assert db_session.query(Circular).count() == 0


class TestDelete:

    @pytest.mark.asyncio
    async def test_owner_deletes_pending_submission(self, submit, db_session, blob_store, regular_user):
        submission = await submit(AuthenticatedSubmitter(user_id=regular_user.id))
        submission_id, file_id = submission.id, submission.file_id

        await workflow.delete_submission(db_session, blob_store, submission_id, regular_user)

        assert db_session.query(PendingUpload).count() == 0
        assert not await blob_store.exists(file_id)

    @pytest.mark.asyncio
    async def test_other_user_forbidden(self, submit, db_session, blob_store, regular_user, other_user):
        submission = await submit(AuthenticatedSubmitter(user_id=regular_user.id))

        with pytest.raises(Forbidden, match="Not authorized"):
            await workflow.delete_submission(db_session, blob_store, submission.id, other_user)

        assert db_session.query(PendingUpload).count() == 1

    @pytest.mark.asyncio
    async def test_guest_submission_admin_only(self, submit, db_session, blob_store, regular_user, admin_user):
        submission = await submit(GuestSubmitter(name="Parent"))

        with pytest.raises(Forbidden):
            await workflow.delete_submission(db_session, blob_store, submission.id, regular_user)

        await workflow.delete_submission(db_session, blob_store, submission.id, admin_user)
        assert db_session.query(PendingUpload).count() == 0

    @pytest.mark.asyncio
    async def test_approved_submission_cannot_be_deleted(self, submit, db_session, blob_store, admin_user):
        submission = await submit()
        submission.status = "approved"
        db_session.commit()

        with pytest.raises(InvalidState) as exc_info:
            await workflow.delete_submission(db_session, blob_store, submission.id, admin_user)

        assert exc_info.value.status_code == 403
        assert await blob_store.exists(submission.file_id)

    @pytest.mark.asyncio
    async def test_missing_blob_is_tolerated(self, submit, db_session, blob_store, admin_user):
        submission = await submit()
        await blob_store.delete(submission.file_id)

        await workflow.delete_submission(db_session, blob_store, submission.id, admin_user)

        assert db_session.query(PendingUpload).count() == 0

    @pytest.mark.asyncio
    async def test_blob_failure_keeps_record(self, submit, db_session, blob_store, admin_user, monkeypatch):
        submission = await submit()

        async def failing_delete(blob_id):
            raise StorageError("Failed to delete file: InternalError")

        monkeypatch.setattr(blob_store, "delete", failing_delete)

        with pytest.raises(StorageError):
            await workflow.delete_submission(db_session, blob_store, submission.id, admin_user)

        assert db_session.query(PendingUpload).count() == 1

    @pytest.mark.asyncio
    async def test_unknown_submission(self, db_session, blob_store, admin_user):
        with pytest.raises(NotFoundError):
            await workflow.delete_submission(db_session, blob_store, uuid4(), admin_user)


class TestListings:

    @pytest.mark.asyncio
    async def test_list_pending_newest_first(self, submit, db_session):
        await submit(title="First")
        await submit(title="Second")

        titles = [s.title for s in workflow.list_pending(db_session)]

        assert titles == ["Second", "First"]

    @pytest.mark.asyncio
    async def test_list_pending_filters_and_limits(self, submit, db_session):
        for i in range(3):
            await submit(title=f"Notice {i}")

        assert len(workflow.list_pending(db_session, status="pending", limit=2)) == 2
        assert workflow.list_pending(db_session, status="rejected") == []

        with pytest.raises(ValidationFailure):
            workflow.list_pending(db_session, status="archived")

    @pytest.mark.asyncio
    async def test_my_submissions_combines_pending_and_reviewed(
        self, submit, db_session, admin_user, regular_user, other_user
    ):
        mine = AuthenticatedSubmitter(user_id=regular_user.id)
        await submit(mine, title="Still pending")
        approved = await submit(mine, title="Approved one")
        rejected = await submit(mine, title="Rejected one")
        await submit(AuthenticatedSubmitter(user_id=other_user.id), title="Not mine")

        workflow.approve_submission(db_session, approved.id, admin_user)
        workflow.reject_submission(db_session, rejected.id, admin_user, "Wrong category")

        records = workflow.list_my_submissions(db_session, regular_user.id)

        assert [r.title for r in records] == ["Rejected one", "Approved one", "Still pending"]
        assert isinstance(records[0], Circular)
        assert isinstance(records[2], PendingUpload)

    @pytest.mark.asyncio
    async def test_open_submission_file(self, submit, db_session, blob_store, make_pdf):
        submission = await submit()

        record, stream = await workflow.open_submission_file(db_session, blob_store, submission.id)

        assert record.id == submission.id
        assert b"".join(stream.chunks) == make_pdf(10240)
