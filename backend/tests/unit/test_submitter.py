"""Unit tests for submitter and origin variants"""

from uuid import uuid4

from educircular.domain.circulars.submitter import (
    ANONYMOUS_GUEST_NAME,
    AuthenticatedSubmitter,
    DirectUpload,
    FromSubmission,
    GuestSubmitter,
    guest_from_form,
    origin_columns,
    submitter_columns,
)


def test_blank_guest_name_becomes_anonymous():
    guest = guest_from_form("   ", "")
    assert guest == GuestSubmitter(name=ANONYMOUS_GUEST_NAME, email=None)


def test_guest_values_are_trimmed():
    guest = guest_from_form("  Parent Council ", " council@example.org ")
    assert guest.name == "Parent Council"
    assert guest.email == "council@example.org"


def test_guest_columns_have_no_owner():
    columns = submitter_columns(GuestSubmitter(name="Parent", email="p@example.org"))
    assert columns == {"uploaded_by_id": None, "guest_name": "Parent", "guest_email": "p@example.org"}


def test_authenticated_columns_have_no_guest_fields():
    user_id = uuid4()
    columns = submitter_columns(AuthenticatedSubmitter(user_id=user_id))
    assert columns == {"uploaded_by_id": user_id, "guest_name": None, "guest_email": None}


def test_origin_columns():
    submission_id = uuid4()
    assert origin_columns(DirectUpload()) == {"origin": "direct_upload", "source_submission_id": None}
    assert origin_columns(FromSubmission(original_submission_id=submission_id)) == {
        "origin": "submission",
        "source_submission_id": submission_id,
    }
