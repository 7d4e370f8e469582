"""Integration tests for the circulars API

Covers the admin direct upload, public listing and download, and the
admin maintenance endpoints (status, edit, delete).
"""

import uuid

import pytest

from educircular.models import Circular, PendingUpload

UNKNOWN_ID = "3f2b8c1e-0000-4000-8000-000000000000"


@pytest.fixture
def published(admin_client, pdf_part, circular_form):
    """A circular uploaded directly by the admin."""
    response = admin_client.post("/api/circulars/upload", files=pdf_part(), data=circular_form())
    assert response.status_code == 201
    return response.json()["circular"]


def _legacy_circular(db_session, **fields) -> Circular:
    values = dict(
        title="Old Timetable",
        description="Written before status existed",
        category="Education",
        file_id=f"legacy-{uuid.uuid4()}",
        file_name="timetable.pdf",
        file_size=2048,
        guest_name="Archive",
        is_published=True,
        is_approved_by_admin=True,
        status=None,
    )
    values.update(fields)
    circular = Circular(**values)
    db_session.add(circular)
    db_session.commit()
    db_session.refresh(circular)
    return circular


class TestDirectUpload:

    def test_admin_upload_publishes_immediately(self, admin_client, admin_user, pdf_part, circular_form, db_session):
        response = admin_client.post(
            "/api/circulars/upload",
            files=pdf_part(name="exam-schedule.pdf", size_bytes=4096),
            data=circular_form(title="Exam Schedule", orderDate="2026-03-15"),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Circular uploaded successfully"
        circular = data["circular"]
        assert circular["status"] == "approved"
        assert circular["isApprovedByAdmin"] is True
        assert circular["isPublished"] is True
        assert circular["origin"] == "direct_upload"
        assert circular["fileSize"] == 4096
        assert circular["uploadedBy"]["id"] == str(admin_user.id)
        assert db_session.query(PendingUpload).count() == 0

    def test_requires_admin(self, client, user_client, pdf_part, circular_form):
        assert client.post("/api/circulars/upload", files=pdf_part(), data=circular_form()).status_code == 401
        assert user_client.post("/api/circulars/upload", files=pdf_part(), data=circular_form()).status_code == 403

    def test_missing_file(self, admin_client, circular_form):
        response = admin_client.post("/api/circulars/upload", data=circular_form())

        assert response.status_code == 400
        assert response.json()["message"] == "Please upload a PDF file"

    def test_empty_file(self, admin_client, pdf_part, circular_form):
        response = admin_client.post("/api/circulars/upload", files=pdf_part(content=b""), data=circular_form())

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestDownload:

    def test_download_returns_original_bytes(self, client, published, make_pdf):
        response = client.get(published["fileUrl"])

        assert response.status_code == 200
        assert response.content == make_pdf(10240)
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == 'attachment; filename="notice.pdf"'
        assert response.headers["content-length"] == "10240"

    def test_non_ascii_filename(self, client, admin_client, pdf_part, circular_form):
        uploaded = admin_client.post(
            "/api/circulars/upload",
            files=pdf_part(name="Rundschreiben-Prüfung.pdf"),
            data=circular_form(),
        ).json()["circular"]

        response = client.get(uploaded["fileUrl"])

        assert response.status_code == 200
        assert "filename*=utf-8''Rundschreiben-Pr%C3%BCfung.pdf" in response.headers["content-disposition"]

    def test_unknown_circular(self, client):
        response = client.get(f"/api/circulars/{UNKNOWN_ID}/download")

        assert response.status_code == 404
        assert response.json()["message"] == "Circular not found"

    def test_missing_blob(self, client, db_session):
        circular = _legacy_circular(db_session, file_id="gone")

        response = client.get(f"/api/circulars/{circular.id}/download")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestListing:

    def test_public_listing(self, client, published):
        response = client.get("/api/circulars")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [c["id"] for c in data["circulars"]] == [published["id"]]
        assert data["pagination"] == {"total": 1, "page": 1, "pages": 1}

    def test_category_filter(self, client, admin_client, pdf_part, circular_form):
        admin_client.post("/api/circulars/upload", files=pdf_part(), data=circular_form(category="Sports"))
        admin_client.post("/api/circulars/upload", files=pdf_part(), data=circular_form(category="Education"))

        response = client.get("/api/circulars?category=Sports")

        categories = [c["category"] for c in response.json()["circulars"]]
        assert categories == ["Sports"]

    def test_legacy_rows_count_as_approved(self, client, db_session):
        legacy = _legacy_circular(db_session)

        response = client.get("/api/circulars?status=approved")

        circulars = response.json()["circulars"]
        assert [c["id"] for c in circulars] == [str(legacy.id)]
        assert circulars[0]["status"] is None

    def test_unpublished_hidden(self, client, db_session):
        _legacy_circular(db_session, is_published=False, status="rejected")

        assert client.get("/api/circulars").json()["circulars"] == []

    def test_pagination(self, client, admin_client, pdf_part, circular_form):
        for i in range(3):
            admin_client.post("/api/circulars/upload", files=pdf_part(), data=circular_form(title=f"Notice {i}"))

        response = client.get("/api/circulars?page=2&limit=2")

        data = response.json()
        assert [c["title"] for c in data["circulars"]] == ["Notice 0"]
        assert data["pagination"] == {"total": 3, "page": 2, "pages": 2}

    def test_invalid_page(self, client):
        response = client.get("/api/circulars?page=0")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_get_single(self, client, published):
        response = client.get(f"/api/circulars/{published['id']}")

        assert response.status_code == 200
        assert response.json()["circular"]["title"] == "Holiday Notice"

    def test_malformed_id(self, client):
        assert client.get("/api/circulars/not-a-uuid").status_code == 400


class TestMaintenance:

    def test_update_status(self, admin_client, published):
        response = admin_client.put(f"/api/circulars/{published['id']}/status", json={"status": "rejected"})

        assert response.status_code == 200
        assert response.json()["message"] == "Circular status updated to rejected"
        assert response.json()["circular"]["status"] == "rejected"

    @pytest.mark.parametrize("body", [{"status": "archived"}, {}])
    def test_update_status_invalid(self, admin_client, published, body):
        response = admin_client.put(f"/api/circulars/{published['id']}/status", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid status"

    def test_update_fields(self, admin_client, published):
        response = admin_client.put(
            f"/api/circulars/{published['id']}",
            json={"title": "  Revised Holiday Notice  ", "category": "Events"},
        )

        assert response.status_code == 200
        circular = response.json()["circular"]
        assert circular["title"] == "Revised Holiday Notice"
        assert circular["category"] == "Events"
        assert circular["description"] == "School remains closed on Friday"

    def test_update_rejects_blank_title(self, admin_client, published):
        response = admin_client.put(f"/api/circulars/{published['id']}", json={"title": ""})

        assert response.status_code == 400

    def test_maintenance_requires_admin(self, user_client, published):
        circular_id = published["id"]

        assert user_client.put(f"/api/circulars/{circular_id}/status", json={"status": "rejected"}).status_code == 403
        assert user_client.put(f"/api/circulars/{circular_id}", json={"title": "x"}).status_code == 403
        assert user_client.delete(f"/api/circulars/{circular_id}").status_code == 403

    def test_delete(self, client, admin_client, published, db_session):
        response = admin_client.delete(f"/api/circulars/{published['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "Circular deleted successfully"
        assert db_session.query(Circular).count() == 0
        assert client.get(published["fileUrl"]).status_code == 404

    def test_delete_unknown(self, admin_client):
        assert admin_client.delete(f"/api/circulars/{UNKNOWN_ID}").status_code == 404


@pytest.fixture
def rejected(client, admin_client, pdf_part, circular_form):
    """A guest submission the admin rejected with notes."""
    upload_id = client.post(
        "/api/pending/guest-upload",
        files=pdf_part(),
        data=circular_form(guestName="Parent Council", guestEmail="parent@example.com"),
    ).json()["pendingUpload"]["id"]
    response = admin_client.put(f"/api/pending/{upload_id}/reject", json={"reviewNotes": "Forged signature"})
    assert response.status_code == 200
    return response.json()["circular"]


class TestVisibility:

    @pytest.mark.parametrize("viewer", ["client", "user_client"])
    def test_rejected_hidden_from_non_admins(self, request, rejected, viewer):
        http = request.getfixturevalue(viewer)

        response = http.get(f"/api/circulars/{rejected['id']}")
        assert response.status_code == 404
        assert response.json()["message"] == "Circular not found"
        assert http.get(rejected["fileUrl"]).status_code == 404

    def test_admin_reaches_rejected(self, admin_client, rejected, make_pdf):
        response = admin_client.get(f"/api/circulars/{rejected['id']}")

        assert response.status_code == 200
        assert response.json()["circular"]["reviewNotes"] == "Forged signature"

        download = admin_client.get(rejected["fileUrl"])
        assert download.status_code == 200
        assert download.content == make_pdf(10240)

    def test_unpublished_by_admin_hidden(self, client, admin_client, published):
        admin_client.put(f"/api/circulars/{published['id']}", json={"isPublished": False})

        assert client.get(f"/api/circulars/{published['id']}").status_code == 404
        assert client.get(published["fileUrl"]).status_code == 404

    def test_guest_email_shown_to_admin_only(self, client, user_client, admin_client, pdf_part, circular_form):
        upload_id = client.post(
            "/api/pending/guest-upload",
            files=pdf_part(),
            data=circular_form(guestName="Parent Council", guestEmail="parent@example.com"),
        ).json()["pendingUpload"]["id"]
        circular_id = admin_client.put(f"/api/pending/{upload_id}/approve").json()["circular"]["id"]

        for http in (client, user_client):
            listed = http.get("/api/circulars").json()["circulars"]
            assert [c["guestEmail"] for c in listed] == [None]
            assert listed[0]["guestName"] == "Parent Council"
            assert http.get(f"/api/circulars/{circular_id}").json()["circular"]["guestEmail"] is None

        listed = admin_client.get("/api/circulars").json()["circulars"]
        assert [c["guestEmail"] for c in listed] == ["parent@example.com"]
        single = admin_client.get(f"/api/circulars/{circular_id}").json()["circular"]
        assert single["guestEmail"] == "parent@example.com"
