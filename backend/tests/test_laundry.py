"""Tests for laundry drop-off creation, photo uploads and listing."""
import re

from laundromat.config import settings
from tests.conftest import create_test_request, image_file, set_status, submit_laundry

REFERENCE_RE = re.compile(r"^LAU\d{6}$")


def _stored_files(upload_dir):
    photos = upload_dir / "photos"
    return sorted(p.name for p in photos.iterdir()) if photos.exists() else []


class TestDirectSubmission:
    """POST /api/laundry: full form submission."""

    def test_create_request(self, client):
        data = create_test_request(client, clothes_count=5)
        assert data["status"] == "Pending"
        assert REFERENCE_RE.match(data["reference_number"])
        assert data["clothes_count"] == 5
        assert data["name"] == "Thabo"
        assert data["room"] == "12B"
        assert data["photos"] == []
        assert data["date_submitted"] is not None
        assert data["date_completed"] is None
        assert data["notification_sent"] is False
        assert data["collection_name"] is None

    def test_room_is_optional(self, client):
        resp = client.post("/api/laundry/", data={
            "name": "Thabo",
            "surname": "Mokoena",
            "contact": "0821234567",
            "commune": "Commune A",
            "clothes_count": "2",
        })
        assert resp.status_code == 201
        assert resp.json()["room"] is None

    def test_reference_numbers_are_unique(self, client):
        codes = {create_test_request(client)["reference_number"] for _ in range(5)}
        assert len(codes) == 5

    def test_blank_field_rejected(self, client):
        resp = submit_laundry(client, name="   ")
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "name"

    def test_missing_field_rejected(self, client):
        resp = client.post("/api/laundry/", data={"name": "Thabo", "clothes_count": "3"})
        assert resp.status_code == 422

    def test_non_positive_count_rejected(self, client):
        resp = submit_laundry(client, clothes_count=0)
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "clothes_count"
        assert client.get("/api/laundry/").json() == []

    def test_overlong_contact_rejected(self, client):
        resp = submit_laundry(client, contact="0" * 25)
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "contact"
        assert client.get("/api/laundry/").json() == []

    def test_overlong_name_rejected(self, client):
        resp = submit_laundry(client, name="N" * 51)
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "name"

    def test_overlong_room_rejected(self, client):
        resp = submit_laundry(client, room="R" * 21)
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "room"

    def test_values_at_column_width_accepted(self, client):
        data = create_test_request(client, name="N" * 50, contact="0" * 20)
        assert data["name"] == "N" * 50


class TestPhotoUploads:
    """Multipart photo handling on submission."""

    def test_photos_stored_and_referenced(self, client, upload_dir):
        resp = submit_laundry(client, files=[
            image_file("shirt.jpg"),
            image_file("socks.PNG", content=b"\x89PNGfake", content_type="image/png"),
        ])
        assert resp.status_code == 201, resp.text
        photos = resp.json()["photos"]
        assert [p["original_name"] for p in photos] == ["shirt.jpg", "socks.PNG"]
        for photo in photos:
            assert re.match(r"^laundry-\d+-\d+\.(jpg|png)$", photo["filename"])
            assert photo["path"] == f"/uploads/photos/{photo['filename']}"
        assert photos[1]["size"] == len(b"\x89PNGfake")
        assert _stored_files(upload_dir) == sorted(p["filename"] for p in photos)

    def test_non_image_rejected_before_record_created(self, client, upload_dir):
        resp = submit_laundry(client, files=[
            image_file("shirt.jpg"),
            image_file("notes.txt", content=b"hello", content_type="text/plain"),
        ])
        assert resp.status_code == 400
        assert resp.json()["detail"]["field"] == "photos"
        assert client.get("/api/laundry/").json() == []
        assert _stored_files(upload_dir) == []

    def test_oversized_upload_rejected(self, client, upload_dir, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
        resp = submit_laundry(client, files=[image_file(content=b"x" * 11)])
        assert resp.status_code == 400
        assert "limit" in resp.json()["detail"]["message"]
        assert _stored_files(upload_dir) == []

    def test_too_many_photos_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "MAX_PHOTOS_PER_REQUEST", 2)
        resp = submit_laundry(client, files=[image_file(f"{i}.jpg") for i in range(3)])
        assert resp.status_code == 400
        assert client.get("/api/laundry/").json() == []


class TestListAndFetch:
    """GET /api/laundry and /api/laundry/{id}."""

    def test_list_newest_first(self, client):
        first = create_test_request(client, name="First")
        second = create_test_request(client, name="Second")
        resp = client.get("/api/laundry/")
        assert resp.status_code == 200
        ids = [r["id"] for r in resp.json()]
        assert ids == [second["id"], first["id"]]

    def test_list_pagination(self, client):
        created = [create_test_request(client) for _ in range(3)]
        page = client.get("/api/laundry/", params={"limit": 2}).json()
        assert [r["id"] for r in page] == [created[2]["id"], created[1]["id"]]
        rest = client.get("/api/laundry/", params={"limit": 2, "offset": 2}).json()
        assert [r["id"] for r in rest] == [created[0]["id"]]

    def test_list_filtered_by_status(self, client):
        pending = create_test_request(client)
        washing = create_test_request(client)
        set_status(client, washing["id"], "In Progress")

        resp = client.get("/api/laundry/", params={"status": "In Progress"})
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == [washing["id"]]

        resp = client.get("/api/laundry/", params={"status": "Pending"})
        assert [r["id"] for r in resp.json()] == [pending["id"]]

    def test_get_request(self, client):
        created = create_test_request(client)
        resp = client.get(f"/api/laundry/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["reference_number"] == created["reference_number"]

    def test_get_request_not_found(self, client):
        assert client.get("/api/laundry/9999").status_code == 404

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}
