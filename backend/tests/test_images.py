# Overview: Pytest coverage for gallery uploads and visibility.

import io
import os

import pytest
from sqlalchemy.exc import OperationalError
from werkzeug.datastructures import FileStorage

from gymdesk.extensions import db
from gymdesk.models import GymImage
from gymdesk.services import gallery_service


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _upload(client, headers, filename="front.png", **fields):
    data = {"image": (io.BytesIO(PNG_BYTES), filename)}
    data.update(fields)
    return client.post("/api/images", data=data, headers=headers, content_type="multipart/form-data")


@pytest.fixture
def upload_dir(app):
    return app.config["UPLOAD_DIR"]


class TestUpload:
    def test_upload_stores_file(self, client, admin_headers, upload_dir):
        resp = _upload(client, admin_headers, title="Front Entrance", category="exterior")
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["title"] == "Front Entrance"
        assert data["category"] == "EXTERIOR"
        assert data["visibility"] == "PUBLIC"
        assert data["image_url"].startswith("/uploads/")

        file_name = data["image_url"].rsplit("/", 1)[1]
        assert file_name.endswith(".png")
        assert os.path.exists(os.path.join(upload_dir, file_name))

        served = client.get(data["image_url"])
        assert served.status_code == 200
        assert served.data == PNG_BYTES

    def test_title_defaults_to_file_name(self, client, admin_headers):
        resp = _upload(client, admin_headers, filename="squat rack.jpg")
        assert resp.json["data"]["title"] == "squat_rack"

    def test_rejects_other_types(self, client, admin_headers):
        resp = _upload(client, admin_headers, filename="script.exe")
        assert resp.status_code == 400

    def test_requires_file(self, client, admin_headers):
        resp = client.post("/api/images", data={"title": "x"}, headers=admin_headers, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.json["message"] == "image file is required"

    def test_bad_category(self, client, admin_headers, db_session):
        resp = _upload(client, admin_headers, category="KITCHEN")
        assert resp.status_code == 400
        assert db_session.query(GymImage).count() == 0

    def test_failed_save_leaves_no_file(self, db_session, upload_dir, monkeypatch):
        def broken_commit():
            raise OperationalError("INSERT INTO gym_images", {}, Exception("database is locked"))

        before = set(os.listdir(upload_dir))
        monkeypatch.setattr(db.session, "commit", broken_commit)
        storage = FileStorage(stream=io.BytesIO(PNG_BYTES), filename="front.png")

        with pytest.raises(OperationalError):
            gallery_service.create_image(file_storage=storage, payload={})
        assert set(os.listdir(upload_dir)) == before

    def test_member_cannot_upload(self, client, member_headers):
        assert _upload(client, member_headers).status_code == 403


class TestVisibility:
    def test_admin_only_hidden_from_public(self, client, admin_headers, member_headers):
        _upload(client, admin_headers, title="Public")
        _upload(client, admin_headers, title="Private", visibility="ADMIN_ONLY")

        public = client.get("/api/images/public").json["data"]
        assert [i["title"] for i in public] == ["Public"]

        as_member = client.get("/api/images", headers=member_headers).json["data"]
        assert [i["title"] for i in as_member] == ["Public"]

        as_admin = client.get("/api/images", headers=admin_headers).json["data"]
        assert sorted(i["title"] for i in as_admin) == ["Private", "Public"]

    def test_category_filter(self, client, admin_headers):
        _upload(client, admin_headers, title="Rack", category="EQUIPMENT")
        _upload(client, admin_headers, title="Lobby", category="INTERIOR")

        data = client.get("/api/images/public?category=equipment").json["data"]
        assert [i["title"] for i in data] == ["Rack"]

    def test_sort_order(self, client, admin_headers):
        _upload(client, admin_headers, title="Second", sort_order="2")
        _upload(client, admin_headers, title="First", sort_order="1")

        data = client.get("/api/images/public").json["data"]
        assert [i["title"] for i in data] == ["First", "Second"]


class TestManage:
    def test_update_metadata(self, client, admin_headers):
        image = _upload(client, admin_headers).json["data"]
        resp = client.put(f"/api/images/{image['id']}", json={"visibility": "admin_only"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["visibility"] == "ADMIN_ONLY"

    def test_delete_removes_file(self, client, admin_headers, upload_dir):
        image = _upload(client, admin_headers).json["data"]
        path = os.path.join(upload_dir, image["image_url"].rsplit("/", 1)[1])

        assert client.delete(f"/api/images/{image['id']}", headers=admin_headers).status_code == 200
        assert not os.path.exists(path)
        assert client.delete(f"/api/images/{image['id']}", headers=admin_headers).status_code == 404

    def test_delete_with_missing_file(self, client, admin_headers, upload_dir):
        image = _upload(client, admin_headers).json["data"]
        os.remove(os.path.join(upload_dir, image["image_url"].rsplit("/", 1)[1]))

        assert client.delete(f"/api/images/{image['id']}", headers=admin_headers).status_code == 200
