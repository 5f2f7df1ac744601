"""Tests for photo listing, retrieval and management endpoints."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from photoshare.models.photo import PhotoStatus
from photoshare.models.user import User
from photoshare.repositories.photo_repository import PhotoRepository
from tests.helpers import make_image_bytes, make_photo


def _user(db_session, email: str) -> User:
    return db_session.query(User).filter_by(email=email).one()


def _upload(client: TestClient, headers, title="Half Dome", tags="Mountains, yosemite", image: bytes | None = None, content_type="image/jpeg"):
    files = {"photo": ("photo.jpg", image if image is not None else make_image_bytes(), content_type)}
    data = {"title": title, "caption": "Winter light", "location": "Yosemite", "people": "Ansel, Virginia", "tags": tags}
    return client.post("/photos", files=files, data=data, headers=headers)


class TestListPhotos:
    def test_empty_listing(self, client: TestClient):
        response = client.get("/photos")
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": [],
            "pagination": {"page": 1, "limit": 12, "total": 0, "totalPages": 0, "hasMore": False},
        }

    def test_filter_sort_and_paginate(self, client: TestClient, db_session, creator_token):
        creator = _user(db_session, "ansel@example.com")
        make_photo(db_session, creator, "ten", tags=["nature"], likes=10, minutes=1)
        make_photo(db_session, creator, "five", tags=["nature"], likes=5, minutes=2)
        make_photo(db_session, creator, "twenty", tags=["nature"], likes=20, minutes=3)
        make_photo(db_session, creator, "street", tags=["city"], likes=50, minutes=4)

        response = client.get("/photos", params={"page": 1, "limit": 2, "filter": "nature", "sort": "popular"})
        body = response.json()

        assert response.status_code == 200
        assert [p["title"] for p in body["data"]] == ["twenty", "ten"]
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2, "hasMore": True}

    def test_malformed_params_fall_back_to_defaults(self, client: TestClient, db_session, creator_token):
        creator = _user(db_session, "ansel@example.com")
        make_photo(db_session, creator, "older", minutes=1)
        make_photo(db_session, creator, "newer", minutes=2)

        response = client.get("/photos", params={"page": "abc", "limit": "-4", "sort": "sideways"})
        body = response.json()

        assert response.status_code == 200
        assert body["pagination"]["page"] == 1
        assert body["pagination"]["limit"] == 12
        assert [p["title"] for p in body["data"]] == ["newer", "older"]

    def test_hidden_statuses_are_not_listed(self, client: TestClient, db_session, creator_token):
        creator = _user(db_session, "ansel@example.com")
        make_photo(db_session, creator, "approved")
        make_photo(db_session, creator, "pending", status=PhotoStatus.PENDING_REVIEW)
        make_photo(db_session, creator, "rejected", status=PhotoStatus.REJECTED)

        body = client.get("/photos").json()
        assert [p["title"] for p in body["data"]] == ["approved"]

    def test_creator_sees_own_pending_photos(self, client: TestClient, db_session, creator_headers):
        creator = _user(db_session, "ansel@example.com")
        make_photo(db_session, creator, "approved", minutes=1)
        make_photo(db_session, creator, "pending", status=PhotoStatus.PENDING_REVIEW, minutes=2)

        own = client.get("/photos", params={"creatorId": str(creator.id)}, headers=creator_headers).json()
        public = client.get("/photos", params={"creatorId": str(creator.id)}).json()

        assert [p["title"] for p in own["data"]] == ["pending", "approved"]
        assert [p["title"] for p in public["data"]] == ["approved"]

    def test_listed_photos_have_signed_urls_and_caller_flags(self, client: TestClient, db_session, creator_token, consumer_headers):
        creator = _user(db_session, "ansel@example.com")
        photo = make_photo(db_session, creator, "liked")
        client.post(f"/photos/{photo.id}/like", headers=consumer_headers)
        client.post(f"/photos/{photo.id}/rate", json={"rating": 4}, headers=consumer_headers)

        item = client.get("/photos", headers=consumer_headers).json()["data"][0]
        anonymous_item = client.get("/photos").json()["data"][0]

        assert "X-Amz-Signature=" in item["imageUrl"]
        assert item["userLiked"] is True
        assert item["userRating"] == 4
        assert anonymous_item["userLiked"] is False
        assert anonymous_item["userRating"] == 0

    def test_invalid_token_is_treated_as_anonymous(self, client: TestClient, invalid_auth_headers):
        assert client.get("/photos", headers=invalid_auth_headers).status_code == 200

    def test_store_failure_is_503(self, client: TestClient, monkeypatch):
        def broken(self, query):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        monkeypatch.setattr(PhotoRepository, "find_photos", broken)
        response = client.get("/photos")
        assert response.status_code == 503
        assert response.json() == {"success": False, "message": "Backend unavailable"}


class TestGetPhoto:
    def test_anonymous_get_increments_views(self, client: TestClient, db_session, creator_token):
        creator = _user(db_session, "ansel@example.com")
        photo = make_photo(db_session, creator, "viewed")

        first = client.get(f"/photos/{photo.id}").json()["data"]
        second = client.get(f"/photos/{photo.id}").json()["data"]

        assert first["userLiked"] is False
        assert first["userRating"] == 0
        assert first["views"] == 1
        assert second["views"] == 2

    def test_unknown_photo(self, client: TestClient):
        response = client.get(f"/photos/{uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Photo not found"}

    def test_pending_photo_visible_only_to_creator(self, client: TestClient, db_session, creator_headers, consumer_headers):
        creator = _user(db_session, "ansel@example.com")
        photo = make_photo(db_session, creator, "pending", status=PhotoStatus.PENDING_REVIEW)

        assert client.get(f"/photos/{photo.id}").status_code == 404
        assert client.get(f"/photos/{photo.id}", headers=consumer_headers).status_code == 404
        assert client.get(f"/photos/{photo.id}", headers=creator_headers).status_code == 200

    def test_rejected_photo_is_hidden_from_its_creator(self, client: TestClient, db_session, creator_headers):
        creator = _user(db_session, "ansel@example.com")
        photo = make_photo(db_session, creator, "rejected", status=PhotoStatus.REJECTED)

        response = client.get(f"/photos/{photo.id}", headers=creator_headers)
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Photo not found"}
        assert client.post(f"/photos/{photo.id}/like", headers=creator_headers).status_code == 404
        assert client.post(f"/photos/{photo.id}/rate", json={"rating": 5}, headers=creator_headers).status_code == 404
        assert client.get(f"/photos/{photo.id}/comments", headers=creator_headers).status_code == 404

    def test_view_count_failure_does_not_fail_read(self, client: TestClient, db_session, creator_token, monkeypatch):
        creator = _user(db_session, "ansel@example.com")
        photo = make_photo(db_session, creator, "stubborn")

        def broken(self, photo_id):
            raise OperationalError("UPDATE", {}, Exception("read-only"))

        monkeypatch.setattr(PhotoRepository, "increment_views", broken)
        response = client.get(f"/photos/{photo.id}")

        assert response.status_code == 200
        assert response.json()["data"]["views"] == 0


class TestUploadPhoto:
    def test_creator_upload(self, client: TestClient, db_session, creator_headers, fake_s3):
        response = _upload(client, creator_headers)
        assert response.status_code == 201
        data = response.json()["data"]

        assert data["title"] == "Half Dome"
        assert data["tags"] == ["mountains", "yosemite"]
        assert data["category"] == "mountains"
        assert data["people"] == ["Ansel", "Virginia"]
        assert data["status"] == "approved"
        assert data["width"] == 64
        assert data["height"] == 48
        assert data["creatorName"] == "Ansel Adams"
        assert "X-Amz-Signature=" in data["imageUrl"]

        blob_name = f"{data['id']}.jpg"
        assert blob_name in fake_s3.objects
        assert fake_s3.content_types[blob_name] == "image/jpeg"
        assert _user(db_session, "ansel@example.com").photos_count == 1

    def test_png_keeps_its_extension(self, client: TestClient, creator_headers, fake_s3):
        response = _upload(client, creator_headers, image=make_image_bytes("PNG"), content_type="image/png")
        assert response.status_code == 201
        assert f"{response.json()['data']['id']}.png" in fake_s3.objects

    def test_consumer_cannot_upload(self, client: TestClient, consumer_headers):
        response = _upload(client, consumer_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Only creators can upload photos"

    def test_anonymous_cannot_upload(self, client: TestClient):
        assert _upload(client, {}).status_code == 401

    def test_missing_title(self, client: TestClient, creator_headers):
        response = _upload(client, creator_headers, title="  ")
        assert response.status_code == 400
        assert response.json()["message"] == "Title is required"

    def test_disallowed_content_type(self, client: TestClient, creator_headers):
        assert _upload(client, creator_headers, content_type="application/pdf").status_code == 400

    def test_undecodable_image(self, client: TestClient, creator_headers, fake_s3):
        response = _upload(client, creator_headers, image=b"definitely not a jpeg")
        assert response.status_code == 400
        assert fake_s3.objects == {}

    def test_file_too_large(self, client: TestClient, creator_headers, monkeypatch):
        monkeypatch.setenv("UPLOAD_MAX_FILE_SIZE", "100")
        response = _upload(client, creator_headers)
        assert response.status_code == 400
        assert "too large" in response.json()["message"]


class TestUpdateAndDeletePhoto:
    def test_owner_can_edit(self, client: TestClient, creator_headers):
        photo_id = _upload(client, creator_headers).json()["data"]["id"]

        response = client.put(f"/photos/{photo_id}", json={"title": "Moonrise", "tags": ["Night", "hernandez", "night"]}, headers=creator_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Moonrise"
        assert data["tags"] == ["night", "hernandez"]
        assert data["category"] == "night"
        assert data["caption"] == "Winter light"

    def test_non_owner_cannot_edit(self, client: TestClient, creator_headers, consumer_headers):
        photo_id = _upload(client, creator_headers).json()["data"]["id"]
        response = client.put(f"/photos/{photo_id}", json={"title": "Mine now"}, headers=consumer_headers)
        assert response.status_code == 403

    def test_owner_can_delete(self, client: TestClient, db_session, creator_headers, fake_s3):
        photo_id = _upload(client, creator_headers).json()["data"]["id"]

        response = client.delete(f"/photos/{photo_id}", headers=creator_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert fake_s3.objects == {}
        assert client.get(f"/photos/{photo_id}").status_code == 404
        assert _user(db_session, "ansel@example.com").photos_count == 0

    def test_non_owner_cannot_delete(self, client: TestClient, creator_headers, consumer_headers):
        photo_id = _upload(client, creator_headers).json()["data"]["id"]
        assert client.delete(f"/photos/{photo_id}", headers=consumer_headers).status_code == 403

    def test_delete_survives_blob_failure(self, client: TestClient, creator_headers, fake_s3, monkeypatch):
        photo_id = _upload(client, creator_headers).json()["data"]["id"]

        async def broken(key):
            raise RuntimeError("storage down")

        monkeypatch.setattr(fake_s3, "delete_file", broken)
        assert client.delete(f"/photos/{photo_id}", headers=creator_headers).status_code == 200

    @pytest.mark.parametrize("method", ["put", "delete"])
    def test_unknown_photo(self, client: TestClient, creator_headers, method):
        kwargs = {"json": {"title": "x"}} if method == "put" else {}
        response = getattr(client, method)(f"/photos/{uuid4()}", headers=creator_headers, **kwargs)
        assert response.status_code == 404
