"""
HTTP tests for /api/v1/thumbnails.

Uses the TestClient fixture wired to a fake-backed UploadService; the
application lifespan is not entered.
"""

import pytest

from conftest import JPEG_BYTES, PNG_BYTES


def thumbnail_url(video_id: str) -> str:
    return f"/api/v1/thumbnails/{video_id}"


@pytest.mark.integration
class TestUploadThumbnail:
    def test_upload_and_fetch_round_trip(self, client, owned_video, owner_headers):
        response = client.post(
            thumbnail_url(owned_video.id),
            headers=owner_headers,
            files={"thumbnail": ("thumb.jpg", JPEG_BYTES, "image/jpeg")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == owned_video.id
        assert body["thumbnail_url"].startswith("http://localhost:8091/assets/")
        assert body["thumbnail_url"].endswith(".jpeg")

        fetched = client.get(thumbnail_url(owned_video.id))
        assert fetched.status_code == 200
        assert fetched.content == JPEG_BYTES
        assert fetched.headers["content-type"] == "image/jpeg"
        assert fetched.headers["cache-control"] == "no-store"

    def test_repeated_fetch_is_identical(self, client, owned_video, owner_headers):
        client.post(
            thumbnail_url(owned_video.id),
            headers=owner_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )

        first = client.get(thumbnail_url(owned_video.id))
        second = client.get(thumbnail_url(owned_video.id))

        assert first.content == second.content == PNG_BYTES
        assert first.headers["content-type"] == second.headers["content-type"] == "image/png"

    def test_requires_bearer_token(self, client, owned_video):
        response = client.post(
            thumbnail_url(owned_video.id),
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 401
        assert "error" in response.json()

    def test_rejects_invalid_token(self, client, owned_video):
        response = client.post(
            thumbnail_url(owned_video.id),
            headers={"Authorization": "Bearer not-a-jwt"},
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 401

    def test_non_owner_is_forbidden(self, client, owned_video, stranger_headers, fake_db):
        response = client.post(
            thumbnail_url(owned_video.id),
            headers=stranger_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 403
        assert fake_db.videos.replace_calls == 0

    def test_non_owner_with_bad_file_is_still_forbidden(self, client, owned_video, stranger_headers):
        response = client.post(
            thumbnail_url(owned_video.id),
            headers=stranger_headers,
            files={"thumbnail": ("anim.gif", b"GIF89a", "image/gif")},
        )

        assert response.status_code == 403

    def test_unknown_video(self, client, owner_headers):
        response = client.post(
            thumbnail_url("00000000-0000-4000-8000-000000000000"),
            headers=owner_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 404

    def test_invalid_video_id(self, client, owner_headers):
        response = client.post(
            thumbnail_url("not-a-uuid"),
            headers=owner_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid video ID"}

    def test_wrong_media_type(self, client, owned_video, owner_headers):
        response = client.post(
            thumbnail_url(owned_video.id),
            headers=owner_headers,
            files={"thumbnail": ("anim.gif", b"GIF89a", "image/gif")},
        )

        assert response.status_code == 400
        assert "image/gif" in response.json()["error"]

    def test_missing_form_field(self, client, owned_video, owner_headers):
        response = client.post(
            thumbnail_url(owned_video.id),
            headers=owner_headers,
            files={"other": ("thumb.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Thumbnail file missing"}

    def test_plain_text_field_is_rejected_as_missing(self, client, owned_video, owner_headers):
        response = client.post(
            thumbnail_url(owned_video.id),
            headers=owner_headers,
            files={"thumbnail": (None, "not-a-file")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Thumbnail file missing"}

    def test_too_large(self, client, owned_video, owner_headers):
        payload = b"\x00" * ((10 << 20) + 1)

        response = client.post(
            thumbnail_url(owned_video.id),
            headers=owner_headers,
            files={"thumbnail": ("big.png", payload, "image/png")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Thumbnail file size is greater than 10MB"}


@pytest.mark.integration
class TestGetThumbnail:
    def test_no_thumbnail_yet(self, client, owned_video):
        response = client.get(thumbnail_url(owned_video.id))

        assert response.status_code == 404
        assert response.json() == {"error": "Thumbnail not found"}

    def test_unknown_video(self, client):
        response = client.get(thumbnail_url("00000000-0000-4000-8000-000000000000"))

        assert response.status_code == 404
