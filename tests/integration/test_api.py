"""Integration tests for instadream.api.main — FastAPI REST API endpoints.

All tests use the FastAPI TestClient with fake collaborators installed on
``app.state`` so that no external service is contacted.  Tests cover every
endpoint:

- ``GET /api/templates`` — Catalog delivery.
- ``POST /api/prompt/preview`` — Prompt preview.
- ``POST /api/prompt/validate`` — Prompt validation.
- ``POST /api/generate-image`` — Image generation and storage.
- ``POST /api/generate-caption`` — Caption generation.
- ``GET /api/posts`` — History listing.
- ``GET /api/posts/{id}`` — Single post.
- ``DELETE /api/posts/{id}`` — Post deletion.
- ``POST /api/upload-storage`` — Image upload.
"""

from __future__ import annotations

import base64

import pytest

from instadream.core.posts_db import PostStatus
from instadream.core.prompt_builder import CompositionRequest, compose

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

# ---------------------------------------------------------------------------
# Prompt endpoint tests.
# ---------------------------------------------------------------------------


class TestTemplates:
    """Test GET /api/templates."""

    def test_returns_all_facets(self, test_client):
        resp = test_client.get("/api/templates")
        assert resp.status_code == 200
        data = resp.json()
        assert list(data["templates"]) == ["subject_type", "background", "lighting", "mood"]
        assert all(len(options) == 8 for options in data["templates"].values())

    def test_returns_presets(self, test_client):
        data = test_client.get("/api/templates").json()
        assert len(data["quick_add_modifiers"]) == 10
        assert data["quality_boost"][0] == "Instagram aesthetic"
        assert "version" in data

    def test_is_stable(self, test_client):
        assert test_client.get("/api/templates").json() == test_client.get("/api/templates").json()


class TestPromptPreview:
    """Test POST /api/prompt/preview."""

    def test_preview(self, test_client):
        payload = {
            "prompt": "a cup of coffee",
            "subject_type": "lifestyle",
            "background": "natural_outdoor",
            "lighting": "golden_hour",
            "mood": "bright_airy",
        }
        resp = test_client.post("/api/prompt/preview", json=payload)
        assert resp.status_code == 200
        data = resp.json()
        assert data["composed_prompt"].startswith(
            "lifestyle photography, candid moment, a cup of coffee, natural outdoor setting"
        )
        assert data["is_fully_specified"] is True
        assert data["word_count"] == len(data["composed_prompt"].split())

    def test_preview_does_not_validate(self, test_client):
        resp = test_client.post(
            "/api/prompt/preview",
            json={"prompt": "", "include_quality_boost": False},
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "composed_prompt": "",
            "word_count": 0,
            "is_fully_specified": False,
        }

    def test_missing_prompt_is_422(self, test_client):
        assert test_client.post("/api/prompt/preview", json={}).status_code == 422


class TestPromptValidate:
    """Test POST /api/prompt/validate."""

    def test_valid(self, test_client):
        resp = test_client.post("/api/prompt/validate", json={"prompt": "a cup of coffee"})
        assert resp.json() == {"ok": True, "errors": []}

    def test_too_short(self, test_client):
        data = test_client.post("/api/prompt/validate", json={"prompt": "hi"}).json()
        assert data["ok"] is False
        assert data["errors"] == ["Base prompt must be at least 3 characters"]


# ---------------------------------------------------------------------------
# Generation endpoint tests.
# ---------------------------------------------------------------------------


class TestGenerateImage:
    """Test POST /api/generate-image."""

    def test_template_mode_composes_prompt(self, test_client, fake_image_client, posts_db):
        payload = {"prompt": "a cup of coffee", "subject_type": "food", "mood": "warm_cozy"}
        resp = test_client.post("/api/generate-image", json=payload)
        assert resp.status_code == 200
        data = resp.json()

        expected = compose(
            CompositionRequest(base_prompt="a cup of coffee", subject_type="food", mood="warm_cozy")
        )
        assert data["success"] is True
        assert data["prompt"] == expected
        assert fake_image_client.calls[0]["prompt"] == expected

        post = posts_db.get_post(data["post_id"])
        assert post.status is PostStatus.COMPLETED
        assert post.prompt == expected
        assert post.image_url == data["image_url"]
        assert post.storage_key == data["storage_key"]
        assert post.model_used == "bytedance/seedream-4"

    def test_generated_image_is_copied_to_storage(self, test_client, fake_storage):
        data = test_client.post("/api/generate-image", json={"prompt": "a cup of coffee"}).json()
        assert fake_storage.fetched_urls == ["https://replicate.delivery/out/image.png"]
        assert data["storage_key"] in fake_storage.objects

    def test_manual_mode_sends_prompt_verbatim(self, test_client, fake_image_client):
        resp = test_client.post(
            "/api/generate-image",
            json={"prompt": "hi", "is_manual_prompt": True, "mood": "dark_moody"},
        )
        assert resp.status_code == 200
        assert fake_image_client.calls[0]["prompt"] == "hi"

    def test_invalid_prompt_is_400(self, test_client, fake_image_client, posts_db):
        resp = test_client.post("/api/generate-image", json={"prompt": "hi"})
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["error"] == "Invalid prompt configuration"
        assert detail["details"] == ["Base prompt must be at least 3 characters"]
        assert fake_image_client.calls == []
        assert posts_db.list_posts() == []

    def test_empty_prompt_is_422(self, test_client):
        assert test_client.post("/api/generate-image", json={"prompt": ""}).status_code == 422

    def test_generation_failure_marks_post_failed(
        self, test_client, failing_image_client, posts_db
    ):
        from instadream.api.main import app

        app.state.image_client = failing_image_client
        resp = test_client.post("/api/generate-image", json={"prompt": "a cup of coffee"})
        assert resp.status_code == 502
        assert "NSFW" in resp.json()["detail"]

        [post] = posts_db.list_posts()
        assert post.status is PostStatus.FAILED
        assert "NSFW" in post.error_message

    def test_storage_failure_after_generation_marks_post_failed(
        self, test_client, fake_image_client, fake_storage, posts_db
    ):
        fake_storage.fail_uploads = True
        resp = test_client.post("/api/generate-image", json={"prompt": "a cup of coffee"})
        assert resp.status_code == 502
        assert len(fake_image_client.calls) == 1
        assert fake_storage.fetched_urls == ["https://replicate.delivery/out/image.png"]

        [post] = posts_db.list_posts()
        assert post.status is PostStatus.FAILED
        assert post.error_message == "Failed to upload image: unreachable"

    def test_unexpected_error_marks_post_failed(self, fake_image_client, posts_db, test_client):
        from fastapi.testclient import TestClient

        from instadream.api.main import app

        fake_image_client.error = ValueError("unexpected payload")
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.post("/api/generate-image", json={"prompt": "a cup of coffee"})
        assert resp.status_code == 500

        [post] = posts_db.list_posts()
        assert post.status is PostStatus.FAILED
        assert post.error_message == "unexpected payload"

    def test_existing_post_is_updated(self, test_client, posts_db):
        post = posts_db.create_post("old prompt", status=PostStatus.FAILED)
        resp = test_client.post(
            "/api/generate-image",
            json={"prompt": "a cup of coffee", "post_id": post.id},
        )
        assert resp.json()["post_id"] == post.id
        assert posts_db.get_post(post.id).status is PostStatus.COMPLETED
        assert len(posts_db.list_posts()) == 1

    def test_unknown_post_is_404(self, test_client):
        resp = test_client.post(
            "/api/generate-image",
            json={"prompt": "a cup of coffee", "post_id": 999},
        )
        assert resp.status_code == 404

    def test_data_url_reference_is_uploaded(
        self, test_client, fake_image_client, fake_storage, posts_db
    ):
        resp = test_client.post(
            "/api/generate-image",
            json={
                "prompt": "a cup of coffee",
                "reference_image": PNG_DATA_URL,
                "image_prompt_strength": 0.4,
            },
        )
        post = posts_db.get_post(resp.json()["post_id"])
        assert fake_storage.objects[post.reference_storage_key][0] == PNG_BYTES
        call = fake_image_client.calls[0]
        assert call["reference_image"] == post.reference_image_url
        assert call["image_prompt_strength"] == 0.4

    def test_url_reference_is_passed_through(self, test_client, fake_image_client, posts_db):
        resp = test_client.post(
            "/api/generate-image",
            json={"prompt": "a cup of coffee", "reference_image": "https://example.com/ref.jpg"},
        )
        post = posts_db.get_post(resp.json()["post_id"])
        assert post.reference_image_url == "https://example.com/ref.jpg"
        assert post.reference_storage_key is None
        assert fake_image_client.calls[0]["reference_image"] == "https://example.com/ref.jpg"

    def test_reference_upload_failure_does_not_fail_request(
        self, test_client, fake_image_client, fake_storage
    ):
        fake_storage.fail_uploads = True
        resp = test_client.post(
            "/api/generate-image",
            json={"prompt": "a cup of coffee", "reference_image": PNG_DATA_URL},
        )
        # The final copy into storage also fails, so the request reports 502,
        # but the model was still called with the original reference.
        assert resp.status_code == 502
        assert fake_image_client.calls[0]["reference_image"] == PNG_DATA_URL


class TestGenerateCaption:
    """Test POST /api/generate-caption."""

    def test_generate_caption(self, test_client, fake_caption_client):
        resp = test_client.post(
            "/api/generate-caption",
            json={"prompt": "my morning coffee", "tone": "inspirational"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "caption": "Morning coffee ☕\n\n#coffee #morning"}
        assert fake_caption_client.calls[0]["tone"] == "inspirational"

    def test_caption_attached_to_post(self, test_client, posts_db):
        post = posts_db.create_post("prompt")
        test_client.post("/api/generate-caption", json={"prompt": "coffee", "post_id": post.id})
        assert posts_db.get_post(post.id).caption.startswith("Morning coffee")

    def test_invalid_tone_is_422(self, test_client):
        resp = test_client.post("/api/generate-caption", json={"prompt": "p", "tone": "sarcastic"})
        assert resp.status_code == 422

    def test_caption_failure_is_502(self, test_client, fake_caption_client):
        fake_caption_client.fail = True
        resp = test_client.post("/api/generate-caption", json={"prompt": "coffee"})
        assert resp.status_code == 502


# ---------------------------------------------------------------------------
# History endpoint tests.
# ---------------------------------------------------------------------------


class TestPosts:
    """Test the /api/posts endpoints."""

    def test_list_posts(self, test_client, posts_db):
        posts_db.create_post("one")
        posts_db.create_post("two", status=PostStatus.COMPLETED)
        data = test_client.get("/api/posts").json()
        assert data["success"] is True
        assert data["count"] == 2
        assert [p["prompt"] for p in data["posts"]] == ["two", "one"]

    def test_list_posts_status_filter(self, test_client, posts_db):
        posts_db.create_post("one")
        posts_db.create_post("two", status=PostStatus.COMPLETED)
        data = test_client.get("/api/posts", params={"status": "completed"}).json()
        assert [p["prompt"] for p in data["posts"]] == ["two"]
        assert data["posts"][0]["status"] == "completed"

    def test_list_posts_limit(self, test_client, posts_db):
        for i in range(4):
            posts_db.create_post(f"post {i}")
        assert test_client.get("/api/posts", params={"limit": 2}).json()["count"] == 2

    def test_list_posts_default_limit(self, test_client, posts_db, monkeypatch):
        from instadream.api import main

        monkeypatch.setattr(main.config, "posts_default_limit", 3)
        for i in range(5):
            posts_db.create_post(f"post {i}")
        assert test_client.get("/api/posts").json()["count"] == 3

    @pytest.mark.parametrize("limit", [0, -1])
    def test_list_posts_rejects_non_positive_limit(self, test_client, limit):
        assert test_client.get("/api/posts", params={"limit": limit}).status_code == 422

    def test_get_post(self, test_client, posts_db):
        post = posts_db.create_post("one")
        data = test_client.get(f"/api/posts/{post.id}").json()
        assert data["post"]["id"] == post.id

    def test_get_missing_post(self, test_client):
        resp = test_client.get("/api/posts/999")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Post not found"

    def test_delete_post_removes_images(self, test_client, posts_db, fake_storage):
        post = posts_db.create_post("one")
        posts_db.update_post(post.id, storage_key="a.png", reference_storage_key="ref.png")
        resp = test_client.delete(f"/api/posts/{post.id}")
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert fake_storage.deleted == ["a.png", "ref.png"]
        assert posts_db.get_post(post.id) is None

    def test_delete_post_tolerates_storage_failure(self, test_client, posts_db, fake_storage):
        post = posts_db.create_post("one")
        posts_db.update_post(post.id, storage_key="a.png")
        fake_storage.fail_deletes = True
        assert test_client.delete(f"/api/posts/{post.id}").status_code == 200
        assert posts_db.get_post(post.id) is None

    def test_delete_missing_post(self, test_client):
        assert test_client.delete("/api/posts/999").status_code == 404

    def test_invalid_post_id_is_422(self, test_client):
        assert test_client.get("/api/posts/abc").status_code == 422


# ---------------------------------------------------------------------------
# Storage endpoint tests.
# ---------------------------------------------------------------------------


class TestUploadStorage:
    """Test POST /api/upload-storage."""

    def test_upload_from_url(self, test_client, fake_storage):
        resp = test_client.post("/api/upload-storage", json={"image_url": "https://x/y.png"})
        assert resp.status_code == 200
        assert fake_storage.fetched_urls == ["https://x/y.png"]
        assert resp.json()["storage_key"] in fake_storage.objects

    def test_upload_from_data_url(self, test_client, fake_storage):
        resp = test_client.post("/api/upload-storage", json={"image_data": PNG_DATA_URL})
        key = resp.json()["storage_key"]
        assert fake_storage.objects[key] == (PNG_BYTES, "image/png")

    def test_upload_from_raw_base64(self, test_client, fake_storage):
        resp = test_client.post(
            "/api/upload-storage",
            json={"image_data": base64.b64encode(PNG_BYTES).decode(), "content_type": "image/jpeg"},
        )
        key = resp.json()["storage_key"]
        assert fake_storage.objects[key] == (PNG_BYTES, "image/jpeg")

    def test_invalid_base64(self, test_client):
        resp = test_client.post("/api/upload-storage", json={"image_data": "not base64!"})
        assert resp.status_code == 400

    def test_missing_source(self, test_client):
        resp = test_client.post("/api/upload-storage", json={})
        assert resp.status_code == 400

    def test_storage_failure_is_502(self, test_client, fake_storage):
        fake_storage.fail_uploads = True
        resp = test_client.post("/api/upload-storage", json={"image_data": PNG_DATA_URL})
        assert resp.status_code == 502


# ---------------------------------------------------------------------------
# Lifespan tests.
# ---------------------------------------------------------------------------


class TestLifespan:
    """Test collaborator setup and shutdown."""

    def test_collaborators_closed_on_shutdown(
        self, monkeypatch, posts_db, fake_image_client, fake_caption_client, fake_storage
    ):
        from fastapi.testclient import TestClient

        from instadream.api import main

        monkeypatch.setattr(main, "PostsDB", lambda path: posts_db)
        monkeypatch.setattr(main.ReplicateClient, "from_config", lambda cfg: fake_image_client)
        monkeypatch.setattr(
            main.GeminiCaptionClient, "from_config", lambda cfg: fake_caption_client
        )
        monkeypatch.setattr(main.ObjectStorage, "from_config", lambda cfg: fake_storage)

        with TestClient(main.app) as client:
            assert client.get("/api/templates").status_code == 200
            assert main.app.state.image_client is fake_image_client
            assert not fake_image_client.closed

        assert fake_image_client.closed
        assert fake_caption_client.closed
        assert fake_storage.closed
