"""Shared pytest fixtures for InstaDream tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from instadream.core.caption_client import CaptionGenerationError
from instadream.core.config import InstadreamConfig
from instadream.core.image_client import GeneratedImage, ImageGenerationError
from instadream.core.posts_db import PostsDB
from instadream.core.storage import StorageError, StoredObject


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> InstadreamConfig:
    """Create a test configuration with temporary directories.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        InstadreamConfig instance for testing
    """
    return InstadreamConfig(
        data_dir=temp_dir / "data",
        database_path=temp_dir / "data" / "test.db",
        replicate_api_token="test-token",
        gemini_api_key="test-key",
        storage_access_key="minio",
        storage_secret_key="minio-secret",
        _env_file=None,
    )


@pytest.fixture
def posts_db(temp_dir: Path) -> PostsDB:
    """Empty posts database in a temporary directory."""
    return PostsDB(temp_dir / "posts.db")


class FakeImageClient:
    """Stand-in for ReplicateClient that records prompts."""

    model_path = "bytedance/seedream-4"

    def __init__(self):
        self.calls: list[dict] = []
        self.error: Exception | None = None
        self.closed = False

    def generate_instagram_post(self, prompt, reference_image=None, image_prompt_strength=None):
        self.calls.append(
            {
                "prompt": prompt,
                "reference_image": reference_image,
                "image_prompt_strength": image_prompt_strength,
            }
        )
        if self.error is not None:
            raise self.error
        return GeneratedImage(
            url="https://replicate.delivery/out/image.png",
            model_used=self.model_path,
        )

    def close(self):
        self.closed = True


class FakeCaptionClient:
    """Stand-in for GeminiCaptionClient."""

    def __init__(self):
        self.calls: list[dict] = []
        self.fail = False
        self.closed = False

    def generate_caption(self, prompt, tone="casual", *, include_hashtags=True, include_emojis=True):
        self.calls.append(
            {
                "prompt": prompt,
                "tone": tone,
                "include_hashtags": include_hashtags,
                "include_emojis": include_emojis,
            }
        )
        if self.fail:
            raise CaptionGenerationError("Caption request failed: boom")
        return "Morning coffee ☕\n\n#coffee #morning"

    def close(self):
        self.closed = True


class FakeStorage:
    """In-memory stand-in for ObjectStorage."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fetched_urls: list[str] = []
        self.deleted: list[str] = []
        self.fail_uploads = False
        self.fail_deletes = False
        self._counter = 0
        self.closed = False

    def upload_image(self, data, content_type="image/png"):
        if self.fail_uploads:
            raise StorageError("Failed to upload image: unreachable")
        self._counter += 1
        key = f"object-{self._counter}.{content_type.split('/')[-1]}"
        self.objects[key] = (data, content_type)
        return StoredObject(storage_key=key, image_url=f"http://localhost:9000/instadream/{key}")

    def upload_image_from_url(self, image_url):
        self.fetched_urls.append(image_url)
        return self.upload_image(b"remote-bytes", "image/png")

    def delete_image(self, storage_key):
        if self.fail_deletes:
            raise StorageError("Failed to delete image: unreachable")
        self.deleted.append(storage_key)
        self.objects.pop(storage_key, None)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def failing_image_client() -> FakeImageClient:
    client = FakeImageClient()
    client.error = ImageGenerationError("Prediction failed: NSFW content detected")
    return client


@pytest.fixture
def fake_caption_client() -> FakeCaptionClient:
    return FakeCaptionClient()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def test_client(posts_db, fake_image_client, fake_caption_client, fake_storage):
    """TestClient with fake collaborators installed on ``app.state``.

    The client is not entered as a context manager, so the lifespan handler
    (which builds the real collaborators) does not run.
    """
    from instadream.api.main import app

    app.state.posts_db = posts_db
    app.state.image_client = fake_image_client
    app.state.caption_client = fake_caption_client
    app.state.storage = fake_storage
    return TestClient(app)
