"""InstaDream — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application is a thin layer over four collaborators, created in the
lifespan handler and stored on ``app.state``:

- ``posts_db`` — :class:`~instadream.core.posts_db.PostsDB`, the SQLite
  history of generated posts.
- ``image_client`` — :class:`~instadream.core.image_client.ReplicateClient`.
- ``caption_client`` — :class:`~instadream.core.caption_client.GeminiCaptionClient`.
- ``storage`` — :class:`~instadream.core.storage.ObjectStorage`.

Prompt composition itself is pure and lives in
:mod:`instadream.core.prompt_builder`.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/templates``            Facet catalog and quick-add presets
POST      ``/api/prompt/preview``       Preview the composed prompt
POST      ``/api/prompt/validate``      Check base prompt limits
POST      ``/api/generate-image``       Generate and store a post image
POST      ``/api/generate-caption``     Generate a post caption
GET       ``/api/posts``                Post history
GET       ``/api/posts/{id}``           Single post
DELETE    ``/api/posts/{id}``           Delete a post and its images
POST      ``/api/upload-storage``       Upload an image to object storage
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    instadream

Direct invocation::

    python -m instadream.api.main
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from instadream import __version__
from instadream.api.models import (
    GenerateCaptionRequest,
    GenerateImageRequest,
    PromptRequest,
    UploadStorageRequest,
)
from instadream.core.caption_client import CaptionGenerationError, GeminiCaptionClient
from instadream.core.config import config
from instadream.core.image_client import ImageGenerationError, ReplicateClient
from instadream.core.posts_db import PostsDB, PostStatus
from instadream.core.prompt_builder import catalog_snapshot, compose, preview, validate
from instadream.core.prompt_templates import QUALITY_BOOST, QUICK_ADD_MODIFIERS
from instadream.core.storage import ObjectStorage, StorageError, decode_data_url

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the external collaborators on startup and close them on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.posts_db = PostsDB(config.database_path)
    app.state.image_client = ReplicateClient.from_config(config)
    app.state.caption_client = GeminiCaptionClient.from_config(config)
    app.state.storage = ObjectStorage.from_config(config)
    logger.info("Collaborators initialised.")

    yield

    app.state.image_client.close()
    app.state.caption_client.close()
    app.state.storage.close()
    logger.info("Collaborators closed on shutdown.")


app = FastAPI(
    title="InstaDream",
    description="Generate Instagram posts with AI images and captions.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the frontend can be served from a different
# port during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_post_or_404(posts_db: PostsDB, post_id: int):
    post = posts_db.get_post(post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


# ---------------------------------------------------------------------------
# Prompt routes.
# ---------------------------------------------------------------------------


@app.get("/api/templates")
async def get_templates() -> dict:
    """Return everything the frontend needs to render the prompt pickers.

    Returns:
        Dictionary with ``version``, ``templates`` (facet value → ordered
        options), ``quick_add_modifiers`` and ``quality_boost``.
    """
    return {
        "version": __version__,
        "templates": catalog_snapshot(),
        "quick_add_modifiers": list(QUICK_ADD_MODIFIERS),
        "quality_boost": list(QUALITY_BOOST),
    }


@app.post("/api/prompt/preview")
async def preview_prompt(req: PromptRequest) -> dict:
    """Preview the composed prompt without generating an image."""
    result = preview(req.to_composition())
    return {
        "composed_prompt": result.composed_prompt,
        "word_count": result.word_count,
        "is_fully_specified": result.is_fully_specified,
    }


@app.post("/api/prompt/validate")
async def validate_prompt(req: PromptRequest) -> dict:
    """Report whether the base prompt meets the length limits."""
    result = validate(req.to_composition())
    return {"ok": result.ok, "errors": list(result.errors)}


# ---------------------------------------------------------------------------
# Generation routes.
# ---------------------------------------------------------------------------


@app.post("/api/generate-image")
def generate_image(req: GenerateImageRequest) -> dict:
    """Generate a post image and store it.

    This endpoint:

    1. Validates and composes the prompt (skipped in manual mode).
    2. Uploads a base64 reference image, if one was sent.
    3. Creates a post (or marks ``post_id`` as generating).
    4. Generates the image with Replicate.
    5. Copies the image into object storage and marks the post completed.

    Returns:
        Dictionary with ``success``, ``post_id``, ``image_url``,
        ``storage_key`` and ``prompt``.

    Raises:
        HTTPException: 400 for an invalid prompt, 404 for an unknown
            ``post_id``, 502 if image generation or storage fails.
    """
    posts_db: PostsDB = app.state.posts_db
    image_client: ReplicateClient = app.state.image_client
    storage: ObjectStorage = app.state.storage

    # --- Prompt --------------------------------------------------------------
    prompt = req.prompt
    if not req.is_manual_prompt:
        composition = req.to_composition()
        validation = validate(composition)
        if not validation.ok:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Invalid prompt configuration",
                    "details": list(validation.errors),
                },
            )
        prompt = compose(composition)
        logger.info(f"Composed prompt: {prompt}")

    if req.post_id is not None:
        _get_post_or_404(posts_db, req.post_id)

    # --- Reference image -----------------------------------------------------
    # A failed reference upload does not fail the request; the original
    # reference is passed to the model instead.
    reference_url: str | None = None
    reference_key: str | None = None
    if req.reference_image and req.reference_image.startswith("data:"):
        decoded = decode_data_url(req.reference_image)
        if decoded is not None:
            data, content_type = decoded
            try:
                stored = storage.upload_image(data, content_type)
                reference_url, reference_key = stored.image_url, stored.storage_key
                logger.info(f"Reference image uploaded: {reference_url}")
            except StorageError as exc:
                logger.error(f"Error uploading reference image: {exc}")
    elif req.reference_image:
        reference_url = req.reference_image

    # --- Post record ---------------------------------------------------------
    if req.post_id is None:
        post = posts_db.create_post(
            prompt,
            model_used=image_client.model_path,
            status=PostStatus.GENERATING,
            reference_image_url=reference_url,
            reference_storage_key=reference_key,
        )
        post_id = post.id
    else:
        post_id = req.post_id
        posts_db.update_post(
            post_id,
            status=PostStatus.GENERATING,
            reference_image_url=reference_url,
            reference_storage_key=reference_key,
        )

    # --- Generate and store --------------------------------------------------
    try:
        generated = image_client.generate_instagram_post(
            prompt,
            reference_url or req.reference_image,
            req.image_prompt_strength,
        )
        logger.info(f"Image generated: {generated.url}")
        stored = storage.upload_image_from_url(generated.url)
    except (ImageGenerationError, StorageError) as exc:
        logger.error(f"Error during image generation for post {post_id}: {exc}")
        posts_db.update_post(post_id, status=PostStatus.FAILED, error_message=str(exc))
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Unexpected error during image generation for post {post_id}")
        posts_db.update_post(post_id, status=PostStatus.FAILED, error_message=str(exc))
        raise

    posts_db.update_post(
        post_id,
        image_url=stored.image_url,
        storage_key=stored.storage_key,
        model_used=generated.model_used,
        status=PostStatus.COMPLETED,
    )

    return {
        "success": True,
        "post_id": post_id,
        "image_url": stored.image_url,
        "storage_key": stored.storage_key,
        "prompt": prompt,
    }


@app.post("/api/generate-caption")
def generate_caption(req: GenerateCaptionRequest) -> dict:
    """Generate a caption, attaching it to ``post_id`` when given.

    Raises:
        HTTPException: 502 if the caption model fails.
    """
    caption_client: GeminiCaptionClient = app.state.caption_client

    try:
        caption = caption_client.generate_caption(
            req.prompt,
            req.tone,
            include_hashtags=req.include_hashtags,
            include_emojis=req.include_emojis,
        )
    except CaptionGenerationError as exc:
        logger.error(f"Error generating caption: {exc}")
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if req.post_id is not None:
        app.state.posts_db.update_post(req.post_id, caption=caption)

    return {"success": True, "caption": caption}


# ---------------------------------------------------------------------------
# History routes.
# ---------------------------------------------------------------------------


@app.get("/api/posts")
async def list_posts(
    status: str | None = None,
    limit: int | None = Query(default=None, ge=1),
) -> dict:
    """Return the post history, newest first.

    Args:
        status: Only posts with this status; unknown values are ignored.
        limit: Maximum number of posts (defaults to ``posts_default_limit``).
    """
    posts_db: PostsDB = app.state.posts_db
    if limit is None:
        limit = config.posts_default_limit
    posts = posts_db.list_posts(status=status, limit=limit)
    return {
        "success": True,
        "posts": [post.to_dict() for post in posts],
        "count": len(posts),
    }


@app.get("/api/posts/{post_id}")
async def get_post(post_id: int) -> dict:
    """Return a single post.

    Raises:
        HTTPException: 404 if the post is not found.
    """
    post = _get_post_or_404(app.state.posts_db, post_id)
    return {"success": True, "post": post.to_dict()}


@app.delete("/api/posts/{post_id}")
def delete_post(post_id: int) -> dict:
    """Delete a post and its stored images.

    Storage failures are logged and do not prevent the post from being
    removed.

    Raises:
        HTTPException: 404 if the post is not found.
    """
    posts_db: PostsDB = app.state.posts_db
    storage: ObjectStorage = app.state.storage
    post = _get_post_or_404(posts_db, post_id)

    for key in (post.storage_key, post.reference_storage_key):
        if not key:
            continue
        try:
            storage.delete_image(key)
        except StorageError as exc:
            logger.error(f"Error deleting image {key} for post {post_id}: {exc}")

    posts_db.delete_post(post_id)
    return {"success": True, "message": "Post deleted successfully"}


# ---------------------------------------------------------------------------
# Storage routes.
# ---------------------------------------------------------------------------


@app.post("/api/upload-storage")
def upload_storage(req: UploadStorageRequest) -> dict:
    """Upload an image from a URL or from base64 data.

    Returns:
        Dictionary with ``success``, ``storage_key`` and ``image_url``.

    Raises:
        HTTPException: 400 if no source is given or the data is not valid
            base64, 502 if the upload fails.
    """
    storage: ObjectStorage = app.state.storage

    try:
        if req.image_url:
            logger.info(f"Uploading image from URL: {req.image_url}")
            stored = storage.upload_image_from_url(req.image_url)
        elif req.image_data:
            if req.image_data.startswith("data:"):
                decoded = decode_data_url(req.image_data)
                if decoded is None:
                    raise HTTPException(status_code=400, detail="Invalid image data")
                data, content_type = decoded
            else:
                try:
                    data = base64.b64decode(req.image_data, validate=True)
                except (binascii.Error, ValueError) as exc:
                    raise HTTPException(status_code=400, detail="Invalid image data") from exc
                content_type = req.content_type
            logger.info("Uploading image from base64")
            stored = storage.upload_image(data, content_type)
        else:
            raise HTTPException(
                status_code=400,
                detail="Must provide either image_url or image_data",
            )
    except StorageError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {"success": True, "storage_key": stored.storage_key, "image_url": stored.image_url}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~instadream.core.config.config` (which
    loads from ``INSTADREAM_SERVER_HOST`` and ``INSTADREAM_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``instadream`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    uvicorn.run(
        "instadream.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
