"""Pydantic request models for the InstaDream API.

These models define the JSON schema for every API endpoint that accepts a
body.  FastAPI uses them for automatic request validation, serialisation, and
OpenAPI documentation generation.

Facet selections are plain optional strings rather than enums: an unknown key
is accepted here and contributes nothing to the composed prompt.

Models
------
PromptRequest
    Payload for ``POST /api/prompt/preview`` and ``POST /api/prompt/validate``.
GenerateImageRequest
    Payload for ``POST /api/generate-image``.
GenerateCaptionRequest
    Payload for ``POST /api/generate-caption``.
UploadStorageRequest
    Payload for ``POST /api/upload-storage``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from instadream.core.caption_client import CaptionTone
from instadream.core.prompt_builder import CompositionRequest


class PromptRequest(BaseModel):
    """Guided prompt inputs.

    Attributes:
        prompt: The user's core idea (the base prompt).
        subject_type: Subject type key (e.g. ``"portrait"``).
        background: Background key (e.g. ``"bokeh"``).
        lighting: Lighting key (e.g. ``"golden_hour"``).
        mood: Mood key (e.g. ``"calm_serene"``).
        include_quality_boost: Append the fixed quality phrases.
        extra_modifiers: Free-text phrases appended before the quality phrases.
    """

    prompt: str = Field(
        ...,
        description="The user's core idea.",
    )
    subject_type: str | None = Field(default=None, description="Subject type key.")
    background: str | None = Field(default=None, description="Background key.")
    lighting: str | None = Field(default=None, description="Lighting key.")
    mood: str | None = Field(default=None, description="Mood key.")
    include_quality_boost: bool = Field(
        default=True,
        description="Append the fixed Instagram quality phrases.",
    )
    extra_modifiers: list[str] = Field(
        default_factory=list,
        description="Free-text phrases appended after the facet keywords.",
    )

    def to_composition(self) -> CompositionRequest:
        """Convert to the core :class:`CompositionRequest`."""
        return CompositionRequest(
            base_prompt=self.prompt,
            subject_type=self.subject_type,
            background=self.background,
            lighting=self.lighting,
            mood=self.mood,
            include_quality_boost=self.include_quality_boost,
            extra_modifiers=tuple(self.extra_modifiers),
        )


class GenerateImageRequest(PromptRequest):
    """Request body for the ``POST /api/generate-image`` endpoint.

    Attributes:
        prompt: Required, non-empty.
        post_id: Existing post to regenerate; a new post is created if omitted.
        reference_image: Reference image as a URL or a base64 data URL.
        image_prompt_strength: How closely to follow the reference (0-1).
        is_manual_prompt: Send ``prompt`` verbatim, skipping validation and
            template composition.
    """

    prompt: str = Field(
        ...,
        min_length=1,
        description="The user's core idea, or the full prompt in manual mode.",
    )
    post_id: int | None = Field(default=None, description="Existing post to update.")
    reference_image: str | None = Field(
        default=None,
        description="Reference image URL or base64 data URL.",
    )
    image_prompt_strength: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="How closely to follow the reference image (0-1).",
    )
    is_manual_prompt: bool = Field(
        default=False,
        description="Skip template building and send the prompt as written.",
    )


class GenerateCaptionRequest(BaseModel):
    """Request body for the ``POST /api/generate-caption`` endpoint."""

    prompt: str = Field(..., min_length=1, description="What the post is about.")
    tone: CaptionTone = Field(default=CaptionTone.CASUAL, description="Caption tone.")
    include_hashtags: bool = Field(default=True, description="Append hashtags.")
    include_emojis: bool = Field(default=True, description="Include emojis.")
    post_id: int | None = Field(
        default=None,
        description="Post to attach the caption to.",
    )


class UploadStorageRequest(BaseModel):
    """Request body for the ``POST /api/upload-storage`` endpoint.

    Exactly one source is used: ``image_url`` takes precedence over
    ``image_data``.
    """

    image_url: str | None = Field(default=None, description="URL to download and store.")
    image_data: str | None = Field(
        default=None,
        description="Base64 image data, optionally as a data URL.",
    )
    content_type: str = Field(default="image/png", description="MIME type of image_data.")
