"""Gemini caption generation client.

Captions are produced by a single ``generate_content`` call through the
``google-genai`` SDK.  The instructions are assembled by
:func:`build_caption_prompt` and prepended to the user's request.
"""

from __future__ import annotations

import logging
from enum import Enum

import httpx
from google import genai
from google.genai import errors, types

from instadream.core.config import InstadreamConfig

logger = logging.getLogger(__name__)


class CaptionTone(str, Enum):
    PROFESSIONAL = "professional"
    CASUAL = "casual"
    FUNNY = "funny"
    INSPIRATIONAL = "inspirational"
    EDUCATIONAL = "educational"


class CaptionGenerationError(Exception):
    """Raised when the caption model cannot be reached or returns no text."""


def build_caption_prompt(
    prompt: str,
    tone: CaptionTone | str = CaptionTone.CASUAL,
    *,
    include_hashtags: bool = True,
    include_emojis: bool = True,
) -> str:
    """Build the full model prompt for one ready-to-post caption.

    Args:
        prompt: What the post is about.
        tone: Writing tone.
        include_hashtags: Ask for 8-12 hashtags on a final line.
        include_emojis: Ask for 2-3 emojis in the text.

    Returns:
        Instructions followed by the user request.
    """
    tone_value = CaptionTone(tone).value
    emoji_rule = (
        "Include 2-3 relevant emojis naturally within the text"
        if include_emojis
        else "Do NOT include emojis"
    )
    hashtag_rule = (
        "Include 8-12 relevant hashtags on a new line at the end"
        if include_hashtags
        else "Do NOT include hashtags"
    )

    system_prompt = f"""You are an expert Instagram caption writer. Generate ONE single, ready-to-post Instagram caption.

CRITICAL RULES:
- Generate ONLY ONE caption, NOT multiple options
- Do NOT include phrases like "Option 1", "Here are some options", "You could use", etc.
- Output the caption directly without any preamble or explanation
- The caption should be ready to copy and paste directly to Instagram

Requirements:
- Tone: {tone_value}
- {emoji_rule}
- {hashtag_rule}
- Keep the main caption concise (2-3 sentences max)
- Write in first person perspective
- Make it authentic and relatable
- Use line breaks for readability

Format:
[Main caption text with emojis if enabled]

[Hashtags if enabled, on a new line]

REMEMBER: Output ONLY the caption text, nothing else!"""

    return f"{system_prompt}\n\nUser request: {prompt}"


class GeminiCaptionClient:
    """Generate captions with a Gemini model.

    Args:
        api_key: Gemini API key.  Without one (and without *client*) every
            call raises :class:`CaptionGenerationError`.
        model: Gemini model name.
        temperature: Sampling temperature.
        client: Pre-built ``genai.Client`` (tests pass a stand-in exposing
            ``models.generate_content`` and ``close``).
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.0-flash-exp",
        temperature: float = 0.8,
        client: genai.Client | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self._client = client
        if self._client is None and api_key:
            self._client = genai.Client(api_key=api_key)

    @classmethod
    def from_config(cls, config: InstadreamConfig) -> GeminiCaptionClient:
        return cls(
            config.gemini_api_key,
            model=config.caption_model,
            temperature=config.caption_temperature,
        )

    def generate_caption(
        self,
        prompt: str,
        tone: CaptionTone | str = CaptionTone.CASUAL,
        *,
        include_hashtags: bool = True,
        include_emojis: bool = True,
    ) -> str:
        """Generate one caption.

        Raises:
            CaptionGenerationError: If no API key is configured, the request
                fails, or the response has no text.
        """
        if self._client is None:
            raise CaptionGenerationError("Gemini API key is not configured")

        contents = build_caption_prompt(
            prompt,
            tone,
            include_hashtags=include_hashtags,
            include_emojis=include_emojis,
        )

        logger.info(f"Generating caption with {self.model}")
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(temperature=self.temperature),
            )
        except (errors.APIError, httpx.HTTPError) as exc:
            logger.error(f"Error generating caption: {exc}")
            raise CaptionGenerationError(f"Caption request failed: {exc}") from exc

        if not response.candidates:
            raise CaptionGenerationError("Caption response had no candidates")

        caption = (response.text or "").strip()
        if not caption:
            raise CaptionGenerationError("Caption model returned empty text")
        return caption

    def close(self) -> None:
        """Close the underlying Gemini client."""
        if self._client is not None:
            self._client.close()
