"""Guided prompt composition for Instagram post images.

The prompt system merges the user's free-text idea with up to four catalog
selections (see :mod:`instadream.core.prompt_templates`) into a single
comma-separated prompt for the image model.

Prompt Structure
----------------
Tokens are assembled in a fixed order::

    [Subject keywords (first two only)]
    [Base prompt]
    [Background keywords]
    [Lighting keywords]
    [Mood keywords]
    [Extra modifiers]
    [Quality boost]

The order front-loads subject framing and user intent, where the image model
pays the most attention.  Only the first two subject keywords are used to
keep the prompt concise.

Deduplication is an exact, case-sensitive string match that keeps the first
occurrence.  Phrases with the same meaning but different wording are left
alone.

Usage
-----
::

    request = CompositionRequest(
        base_prompt="a cup of coffee",
        subject_type="lifestyle",
        lighting="golden_hour",
    )
    result = validate(request)
    if result.ok:
        prompt = compose(request)
"""

from __future__ import annotations

from dataclasses import dataclass

from instadream.core.prompt_templates import (
    QUALITY_BOOST,
    Facet,
    list_all,
    lookup,
)

MIN_BASE_PROMPT_LENGTH = 3
MAX_BASE_PROMPT_LENGTH = 500

# Number of subject keywords used in a composed prompt.
SUBJECT_KEYWORD_LIMIT = 2

PROMPT_SEPARATOR = ", "


@dataclass(frozen=True)
class CompositionRequest:
    """Input to :func:`compose`, :func:`validate` and :func:`preview`.

    Facet selections are optional keys into the catalog.  ``None`` means
    "not selected"; an unknown key is handled the same way.

    Attributes:
        base_prompt: The user's core idea.
        subject_type: Subject type key (e.g. ``"portrait"``).
        background: Background key (e.g. ``"bokeh"``).
        lighting: Lighting key (e.g. ``"golden_hour"``).
        mood: Mood key (e.g. ``"calm_serene"``).
        include_quality_boost: Append the fixed quality phrases.
        extra_modifiers: Caller-supplied phrases, added verbatim.
    """

    base_prompt: str
    subject_type: str | None = None
    background: str | None = None
    lighting: str | None = None
    mood: str | None = None
    include_quality_boost: bool = True
    extra_modifiers: tuple[str, ...] = ()

    def selection(self, facet: Facet) -> str | None:
        """Return the key selected for *facet*, if any."""
        return getattr(self, facet.value)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of :func:`validate`."""

    ok: bool
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class PromptPreview:
    """Outcome of :func:`preview`.

    Attributes:
        composed_prompt: The prompt :func:`compose` produces.
        word_count: Whitespace-separated words in ``composed_prompt``.
        is_fully_specified: ``True`` when a base prompt and all four facet
            selections are present.
    """

    composed_prompt: str
    word_count: int
    is_fully_specified: bool


def _dedupe(tokens: list[str]) -> list[str]:
    """Drop empty tokens and repeats, keeping first occurrences in order."""
    seen: set[str] = set()
    unique: list[str] = []
    for token in tokens:
        if not token or token in seen:
            continue
        seen.add(token)
        unique.append(token)
    return unique


def compose(request: CompositionRequest) -> str:
    """Compile the image prompt for *request*.

    Args:
        request: The composition inputs.

    Returns:
        The comma-and-space joined prompt.  Empty when every input is empty
        and the quality boost is disabled.
    """
    tokens: list[str] = []

    # --- Subject framing ---------------------------------------------------
    subject = lookup(Facet.SUBJECT_TYPE, request.subject_type)
    if subject is not None:
        tokens.extend(subject.keywords[:SUBJECT_KEYWORD_LIMIT])

    # --- User intent -------------------------------------------------------
    base = request.base_prompt.strip()
    if base:
        tokens.append(base)

    # --- Setting, lighting, mood ------------------------------------------
    for facet in (Facet.BACKGROUND, Facet.LIGHTING, Facet.MOOD):
        option = lookup(facet, request.selection(facet))
        if option is not None:
            tokens.extend(option.keywords)

    tokens.extend(request.extra_modifiers)

    if request.include_quality_boost:
        tokens.extend(QUALITY_BOOST)

    return PROMPT_SEPARATOR.join(_dedupe(tokens))


def validate(request: CompositionRequest) -> ValidationResult:
    """Check the base prompt length limits.

    Both limits are checked independently and every failure is reported.

    Args:
        request: The composition inputs.

    Returns:
        A :class:`ValidationResult`; ``ok`` is ``True`` iff ``errors`` is empty.
    """
    errors: list[str] = []

    if len(request.base_prompt.strip()) < MIN_BASE_PROMPT_LENGTH:
        errors.append(f"Base prompt must be at least {MIN_BASE_PROMPT_LENGTH} characters")

    if len(request.base_prompt) > MAX_BASE_PROMPT_LENGTH:
        errors.append(f"Base prompt is too long (max {MAX_BASE_PROMPT_LENGTH} characters)")

    return ValidationResult(ok=not errors, errors=tuple(errors))


def preview(request: CompositionRequest) -> PromptPreview:
    """Compose *request* and describe the result for display."""
    composed = compose(request)
    # Selection presence drives the flag, not lookup success.
    fully_specified = bool(request.base_prompt) and all(
        request.selection(facet) for facet in Facet
    )
    return PromptPreview(
        composed_prompt=composed,
        word_count=len(composed.split()),
        is_fully_specified=fully_specified,
    )


def catalog_snapshot() -> dict[str, list[dict[str, str]]]:
    """Flatten the catalog for facet pickers.

    Returns:
        Mapping of facet value (e.g. ``"lighting"``) to a list of
        ``{key, label, glyph, description}`` dicts in declaration order.
    """
    return {
        facet.value: [
            {
                "key": option.key,
                "label": option.label,
                "glyph": option.glyph,
                "description": option.description,
            }
            for option in list_all(facet)
        ]
        for facet in Facet
    }
