"""Template catalog for guided Instagram post prompts.

The catalog holds four fixed facets (subject type, background, lighting and
mood).  Each facet is an ordered set of :class:`TemplateOption` entries whose
keywords are merged into the final image prompt by
:func:`instadream.core.prompt_builder.compose`.

Declaration Order
-----------------
Options are declared as explicit ``(key, option)`` tuples rather than dict
literals so that enumeration order is part of the data, not an artefact of
mapping iteration.  The frontend renders facet pickers in this order and the
tests depend on it.

Immutability
------------
The facet tables are exposed through :class:`types.MappingProxyType` and the
options themselves are frozen dataclasses with tuple keywords.  Nothing in the
application mutates the catalog after import.

Usage
-----
::

    from instadream.core.prompt_templates import Facet, lookup

    option = lookup(Facet.LIGHTING, "golden_hour")
    if option is not None:
        print(option.keywords)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class Facet(str, Enum):
    """The four categorical dimensions a guided prompt is built from."""

    SUBJECT_TYPE = "subject_type"
    BACKGROUND = "background"
    LIGHTING = "lighting"
    MOOD = "mood"


@dataclass(frozen=True)
class TemplateOption:
    """One selectable entry within a facet.

    Attributes:
        key: Identifier, unique within its facet (e.g. ``"golden_hour"``).
        label: Human-readable display name.
        glyph: Decorative symbol shown next to the label in the UI.
        keywords: Descriptive phrases in the order they are added to a prompt.
        description: One-line summary for the UI.
    """

    key: str
    label: str
    glyph: str
    keywords: tuple[str, ...]
    description: str


# ---------------------------------------------------------------------------
# Subject type: main content type and composition style.
# ---------------------------------------------------------------------------
_SUBJECT_TYPES: tuple[tuple[str, TemplateOption], ...] = (
    (
        "portrait",
        TemplateOption(
            key="portrait",
            label="Portrait",
            glyph="👤",
            keywords=(
                "portrait photography",
                "professional headshot",
                "eye contact",
                "facial expression",
                "shallow depth of field",
                "bokeh background",
            ),
            description="Professional portrait photography with focus on person",
        ),
    ),
    (
        "lifestyle",
        TemplateOption(
            key="lifestyle",
            label="Lifestyle",
            glyph="🌟",
            keywords=(
                "lifestyle photography",
                "candid moment",
                "authentic",
                "environmental context",
                "storytelling composition",
                "relatable",
            ),
            description="Candid lifestyle moments and authentic scenarios",
        ),
    ),
    (
        "product",
        TemplateOption(
            key="product",
            label="Product",
            glyph="📦",
            keywords=(
                "product photography",
                "commercial quality",
                "centered composition",
                "sharp details",
                "professional styling",
                "clean presentation",
            ),
            description="Professional product photography for e-commerce",
        ),
    ),
    (
        "food",
        TemplateOption(
            key="food",
            label="Food",
            glyph="🍽️",
            keywords=(
                "food photography",
                "appetizing",
                "beautifully plated",
                "detailed textures",
                "overhead shot",
                "culinary presentation",
            ),
            description="Delicious food photography with artistic plating",
        ),
    ),
    (
        "landscape",
        TemplateOption(
            key="landscape",
            label="Landscape",
            glyph="🌄",
            keywords=(
                "landscape photography",
                "wide angle",
                "breathtaking vista",
                "natural beauty",
                "foreground interest",
                "majestic",
            ),
            description="Stunning landscape and nature photography",
        ),
    ),
    (
        "interior",
        TemplateOption(
            key="interior",
            label="Interior",
            glyph="🏠",
            keywords=(
                "interior photography",
                "architectural",
                "spatial composition",
                "design aesthetic",
                "room styling",
                "modern space",
            ),
            description="Interior design and architectural photography",
        ),
    ),
    (
        "abstract",
        TemplateOption(
            key="abstract",
            label="Abstract",
            glyph="🎨",
            keywords=(
                "abstract art",
                "artistic composition",
                "creative vision",
                "conceptual",
                "dynamic forms",
                "modern art",
            ),
            description="Abstract and artistic creative imagery",
        ),
    ),
    (
        "fashion",
        TemplateOption(
            key="fashion",
            label="Fashion",
            glyph="👗",
            keywords=(
                "fashion photography",
                "editorial style",
                "haute couture",
                "stylish",
                "runway aesthetic",
                "designer clothing",
            ),
            description="High-fashion editorial photography",
        ),
    ),
)

# ---------------------------------------------------------------------------
# Background: environment and backdrop style.
# ---------------------------------------------------------------------------
_BACKGROUNDS: tuple[tuple[str, TemplateOption], ...] = (
    (
        "minimal_white",
        TemplateOption(
            key="minimal_white",
            label="Minimal White",
            glyph="⚪",
            keywords=(
                "white background",
                "minimalist",
                "clean",
                "uncluttered",
                "negative space",
                "simple backdrop",
            ),
            description="Clean white minimal background for focus on subject",
        ),
    ),
    (
        "natural_outdoor",
        TemplateOption(
            key="natural_outdoor",
            label="Natural Outdoor",
            glyph="🌿",
            keywords=(
                "natural outdoor setting",
                "environmental context",
                "organic environment",
                "landscape background",
                "authentic location",
            ),
            description="Natural outdoor environment and scenery",
        ),
    ),
    (
        "urban_city",
        TemplateOption(
            key="urban_city",
            label="Urban City",
            glyph="🏙️",
            keywords=(
                "urban setting",
                "city background",
                "street photography aesthetic",
                "metropolitan",
                "architectural backdrop",
            ),
            description="Urban city environment with buildings and streets",
        ),
    ),
    (
        "studio_setup",
        TemplateOption(
            key="studio_setup",
            label="Studio Setup",
            glyph="📸",
            keywords=(
                "studio background",
                "professional setup",
                "controlled environment",
                "seamless backdrop",
                "photography studio",
            ),
            description="Professional photography studio environment",
        ),
    ),
    (
        "indoor_cozy",
        TemplateOption(
            key="indoor_cozy",
            label="Indoor Cozy",
            glyph="🛋️",
            keywords=(
                "cozy indoor setting",
                "warm interior",
                "comfortable space",
                "home environment",
                "inviting atmosphere",
            ),
            description="Warm and inviting indoor environment",
        ),
    ),
    (
        "textured",
        TemplateOption(
            key="textured",
            label="Textured Surface",
            glyph="🪵",
            keywords=(
                "textured background",
                "rustic surface",
                "wooden backdrop",
                "organic texture",
                "material detail",
            ),
            description="Textured surfaces like wood, concrete, or fabric",
        ),
    ),
    (
        "gradient",
        TemplateOption(
            key="gradient",
            label="Gradient",
            glyph="🌈",
            keywords=(
                "gradient background",
                "smooth color transition",
                "modern backdrop",
                "soft blend",
                "colorful gradient",
            ),
            description="Smooth gradient background with color transitions",
        ),
    ),
    (
        "bokeh",
        TemplateOption(
            key="bokeh",
            label="Bokeh Blur",
            glyph="✨",
            keywords=(
                "bokeh background",
                "out of focus",
                "shallow depth of field",
                "dreamy backdrop",
                "blurred lights",
            ),
            description="Beautiful bokeh blur effect in background",
        ),
    ),
)

# ---------------------------------------------------------------------------
# Lighting: lighting style and conditions.
# ---------------------------------------------------------------------------
_LIGHTING: tuple[tuple[str, TemplateOption], ...] = (
    (
        "golden_hour",
        TemplateOption(
            key="golden_hour",
            label="Golden Hour",
            glyph="🌅",
            keywords=(
                "golden hour lighting",
                "warm sunset glow",
                "soft golden light",
                "magic hour",
                "amber tones",
            ),
            description="Warm, soft lighting during golden hour (sunrise/sunset)",
        ),
    ),
    (
        "studio_lighting",
        TemplateOption(
            key="studio_lighting",
            label="Studio Lighting",
            glyph="💡",
            keywords=(
                "studio lighting",
                "professional setup",
                "controlled lighting",
                "even illumination",
                "soft shadows",
            ),
            description="Professional studio lighting setup",
        ),
    ),
    (
        "natural_window",
        TemplateOption(
            key="natural_window",
            label="Natural Window Light",
            glyph="🪟",
            keywords=(
                "natural window light",
                "soft diffused light",
                "indoor natural lighting",
                "gentle illumination",
                "window glow",
            ),
            description="Soft natural light coming through windows",
        ),
    ),
    (
        "dramatic",
        TemplateOption(
            key="dramatic",
            label="Dramatic",
            glyph="⚡",
            keywords=(
                "dramatic lighting",
                "high contrast",
                "bold shadows",
                "cinematic lighting",
                "intense illumination",
            ),
            description="High contrast dramatic lighting with strong shadows",
        ),
    ),
    (
        "soft_diffused",
        TemplateOption(
            key="soft_diffused",
            label="Soft Diffused",
            glyph="☁️",
            keywords=(
                "soft diffused lighting",
                "gentle illumination",
                "even light",
                "flattering light",
                "minimal shadows",
            ),
            description="Soft, even lighting with minimal harsh shadows",
        ),
    ),
    (
        "blue_hour",
        TemplateOption(
            key="blue_hour",
            label="Blue Hour",
            glyph="🌆",
            keywords=(
                "blue hour lighting",
                "twilight",
                "cool blue tones",
                "dusk atmosphere",
                "evening glow",
            ),
            description="Cool blue tones during twilight (blue hour)",
        ),
    ),
    (
        "backlit",
        TemplateOption(
            key="backlit",
            label="Backlit",
            glyph="🔆",
            keywords=(
                "backlit",
                "rim lighting",
                "silhouette effect",
                "glowing edges",
                "halo effect",
            ),
            description="Subject backlit with light source behind",
        ),
    ),
    (
        "harsh_shadows",
        TemplateOption(
            key="harsh_shadows",
            label="Harsh Shadows",
            glyph="🌞",
            keywords=(
                "harsh shadows",
                "strong directional light",
                "high contrast",
                "midday sun",
                "bold shadow patterns",
            ),
            description="Strong directional lighting with pronounced shadows",
        ),
    ),
)

# ---------------------------------------------------------------------------
# Mood: emotional tone and overall vibe.
# ---------------------------------------------------------------------------
_MOODS: tuple[tuple[str, TemplateOption], ...] = (
    (
        "warm_cozy",
        TemplateOption(
            key="warm_cozy",
            label="Warm & Cozy",
            glyph="☕",
            keywords=(
                "warm atmosphere",
                "cozy mood",
                "inviting",
                "comfortable",
                "warm earthy tones",
                "homey feeling",
            ),
            description="Warm, inviting, and comfortable atmosphere",
        ),
    ),
    (
        "energetic_vibrant",
        TemplateOption(
            key="energetic_vibrant",
            label="Energetic & Vibrant",
            glyph="⚡",
            keywords=(
                "energetic mood",
                "vibrant colors",
                "dynamic composition",
                "lively atmosphere",
                "bold and exciting",
            ),
            description="High energy, vibrant, and dynamic feeling",
        ),
    ),
    (
        "luxurious_elegant",
        TemplateOption(
            key="luxurious_elegant",
            label="Luxurious & Elegant",
            glyph="💎",
            keywords=(
                "luxurious aesthetic",
                "elegant style",
                "sophisticated",
                "high-end",
                "refined atmosphere",
                "premium quality",
            ),
            description="Sophisticated, elegant, and luxurious vibe",
        ),
    ),
    (
        "calm_serene",
        TemplateOption(
            key="calm_serene",
            label="Calm & Serene",
            glyph="🧘",
            keywords=(
                "calm atmosphere",
                "serene mood",
                "peaceful",
                "tranquil",
                "relaxing vibe",
                "zen aesthetic",
            ),
            description="Peaceful, calm, and tranquil atmosphere",
        ),
    ),
    (
        "professional_clean",
        TemplateOption(
            key="professional_clean",
            label="Professional & Clean",
            glyph="💼",
            keywords=(
                "professional aesthetic",
                "clean composition",
                "corporate style",
                "polished",
                "business appropriate",
                "trustworthy",
            ),
            description="Clean, professional, and business-oriented",
        ),
    ),
    (
        "playful_fun",
        TemplateOption(
            key="playful_fun",
            label="Playful & Fun",
            glyph="🎉",
            keywords=(
                "playful mood",
                "fun atmosphere",
                "whimsical",
                "lighthearted",
                "joyful vibe",
                "cheerful",
            ),
            description="Fun, playful, and lighthearted feeling",
        ),
    ),
    (
        "dark_moody",
        TemplateOption(
            key="dark_moody",
            label="Dark & Moody",
            glyph="🌙",
            keywords=(
                "dark moody aesthetic",
                "atmospheric",
                "mysterious",
                "deep shadows",
                "dramatic mood",
                "intense atmosphere",
            ),
            description="Dark, moody, and atmospheric with deep tones",
        ),
    ),
    (
        "bright_airy",
        TemplateOption(
            key="bright_airy",
            label="Bright & Airy",
            glyph="☀️",
            keywords=(
                "bright and airy",
                "light and fresh",
                "clean aesthetic",
                "uplifting mood",
                "open atmosphere",
                "luminous",
            ),
            description="Bright, airy, and fresh with lots of light",
        ),
    ),
)

_DECLARATIONS: dict[Facet, tuple[tuple[str, TemplateOption], ...]] = {
    Facet.SUBJECT_TYPE: _SUBJECT_TYPES,
    Facet.BACKGROUND: _BACKGROUNDS,
    Facet.LIGHTING: _LIGHTING,
    Facet.MOOD: _MOODS,
}

#: Read-only lookup tables, one per facet.
CATALOG: Mapping[Facet, Mapping[str, TemplateOption]] = MappingProxyType(
    {facet: MappingProxyType(dict(entries)) for facet, entries in _DECLARATIONS.items()}
)

# ---------------------------------------------------------------------------
# Quality modifiers.
# ---------------------------------------------------------------------------

#: Tail appended by ``compose`` when the quality boost is enabled.  A subset of
#: INSTAGRAM_QUALITY_MODIFIERS; adding all nine over-saturates the prompt.
QUALITY_BOOST: tuple[str, ...] = (
    "Instagram aesthetic",
    "professional quality",
    "sharp focus",
    "high resolution",
    "engaging composition",
)

INSTAGRAM_QUALITY_MODIFIERS: tuple[str, ...] = (
    "Instagram aesthetic",
    "mobile-optimized",
    "scroll-stopping",
    "professional quality",
    "sharp focus",
    "high resolution",
    "8k",
    "ultra detailed",
    "engaging composition",
)

#: Presets offered by the manual prompt editor.
QUICK_ADD_MODIFIERS: tuple[dict[str, str], ...] = (
    {"label": "Golden Hour", "value": "golden hour lighting, warm glow"},
    {"label": "Professional Quality", "value": "professional quality, sharp focus, high resolution"},
    {"label": "Instagram Aesthetic", "value": "Instagram aesthetic, mobile-optimized, engaging"},
    {"label": "Cinematic", "value": "cinematic lighting, dramatic composition"},
    {
        "label": "Bokeh Background",
        "value": "shallow depth of field, bokeh background, blurred backdrop",
    },
    {"label": "Vibrant Colors", "value": "vibrant colors, saturated, bold palette"},
    {"label": "Minimalist", "value": "minimalist style, clean, simple, negative space"},
    {"label": "High Contrast", "value": "high contrast, dramatic lighting, bold shadows"},
    {"label": "Soft & Dreamy", "value": "soft diffused lighting, dreamy atmosphere, ethereal"},
    {"label": "Ultra Detailed", "value": "ultra detailed, 8k resolution, crisp, sharp"},
)


def _coerce_facet(facet: Facet | str) -> Facet:
    """Accept either a :class:`Facet` member or its string value."""
    return facet if isinstance(facet, Facet) else Facet(facet)


def lookup(facet: Facet | str, key: str | None) -> TemplateOption | None:
    """Return the option registered under *key* in *facet*.

    Unknown keys (and ``None``) yield ``None`` rather than raising so that
    stale or partial selections from the UI simply contribute nothing.

    Args:
        facet: The facet to search.
        key: Option key, or ``None`` when nothing is selected.

    Returns:
        The matching :class:`TemplateOption`, or ``None``.

    Raises:
        ValueError: If *facet* is a string that names no facet.
    """
    if key is None:
        return None
    return CATALOG[_coerce_facet(facet)].get(key)


def list_all(facet: Facet | str) -> tuple[TemplateOption, ...]:
    """Return every option of *facet* in declaration order."""
    return tuple(option for _, option in _DECLARATIONS[_coerce_facet(facet)])


def facet_keys(facet: Facet | str) -> tuple[str, ...]:
    """Return the option keys of *facet* in declaration order."""
    return tuple(key for key, _ in _DECLARATIONS[_coerce_facet(facet)])
