"""
Character themes and visual styles offered by the questionnaire.

The form shows localized labels ("Animaux", "Dessin animé", ...). They are
mapped to a single enum at the input boundary so that every table below is
keyed once, independently of the UI language.
"""

import re
import unicodedata
from typing import Optional

from .types import StyleDefinition, StyleType, ThemeDefinition, ThemeType


THEMES: dict[ThemeType, ThemeDefinition] = {

    ThemeType.PRINCESSES: ThemeDefinition(
        labels={"en": "Princesses", "fr": "Princesses"},
        companion_keywords=[
            "princess", "princesse", "royal", "castle", "château",
            "unicorn", "licorne", "fairy", "fée", "crown", "couronne",
        ],
        companion_description="a friendly princess or royal fairytale companion with a sparkling crown, standing beside the children",
        negative_constraints="no villains, no frightening castles, no damsel-in-distress scenes",
    ),

    ThemeType.SUPERHEROES: ThemeDefinition(
        labels={"en": "Superheroes", "fr": "Super-héros"},
        companion_keywords=[
            "superhero", "super-héros", "superheroes", "cape", "hero",
            "héros", "power", "pouvoir", "super",
        ],
        companion_description="a kind superhero companion in a bright flowing cape, the children wearing little hero capes too",
        negative_constraints="no fighting, no weapons, no explosions, no masked villains",
    ),

    ThemeType.ANIMALS: ThemeDefinition(
        labels={"en": "Animals", "fr": "Animaux"},
        companion_keywords=[
            "animal", "animaux", "puppy", "chiot", "bunny", "lapin", "bird",
            "oiseau", "dog", "chien", "cat", "chat", "rabbit",
        ],
        companion_description="a gentle, friendly animal companion such as a puppy or bunny playing with the children",
        negative_constraints="no wild predators, no bared teeth, no aggressive animals",
    ),

    ThemeType.DRAGONS: ThemeDefinition(
        labels={"en": "Dragons", "fr": "Dragons"},
        companion_keywords=["dragon", "dragons"],
        companion_description="a friendly, gentle, smiling dragon with soft rounded features curled up near the children",
        negative_constraints="no fire breathing toward the children, no sharp fangs, no menacing or scary dragons",
    ),
}


STYLES: dict[StyleType, StyleDefinition] = {

    StyleType.CARTOON: StyleDefinition(
        name="Cartoon",
        description="Bright colors, soft outlines, simple shapes.",
        prompt_prefix="Bright cartoon children's book illustration with soft rounded outlines, simple shapes and cheerful saturated colors",
        lighting_direction="bright even lighting with gentle cel-shading",
        refinement_tone="slightly brighter, warmer and more saturated, with softened edges",
    ),

    StyleType.REALISTIC: StyleDefinition(
        name="Realistic",
        description="Natural lighting, high detail, lifelike proportions.",
        prompt_prefix="Realistic storybook painting with natural proportions, high detail and true-to-life textures",
        lighting_direction="natural warm evening light through a window",
        refinement_tone="natural colors with a barely perceptible warm glow, preserving every detail",
    ),

    StyleType.FANTASY: StyleDefinition(
        name="Fantasy",
        description="Magical lighting, pastel glow, whimsical elements.",
        prompt_prefix="Whimsical fantasy storybook illustration with a pastel glow, floating sparkles and magical atmosphere",
        lighting_direction="soft glowing moonlight with drifting sparkles",
        refinement_tone="a soft pastel glow and gentle magical sparkle around the edges",
    ),

    StyleType.MODERN: StyleDefinition(
        name="Modern",
        description="Clean lines, muted color palette, minimalist look.",
        prompt_prefix="Modern minimalist picture-book illustration with clean lines, flat shapes and a muted color palette",
        lighting_direction="calm diffused light with subtle shadows",
        refinement_tone="clean contrast with slightly muted colors",
    ),
}


_STYLE_LABELS = {
    "cartoon": StyleType.CARTOON,
    "dessin anime": StyleType.CARTOON,
    "realistic": StyleType.REALISTIC,
    "realiste": StyleType.REALISTIC,
    "fantasy": StyleType.FANTASY,
    "fantastique": StyleType.FANTASY,
    "modern": StyleType.MODERN,
    "moderne": StyleType.MODERN,
}

_THEME_LABELS = {
    "princesses": ThemeType.PRINCESSES,
    "princess": ThemeType.PRINCESSES,
    "superheroes": ThemeType.SUPERHEROES,
    "superhero": ThemeType.SUPERHEROES,
    "super-heros": ThemeType.SUPERHEROES,
    "super heros": ThemeType.SUPERHEROES,
    "animals": ThemeType.ANIMALS,
    "animaux": ThemeType.ANIMALS,
    "dragons": ThemeType.DRAGONS,
    "dragon": ThemeType.DRAGONS,
}


def _normalize_label(label: str) -> str:
    """Lowercase, strip accents and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", label)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.lower().split())


def parse_theme(label) -> Optional[ThemeType]:
    """Map an English or French theme label (or enum value) to a ThemeType."""
    if isinstance(label, ThemeType):
        return label
    if not label:
        return None
    return _THEME_LABELS.get(_normalize_label(label))


def parse_style(label) -> Optional[StyleType]:
    """Map an English or French style label (or enum value) to a StyleType."""
    if isinstance(label, StyleType):
        return label
    if not label:
        return None
    return _STYLE_LABELS.get(_normalize_label(label))


def get_theme(theme: Optional[ThemeType]) -> Optional[ThemeDefinition]:
    """Get the theme definition, or None when no theme was chosen."""
    if theme is None:
        return None
    return THEMES[theme]


def get_style(style: Optional[StyleType]) -> Optional[StyleDefinition]:
    """Get the style definition, or None when no style was chosen."""
    if style is None:
        return None
    return STYLES[style]


def get_companion_keywords(theme: Optional[ThemeType]) -> list[str]:
    """Keywords that show the theme companion made it into the story."""
    definition = get_theme(theme)
    return list(definition.companion_keywords) if definition else []


def parse_length_minutes(label: Optional[str], default: int = 5) -> int:
    """
    Turn a length option like "5-10 Mins" into a target minute count.

    Uses the midpoint of the range, rounding halves up ("5-10" -> 8).
    """
    if not label:
        return default
    match = re.search(r"(\d+)\s*-\s*(\d+)", label)
    if match:
        low, high = int(match.group(1)), int(match.group(2))
        return int((low + high) / 2 + 0.5)
    single = re.search(r"\d+", label)
    if single:
        return int(single.group(0))
    return default
