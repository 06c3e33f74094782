"""
Centralized domain types for the bedtime story generator.

All dataclasses that are used across multiple modules are defined here
to make data flow explicit and avoid circular imports.
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .errors import ParseError


# =============================================================================
# Enums
# =============================================================================


class ThemeType(Enum):
    """Character themes a child can enjoy."""

    PRINCESSES = "princesses"
    SUPERHEROES = "superheroes"
    ANIMALS = "animals"
    DRAGONS = "dragons"


class StyleType(Enum):
    """Visual styles available for the story cover."""

    CARTOON = "cartoon"
    REALISTIC = "realistic"
    FANTASY = "fantasy"
    MODERN = "modern"


class ImageOrigin(Enum):
    """Which acquisition path produced the cover."""

    UPLOADED = "uploaded"
    SYNTHESIZED = "synthesized"


# =============================================================================
# Style / Theme Types
# =============================================================================


@dataclass
class StyleDefinition:
    """Complete definition of a cover style."""

    name: str
    description: str  # Human-readable description
    prompt_prefix: str  # Concise style direction for synthesis
    lighting_direction: str = ""
    refinement_tone: str = ""  # How gently to treat an uploaded photo


@dataclass
class ThemeDefinition:
    """A character theme and the companion it implies."""

    labels: dict[str, str]  # language -> display label
    companion_keywords: list[str]
    companion_description: str
    negative_constraints: str = ""

    def label(self, language: str = "en") -> str:
        return self.labels.get(language, self.labels["en"])


# =============================================================================
# Questionnaire
# =============================================================================


@dataclass
class Child:
    """A child named in the questionnaire. Names are used exactly as given."""

    name: str
    age: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "age": self.age}


@dataclass
class AnswerSet:
    """Structured questionnaire input, captured once at submission."""

    children: list[Child]
    character_themes: list[ThemeType] = field(default_factory=list)
    custom_characters: str = ""
    teaching_themes: list[str] = field(default_factory=list)
    custom_teaching_theme: str = ""
    length_minutes: int = 5
    include_images: Optional[bool] = None
    visual_styles: list[StyleType] = field(default_factory=list)
    custom_visual_style: str = ""
    photo_description: str = ""
    uploaded_image: Optional[bytes] = None
    language: str = "en"

    @property
    def primary_theme(self) -> Optional[ThemeType]:
        """The theme whose companion the story and cover must include."""
        return self.character_themes[0] if self.character_themes else None

    @property
    def primary_style(self) -> Optional[StyleType]:
        return self.visual_styles[0] if self.visual_styles else None

    @property
    def has_style(self) -> bool:
        return bool(self.visual_styles) or bool(self.custom_visual_style.strip())

    @property
    def wants_cover(self) -> bool:
        """Images were requested and at least one style was chosen."""
        return self.include_images is True and self.has_style

    def to_dict(self) -> dict:
        """Serialize for the session cache."""
        return {
            "children": [c.to_dict() for c in self.children],
            "character_themes": [t.value for t in self.character_themes],
            "custom_characters": self.custom_characters,
            "teaching_themes": list(self.teaching_themes),
            "custom_teaching_theme": self.custom_teaching_theme,
            "length_minutes": self.length_minutes,
            "include_images": self.include_images,
            "visual_styles": [s.value for s in self.visual_styles],
            "custom_visual_style": self.custom_visual_style,
            "photo_description": self.photo_description,
            "uploaded_image": (
                base64.b64encode(self.uploaded_image).decode("ascii")
                if self.uploaded_image else None
            ),
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnswerSet":
        """Rebuild from the session cache representation."""
        image = data.get("uploaded_image")
        return cls(
            children=[Child(name=c.get("name", ""), age=c.get("age", "")) for c in data.get("children", [])],
            character_themes=[ThemeType(v) for v in data.get("character_themes", [])],
            custom_characters=data.get("custom_characters", ""),
            teaching_themes=list(data.get("teaching_themes", [])),
            custom_teaching_theme=data.get("custom_teaching_theme", ""),
            length_minutes=int(data.get("length_minutes", 5)),
            include_images=data.get("include_images"),
            visual_styles=[StyleType(v) for v in data.get("visual_styles", [])],
            custom_visual_style=data.get("custom_visual_style", ""),
            photo_description=data.get("photo_description", ""),
            uploaded_image=base64.b64decode(image) if image else None,
            language=data.get("language", "en"),
        )


# =============================================================================
# Narrative Types
# =============================================================================


@dataclass
class NarrativeSection:
    """One headed section of the story."""

    headline: str
    body: str


@dataclass
class Narrative:
    """A generated story: a title plus ordered sections."""

    title: str
    sections: list[NarrativeSection] = field(default_factory=list)

    def full_text(self) -> str:
        """Title, headlines and bodies joined into one searchable string."""
        parts = [self.title]
        for section in self.sections:
            parts.append(f"{section.headline} {section.body}")
        return " ".join(parts)

    @property
    def word_count(self) -> int:
        return sum(len(s.body.split()) for s in self.sections)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "sections": [{"headline": s.headline, "body": s.body} for s in self.sections],
        }

    @classmethod
    def from_dict(cls, data) -> "Narrative":
        """
        Build a Narrative from a decoded service payload.

        Raises:
            ParseError: If the payload does not have a title and a list of sections
        """
        if not isinstance(data, dict):
            raise ParseError("Story payload is not an object")
        title = data.get("title")
        sections = data.get("sections")
        if not isinstance(title, str) or not title.strip():
            raise ParseError("Story payload has no title")
        if not isinstance(sections, list):
            raise ParseError("Story payload has no sections list")

        parsed = []
        for section in sections:
            if not isinstance(section, dict):
                raise ParseError("Story section is not an object")
            parsed.append(
                NarrativeSection(
                    headline=str(section.get("headline") or ""),
                    body=str(section.get("body") or ""),
                )
            )
        return cls(title=title.strip(), sections=parsed)

    def to_markdown(self) -> str:
        """Format the story for saving or display."""
        lines = [f"# {self.title}", ""]
        for section in self.sections:
            lines.append(f"## {section.headline}")
            lines.append("")
            lines.append(section.body)
            lines.append("")
        return "\n".join(lines)


@dataclass
class NarrativeRequest:
    """Everything the narrative service is told about the story to write."""

    children: list[Child]
    themes: list[str]
    length_minutes: int
    characters: list[str]
    language: str = "en"


@dataclass
class Verdict:
    """Pass/fail judgment of a narrative plus the rules it violated."""

    valid: bool
    reasons: list[str] = field(default_factory=list)


@dataclass
class GenerationAttempt:
    """One call to the narrative service and what came back."""

    index: int
    prompt_augmentation: str = ""
    narrative: Optional[Narrative] = None
    verdict: Optional[Verdict] = None
    error: Optional[Exception] = None


@dataclass
class NarrativeResult:
    """Outcome of the bounded attempt loop."""

    narrative: Narrative
    verdict: Optional[Verdict]
    attempts: list[GenerationAttempt] = field(default_factory=list)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


# =============================================================================
# Cover Types
# =============================================================================


@dataclass
class ImageAcquisitionResult:
    """The finalized story cover. Created at most once per session."""

    image_reference: str  # URL or data URI
    origin: ImageOrigin
    style: Optional[StyleType] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "image_reference": self.image_reference,
            "origin": self.origin.value,
            "style": self.style.value if self.style else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImageAcquisitionResult":
        style = data.get("style")
        return cls(
            image_reference=data["image_reference"],
            origin=ImageOrigin(data["origin"]),
            style=StyleType(style) if style else None,
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class ImageSynthesisRequest:
    """Description sent to the image-synthesis service."""

    style_name: str
    child_count: int
    child_count_description: str
    child_names: list[str] = field(default_factory=list)
    theme_companion_description: str = ""
    theme_negative_constraints: str = ""
    style_modifiers: str = ""
    photo_description: str = ""


@dataclass
class CoverPlacement:
    """Where the full source image is drawn on the cover canvas."""

    draw_x: float
    draw_y: float
    draw_width: float
    draw_height: float
    source_x: int
    source_y: int
    source_width: int
    source_height: int
    canvas_width: int
    canvas_height: int

    @property
    def left_margin(self) -> float:
        return self.draw_x

    @property
    def right_margin(self) -> float:
        return self.canvas_width - (self.draw_x + self.draw_width)

    @property
    def top_margin(self) -> float:
        return self.draw_y

    @property
    def bottom_margin(self) -> float:
        return self.canvas_height - (self.draw_y + self.draw_height)
