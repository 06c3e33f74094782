"""Pydantic models for API requests."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from nightstory.config import STORY_CONSTANTS
from nightstory.core.modules.cover_compositor import decode_image_payload
from nightstory.core.themes import parse_length_minutes, parse_style, parse_theme
from nightstory.core.types import AnswerSet, Child


class ChildInput(BaseModel):
    """One child as entered on the form."""

    name: str = Field(default="", max_length=100, description="Exact name, used verbatim in the story")
    age: str = Field(default="", max_length=20)


class CreateSessionRequest(BaseModel):
    """Questionnaire answers. Theme and style labels may be English or French."""

    children: list[ChildInput] = Field(..., min_length=1, description="Children who star in the story")
    enjoyed_characters: list[str] = Field(
        default_factory=list,
        description="Character themes, e.g. Dragons, Animaux, Super-héros",
        examples=[["Dragons"]],
    )
    custom_characters: str = Field(default="", max_length=200)
    teaching_themes: list[str] = Field(default_factory=list, examples=[["Kindness", "Sharing"]])
    custom_teaching_theme: str = Field(default="", max_length=200)
    story_length: Optional[str] = Field(
        default=None,
        description="Length option label; the midpoint of a range is used",
        examples=["5-10 Mins"],
    )
    include_images: Optional[bool] = None
    visual_style: list[str] = Field(
        default_factory=list,
        description="Cover styles, e.g. Cartoon, Dessin animé, Réaliste",
        examples=[["Cartoon"]],
    )
    custom_visual_style: str = Field(default="", max_length=200)
    photo_description: str = Field(default="", max_length=500)
    photo_base64: Optional[str] = Field(default=None, description="Uploaded photo as base64 or data URL")
    language: Literal["en", "fr"] = "en"

    def to_answer_set(self) -> AnswerSet:
        """
        Normalize labels to enums and build the domain answer set.

        Unknown character labels are kept as custom characters, unknown
        styles as a custom style. Children with neither name nor age are
        dropped.

        Raises:
            ParseError: If the uploaded photo is not valid base64
        """
        themes, custom_characters = [], [self.custom_characters.strip()]
        for label in self.enjoyed_characters:
            theme = parse_theme(label)
            if theme is None:
                custom_characters.append(label.strip())
            elif theme not in themes:
                themes.append(theme)

        styles, custom_styles = [], [self.custom_visual_style.strip()]
        for label in self.visual_style:
            style = parse_style(label)
            if style is None:
                custom_styles.append(label.strip())
            elif style not in styles:
                styles.append(style)

        children = [
            Child(name=c.name.strip(), age=c.age.strip())
            for c in self.children
            if c.name.strip() or c.age.strip()
        ]

        return AnswerSet(
            children=children,
            character_themes=themes,
            custom_characters=", ".join(c for c in custom_characters if c),
            teaching_themes=[t.strip() for t in self.teaching_themes if t.strip()],
            custom_teaching_theme=self.custom_teaching_theme.strip(),
            length_minutes=parse_length_minutes(self.story_length, STORY_CONSTANTS["default_length_minutes"]),
            include_images=self.include_images,
            visual_styles=styles,
            custom_visual_style=", ".join(s for s in custom_styles if s),
            photo_description=self.photo_description.strip(),
            uploaded_image=decode_image_payload(self.photo_base64) if self.photo_base64 else None,
            language=self.language,
        )
