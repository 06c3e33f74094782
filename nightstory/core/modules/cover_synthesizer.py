"""
Path S: synthesize a story cover from a description.

Used when no photo was uploaded. The description pins the exact number of
children, the theme companion and the chosen style.
"""

import asyncio

from google import genai

from nightstory.config import (
    extract_image_part,
    get_image_client,
    get_image_config,
    get_image_model,
    image_retry,
    to_data_uri,
)
from ..errors import ParseError, TransportError
from ..prompts import build_synthesis_prompt
from ..themes import get_style, get_theme
from ..types import AnswerSet, ImageSynthesisRequest

_NUMBER_WORDS = {
    1: "one", 2: "two", 3: "three", 4: "four", 5: "five",
    6: "six", 7: "seven", 8: "eight", 9: "nine", 10: "ten",
}


def describe_child_count(count: int) -> str:
    """Exact child count phrase for the image prompt, e.g. "exactly two children together"."""
    if count == 1:
        return "exactly one child"
    word = _NUMBER_WORDS.get(count, str(count))
    return f"exactly {word} children together"


def build_synthesis_request(answer_set: AnswerSet) -> ImageSynthesisRequest:
    """Describe the cover to synthesize for these answers."""
    style = get_style(answer_set.primary_style)
    custom_style = answer_set.custom_visual_style.strip()
    if style:
        style_name = style.name
        style_modifiers = style.prompt_prefix
        if style.lighting_direction:
            style_modifiers = f"{style_modifiers}, {style.lighting_direction}"
    else:
        style_name = custom_style
        style_modifiers = f"Children's storybook illustration in this style: {custom_style}"

    theme = get_theme(answer_set.primary_theme)
    names = [c.name.strip() for c in answer_set.children if c.name.strip()]

    return ImageSynthesisRequest(
        style_name=style_name,
        child_count=len(answer_set.children),
        child_count_description=describe_child_count(len(answer_set.children)),
        child_names=names,
        theme_companion_description=theme.companion_description if theme else "",
        theme_negative_constraints=theme.negative_constraints if theme else "",
        style_modifiers=style_modifiers,
        photo_description=answer_set.photo_description.strip(),
    )


class CoverSynthesizer:
    """
    Generate a cover image with the Gemini image model.

    The client is created on first use.
    """

    def __init__(self, client: genai.Client = None, model: str = None):
        self._client = client
        self.model = model or get_image_model()
        self.config = get_image_config()

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = get_image_client()
        return self._client

    @image_retry
    def _generate_image(self, prompt: str) -> tuple[bytes, str]:
        """Generate image from prompt with retry for network errors."""
        response = self.client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=self.config,
        )
        return extract_image_part(response)

    async def synthesize(self, request: ImageSynthesisRequest) -> str:
        """
        Request a synthesized cover.

        Returns:
            Data URI of the generated image

        Raises:
            TransportError: If the image service is unavailable or fails
            ParseError: If the response carries no image
        """
        if self._client is None:
            try:
                self._client = get_image_client()
            except ValueError as e:
                raise TransportError(f"Image service not configured: {e}") from e

        prompt = build_synthesis_prompt(request)
        try:
            image_data, mime_type = await asyncio.to_thread(self._generate_image, prompt)
        except ValueError as e:
            raise ParseError(f"No cover image in synthesis response: {e}") from e
        except Exception as e:
            raise TransportError(f"Cover synthesis failed: {e}") from e

        return to_data_uri(image_data, mime_type)
