"""
Path U enhancement: a gentle, identity-preserving touch-up of the composited photo.

Refinement is best effort. Any failure, including the service being
switched off, returns None and the caller keeps the unenhanced composite.
"""

import asyncio
import logging
from io import BytesIO
from typing import Optional

from google import genai
from PIL import Image

from nightstory.config import (
    IMAGE_CONSTANTS,
    extract_image_from_response,
    get_image_client,
    get_image_config,
    get_image_model,
    image_retry,
)
from ..prompts import build_refinement_prompt
from ..types import Child

logger = logging.getLogger(__name__)


class CoverRefiner:
    """Send a composited cover to the Gemini image model for enhancement."""

    def __init__(self, client: genai.Client = None, model: str = None, enabled: bool = None):
        self._client = client
        self.model = model or get_image_model()
        self.config = get_image_config()
        self.enabled = IMAGE_CONSTANTS["refinement_enabled"] if enabled is None else enabled

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = get_image_client()
        return self._client

    @image_retry
    def _refine_image(self, image: bytes, prompt: str) -> bytes:
        response = self.client.models.generate_content(
            model=self.model,
            contents=[Image.open(BytesIO(image)), prompt],
            config=self.config,
        )
        return extract_image_from_response(response)

    async def refine(
        self,
        image: bytes,
        style_name: str,
        tone: str = "",
        children: list[Child] = None,
    ) -> Optional[bytes]:
        """
        Try to enhance a composited cover.

        Args:
            image: Composited PNG bytes
            style_name: Chosen visual style
            tone: Style-specific enhancement direction
            children: Children shown in the photo

        Returns:
            Refined image bytes, or None when refinement is not available
        """
        if not self.enabled:
            logger.info("Cover refinement disabled; keeping composited photo")
            return None

        prompt = build_refinement_prompt(style_name, tone or "gentle warm evening tones", children or [])
        try:
            return await asyncio.to_thread(self._refine_image, image, prompt)
        except Exception as e:
            logger.warning(f"Cover refinement unavailable, using composited photo: {e}")
            return None
