"""
Image configuration for story covers.

Covers are either synthesized from a description or composited from an
uploaded photo and then refined. Both remote paths go through the Gemini
image model.
"""

import base64
import logging
import os

from dotenv import load_dotenv
from google import genai
from google.genai.errors import ClientError, ServerError
from google.genai.types import GenerateContentConfig, Modality
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Cover image constants
IMAGE_CONSTANTS = {
    "model": os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image"),
    "cover_width": 1536,  # 16:10 story cover
    "cover_height": 960,
    # Empirical multiplier on the contain scale
    "cover_zoom": 1.2,
    "refinement_enabled": os.getenv("COVER_REFINEMENT_ENABLED", "true").lower() in ("true", "1", "yes"),
}

# Errors that should trigger retry
RETRYABLE_EXCEPTIONS = (
    ServerError,
    ConnectionError,
    TimeoutError,
    BrokenPipeError,
    OSError,
)


def _is_retryable(exc: BaseException) -> bool:
    """Server errors, network errors and rate limits are retried; other client errors are not."""
    if isinstance(exc, ClientError):
        return getattr(exc, "code", None) == 429
    return isinstance(exc, RETRYABLE_EXCEPTIONS)


# Retry decorator for image generation calls
image_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception(_is_retryable),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def get_image_client() -> genai.Client:
    """
    Get the Gemini client used for cover synthesis and refinement.

    Uses GOOGLE_API_KEY from environment.
    """
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError("GOOGLE_API_KEY not found in environment. Set it in .env file.")

    return genai.Client(api_key=api_key)


def get_image_model() -> str:
    """Get the image model ID."""
    return IMAGE_CONSTANTS["model"]


def get_image_config() -> GenerateContentConfig:
    """Get the default config for image generation."""
    return GenerateContentConfig(
        response_modalities=[Modality.TEXT, Modality.IMAGE]
    )


def extract_image_part(response) -> tuple[bytes, str]:
    """
    Extract image bytes and their MIME type from a Gemini API response.

    Args:
        response: The response from genai.Client.models.generate_content()

    Returns:
        (image bytes, MIME type), the type defaulting to image/png

    Raises:
        ValueError: If no image found in response
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        raise ValueError("No image found in response")

    for part in candidates[0].content.parts or []:
        if hasattr(part, 'inline_data') and part.inline_data:
            data = part.inline_data.data
            image = base64.b64decode(data) if isinstance(data, str) else data
            return image, getattr(part.inline_data, "mime_type", None) or "image/png"

    raise ValueError("No image found in response")


def extract_image_from_response(response) -> bytes:
    """Extract image bytes (PNG/JPEG) from a Gemini API response."""
    return extract_image_part(response)[0]


def to_data_uri(image_bytes: bytes, mime_type: str = "image/png") -> str:
    """Encode image bytes as a data URI usable as a cover reference."""
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
