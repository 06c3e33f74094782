"""
Configuration module for the bedtime story generator.

Re-exports all configuration for convenient imports.
"""

from .llm import get_narrative_lm, get_narrative_model_name, llm_retry
from .story import STORY_CONSTANTS, SESSION_KEYS, SESSION_TTL_SECONDS, MAX_SESSIONS
from .image import (
    IMAGE_CONSTANTS,
    get_image_client,
    get_image_model,
    get_image_config,
    extract_image_from_response,
    extract_image_part,
    image_retry,
    to_data_uri,
)

__all__ = [
    # LLM
    "get_narrative_lm",
    "get_narrative_model_name",
    "llm_retry",
    # Story
    "STORY_CONSTANTS",
    "SESSION_KEYS",
    "SESSION_TTL_SECONDS",
    "MAX_SESSIONS",
    # Image
    "IMAGE_CONSTANTS",
    "get_image_client",
    "get_image_model",
    "get_image_config",
    "extract_image_from_response",
    "extract_image_part",
    "image_retry",
    "to_data_uri",
]
