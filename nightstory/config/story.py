"""
Story generation constants for the bedtime story generator.
"""

import os

# Story generation constants
STORY_CONSTANTS = {
    "max_attempts": 3,  # Narrative attempts before accepting the last one
    "default_length_minutes": 5,
    "default_theme": "adventure and friendship",
    "max_instructional_phrases": 2,
    "languages": ("en", "fr"),
}

# Session cache keys (one browsing session)
SESSION_KEYS = {
    "answer_set": "storyFormData",
    "cover": "storyCoverImage",
}

# How long an idle browsing session is kept by the API layer (seconds)
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))
