"""
Session-scoped key-value store.

Holds the submitted answer set and the finalized cover for one browsing
session. It outlives re-renders and re-entrant triggers, but nothing is
persisted beyond the session itself.
"""

import json
import logging
from typing import Optional

from nightstory.config import SESSION_KEYS
from .types import AnswerSet, ImageAcquisitionResult

logger = logging.getLogger(__name__)

ANSWER_SET_KEY = SESSION_KEYS["answer_set"]
COVER_KEY = SESSION_KEYS["cover"]


class SessionCache:
    """In-memory string store with get/set/remove semantics."""

    def __init__(self):
        self._values: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


def save_answer_set(cache: SessionCache, answer_set: AnswerSet) -> None:
    cache.set(ANSWER_SET_KEY, json.dumps(answer_set.to_dict()))


def load_answer_set(cache: SessionCache) -> Optional[AnswerSet]:
    """Read the submitted answer set, or None if absent or unreadable."""
    raw = cache.get(ANSWER_SET_KEY)
    if raw is None:
        return None
    try:
        return AnswerSet.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Discarding unreadable answer set from session cache: {e}")
        cache.remove(ANSWER_SET_KEY)
        return None


def save_cover(cache: SessionCache, result: ImageAcquisitionResult) -> None:
    cache.set(COVER_KEY, json.dumps(result.to_dict()))


def load_cover(cache: SessionCache) -> Optional[ImageAcquisitionResult]:
    """Read a previously finalized cover, or None if there is none."""
    raw = cache.get(COVER_KEY)
    if raw is None:
        return None
    try:
        return ImageAcquisitionResult.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Discarding unreadable cover from session cache: {e}")
        cache.remove(COVER_KEY)
        return None


def clear_session(cache: SessionCache) -> None:
    """Forget both the answer set and the cover."""
    cache.remove(ANSWER_SET_KEY)
    cache.remove(COVER_KEY)
