"""In-memory registry of story sessions with browsing-session lifetime."""

import logging
from typing import Callable, Optional

import cachetools

from nightstory.config import MAX_SESSIONS, SESSION_TTL_SECONDS
from nightstory.core.programs.story_session import StorySession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Holds StorySession objects keyed by session id.

    Entries expire after `ttl` seconds; an expired session is simply gone,
    together with its cached answers and cover.
    """

    def __init__(
        self,
        max_size: int = MAX_SESSIONS,
        ttl: int = SESSION_TTL_SECONDS,
        factory: Callable[[], StorySession] = StorySession,
    ):
        self._sessions: cachetools.TTLCache = cachetools.TTLCache(maxsize=max_size, ttl=ttl)
        self._factory = factory
        logger.info("SessionRegistry initialized with max_size=%d, ttl=%d seconds", max_size, ttl)

    def create(self) -> StorySession:
        session = self._factory()
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[StorySession]:
        return self._sessions.get(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


# Global registry instance
session_registry = SessionRegistry()
