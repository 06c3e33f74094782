"""FastAPI dependency injection for the session registry."""

from typing import Annotated

from dotenv import find_dotenv, load_dotenv
from fastapi import Depends, HTTPException, status

# Load .env from project root (find_dotenv searches parent directories)
load_dotenv(find_dotenv())

from nightstory.core.programs.story_session import StorySession  # noqa: E402
from .services.session_registry import SessionRegistry, session_registry  # noqa: E402


def get_registry() -> SessionRegistry:
    """Get the process-wide session registry."""
    return session_registry


def get_session(
    session_id: str,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
) -> StorySession:
    """Look up a session by path id, 404 if unknown or expired."""
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    return session


# Type aliases for cleaner route signatures
Registry = Annotated[SessionRegistry, Depends(get_registry)]
Session = Annotated[StorySession, Depends(get_session)]
