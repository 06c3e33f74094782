"""API services."""

from .session_registry import SessionRegistry, session_registry

__all__ = ["SessionRegistry", "session_registry"]
