"""Pydantic models for API requests and responses."""

from .requests import ChildInput, CreateSessionRequest
from .responses import (
    CoverResponse,
    CreateSessionResponse,
    NarrativeResponse,
    SessionResponse,
    VerdictResponse,
)

__all__ = [
    "ChildInput",
    "CreateSessionRequest",
    "CoverResponse",
    "CreateSessionResponse",
    "NarrativeResponse",
    "SessionResponse",
    "VerdictResponse",
]
