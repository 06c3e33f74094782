"""Pydantic models for API responses."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class NarrativeSectionResponse(BaseModel):
    headline: str
    body: str


class NarrativeResponse(BaseModel):
    """The generated story."""

    title: str
    sections: list[NarrativeSectionResponse]


class VerdictResponse(BaseModel):
    """Outcome of the last quality evaluation."""

    valid: bool
    reasons: list[str]


class CoverResponse(BaseModel):
    """The finalized story cover."""

    image_reference: str  # URL or data URI
    origin: Literal["uploaded", "synthesized"]
    style: Optional[str] = None
    created_at: datetime


class SessionResponse(BaseModel):
    """Observable state of a story session. Poll until both phases settle."""

    session_id: str
    narrative_phase: Literal["pending", "ready", "error"]
    image_phase: Literal["pending", "ready", "error", "not-requested"]
    narrative: Optional[NarrativeResponse] = None
    verdict: Optional[VerdictResponse] = None
    attempts: int = 0
    cover: Optional[CoverResponse] = None
    narrative_error: Optional[str] = None
    image_error: Optional[str] = None


class CreateSessionResponse(BaseModel):
    """Response when a session is created."""

    session_id: str
    narrative_phase: Literal["pending", "ready", "error"] = "pending"
