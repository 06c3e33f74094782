"""Error taxonomy for story and cover generation."""

from typing import Any, Dict, Optional


class NightStoryError(Exception):
    """Base exception for the bedtime story generator."""

    error_code = "NIGHT_STORY_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize NightStoryError.

        Args:
            message: Human-readable error message.
            details: Additional error details.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(NightStoryError):
    """Required answers are missing; rejected before any remote call."""

    error_code = "VALIDATION_ERROR"


class TransportError(NightStoryError):
    """A remote service was unreachable or answered with a non-success response."""

    error_code = "TRANSPORT_ERROR"


class ParseError(NightStoryError):
    """A remote response could not be decoded into the expected structure."""

    error_code = "PARSE_ERROR"


class StaleResponse(NightStoryError):
    """A completion arrived for an acquisition token that is no longer current."""

    error_code = "STALE_RESPONSE"


class LockConflict(NightStoryError):
    """A completion found the cover already finalized."""

    error_code = "LOCK_CONFLICT"
