"""Structured logging infrastructure.

Provides JSON-formatted logging for production and human-readable
logging for development, plus a SessionLogger helper for story session events.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Extra fields copied onto JSON log lines when present on the record
EXTRA_FIELDS = ("session_id", "stage", "duration", "attempt", "token", "error_type", "origin", "include_images")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(json_format: bool = True, level: int = logging.INFO) -> None:
    """Configure structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


class SessionLogger:
    """Logger for story session events with structured fields."""

    def __init__(self):
        self.logger = logging.getLogger("story_session")

    def session_started(self, session_id: str, include_images: bool) -> None:
        self.logger.info(
            "Story session started",
            extra={"session_id": session_id, "stage": "started", "include_images": include_images},
        )

    def stage_completed(self, session_id: str, stage: str, duration: float = None) -> None:
        extra = {"session_id": session_id, "stage": stage}
        if duration:
            extra["duration"] = round(duration, 2)
        self.logger.info(f"Stage completed: {stage}", extra=extra)

    def attempt_failed(self, session_id: str, attempt: int, reasons: list[str]) -> None:
        self.logger.warning(
            f"Narrative attempt {attempt} failed evaluation: {'; '.join(reasons)}",
            extra={"session_id": session_id, "attempt": attempt},
        )

    def attempt_errored(self, session_id: str, attempt: int, error: Exception) -> None:
        self.logger.warning(
            f"Narrative attempt {attempt} errored: {error}",
            extra={"session_id": session_id, "attempt": attempt, "error_type": type(error).__name__},
        )

    def cover_finalized(self, session_id: str, token: int, origin: str) -> None:
        self.logger.info(
            "Cover finalized",
            extra={"session_id": session_id, "stage": "cover", "token": token, "origin": origin},
        )

    def stale_discarded(self, session_id: str, token: int, reason: str) -> None:
        self.logger.info(
            f"Discarded cover completion: {reason}",
            extra={"session_id": session_id, "token": token},
        )

    def phase_failed(self, session_id: str, stage: str, error: Exception) -> None:
        self.logger.error(
            f"{stage} failed: {error}",
            extra={"session_id": session_id, "stage": stage, "error_type": type(error).__name__},
        )


# Global session logger instance
session_logger = SessionLogger()
