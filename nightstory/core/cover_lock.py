"""
Single-shot lock around cover acquisition.

    UNSTARTED --begin()--> IN_FLIGHT(token) --finalize(token)--> FINALIZED(result)
                               |
                               +--fail(token)--> UNSTARTED

"started" and "finalized" are separate flags: a failure clears only the
first, so a retry is possible while a finalized cover can never be
replaced. Every begin() mints a new token; completions carrying an older
token are discarded. All writes to the result slot go through finalize().

The orchestrator runs on a single event loop, so the check-then-write in
finalize() cannot interleave with another writer.
"""

from enum import Enum
from typing import Optional

from nightstory.logging import session_logger
from .errors import LockConflict, StaleResponse
from .session_cache import SessionCache, save_cover
from .types import ImageAcquisitionResult


class CoverState(Enum):
    UNSTARTED = "unstarted"
    IN_FLIGHT = "in_flight"
    FINALIZED = "finalized"


class CoverLock:
    """Owns the cover result slot, the started/finalized flags and the current token."""

    def __init__(self, cache: SessionCache, session_id: str = ""):
        self.cache = cache
        self.session_id = session_id
        self.started = False
        self.finalized = False
        self.token = 0
        self.result: Optional[ImageAcquisitionResult] = None

    @property
    def state(self) -> CoverState:
        if self.finalized:
            return CoverState.FINALIZED
        if self.started:
            return CoverState.IN_FLIGHT
        return CoverState.UNSTARTED

    def begin(self) -> Optional[int]:
        """
        Claim the acquisition if nobody has yet.

        Returns:
            A fresh token, or None when an acquisition already started or finished
        """
        if self.finalized or self.started:
            return None
        self.started = True
        self.token += 1
        return self.token

    def is_current(self, token: int) -> bool:
        """True while `token` is the authoritative in-flight acquisition."""
        return token == self.token and self.started and not self.finalized

    def finalize(self, token: int, result: ImageAcquisitionResult) -> bool:
        """
        Write the cover if `token` still owns the acquisition.

        Persists the result to the session cache. Completions that arrive
        after finalization or with a stale token are logged and dropped.

        Returns:
            True if this call wrote the result
        """
        if self.finalized:
            self._discard(token, LockConflict("cover already finalized"))
            return False
        if token != self.token or not self.started:
            self._discard(token, StaleResponse(f"token {token} superseded by {self.token}"))
            return False

        self.result = result
        self.finalized = True
        save_cover(self.cache, result)
        session_logger.cover_finalized(self.session_id, token, result.origin.value)
        return True

    def fail(self, token: int) -> bool:
        """
        Release the started flag after a failed acquisition.

        Never touches the finalized flag. Returns False for stale tokens.
        """
        if token != self.token or self.finalized:
            self._discard(token, StaleResponse(f"failure for superseded token {token}"))
            return False
        self.started = False
        return True

    def restore(self, result: ImageAcquisitionResult) -> None:
        """Adopt a cover finalized by an earlier lifecycle of this session."""
        self.result = result
        self.finalized = True
        self.started = True

    def reset(self) -> None:
        """Forget everything for a new session. In-flight tokens become stale."""
        self.token += 1
        self.started = False
        self.finalized = False
        self.result = None

    def _discard(self, token: int, reason: Exception) -> None:
        session_logger.stale_discarded(self.session_id, token, f"{type(reason).__name__}: {reason}")
