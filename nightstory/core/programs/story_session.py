"""
Story session orchestrator.

Sequences one session from submitted answers to a displayed story and cover:
1. Restore a cover finalized earlier in this session, if any
2. Generate the story (bounded retry with evaluation)
3. Acquire the cover, at most once, if images were requested and a style chosen

The presentation layer calls start() and acquire_cover() as often as it
likes. Re-entrant calls are no-ops; "start new session" is the only reset.
Phase errors are recorded on the session, never raised.
"""

import logging
import time
import uuid
from enum import Enum
from typing import Optional

from nightstory.logging import session_logger
from ..cover_lock import CoverLock
from ..errors import NightStoryError, StaleResponse, ValidationError
from ..session_cache import SessionCache, clear_session, load_answer_set, load_cover, save_answer_set
from ..types import AnswerSet, ImageAcquisitionResult, NarrativeResult
from ..modules.cover_acquirer import CoverAcquirer
from ..modules.narrative_generator import NarrativeGenerator

logger = logging.getLogger(__name__)


class NarrativePhase(Enum):
    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


class ImagePhase(Enum):
    PENDING = "pending"
    READY = "ready"
    ERROR = "error"
    NOT_REQUESTED = "not-requested"


class StorySession:
    """
    Session-scoped state object owning the story and cover lifecycle.

    Args:
        session_id: Identifier used in logs (generated if omitted)
        cache: Session cache holding the answer set and finalized cover
        generator: Narrative acquisition (default: NarrativeGenerator)
        acquirer: Cover acquisition (default: CoverAcquirer)
    """

    def __init__(
        self,
        session_id: str = None,
        cache: SessionCache = None,
        generator: NarrativeGenerator = None,
        acquirer: CoverAcquirer = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.cache = cache if cache is not None else SessionCache()
        self.lock = CoverLock(self.cache, self.session_id)
        self.generator = generator or NarrativeGenerator(session_id=self.session_id)
        self.acquirer = acquirer or CoverAcquirer()
        self._epoch = 0
        self._reset_state()

    def _reset_state(self) -> None:
        self.answer_set: Optional[AnswerSet] = None
        self.narrative_phase = NarrativePhase.PENDING
        self.image_phase = ImagePhase.PENDING
        self.narrative_result: Optional[NarrativeResult] = None
        self.narrative_error: Optional[str] = None
        self.image_error: Optional[str] = None
        self._narrative_started = False

    @property
    def started(self) -> bool:
        """True once start() ran in this lifecycle."""
        return self._narrative_started

    @property
    def narrative(self):
        return self.narrative_result.narrative if self.narrative_result else None

    @property
    def verdict(self):
        return self.narrative_result.verdict if self.narrative_result else None

    @property
    def cover(self) -> Optional[ImageAcquisitionResult]:
        return self.lock.result

    def submit(self, answer_set: AnswerSet) -> None:
        """Store the questionnaire answers for this session."""
        save_answer_set(self.cache, answer_set)

    async def start(self) -> None:
        """
        Run the session once: restore or generate, then acquire the cover.

        Calling again while running or after completion does nothing.
        """
        if self._narrative_started:
            return
        self._narrative_started = True
        epoch = self._epoch

        answer_set = load_answer_set(self.cache)
        if answer_set is None:
            self.image_phase = ImagePhase.NOT_REQUESTED
            self._fail_narrative(ValidationError("No questionnaire answers in this session"))
            return
        self.answer_set = answer_set
        session_logger.session_started(self.session_id, bool(answer_set.include_images))

        cached = load_cover(self.cache)
        if cached is not None:
            self.lock.restore(cached)
            self.image_phase = ImagePhase.READY
        elif not answer_set.wants_cover:
            self.image_phase = ImagePhase.NOT_REQUESTED

        started_at = time.monotonic()
        try:
            result = await self.generator.generate(answer_set)
        except NightStoryError as e:
            if epoch != self._epoch:
                return
            self._fail_narrative(e)
            if self.image_phase is ImagePhase.PENDING:
                self.image_phase = ImagePhase.ERROR
                self.image_error = "Cover skipped because the story could not be generated"
            return

        if epoch != self._epoch:
            logger.info(f"Discarding story for session {self.session_id} reset during generation")
            return

        self.narrative_result = result
        self.narrative_phase = NarrativePhase.READY
        session_logger.stage_completed(self.session_id, "narrative", time.monotonic() - started_at)

        await self.acquire_cover()

    async def acquire_cover(self) -> None:
        """
        Acquire the cover unless already started, finalized or not wanted.

        Only the holder of the current token may write the result or move
        the image phase.
        """
        answer_set = self.answer_set
        if self.narrative_phase is not NarrativePhase.READY or answer_set is None:
            return
        if not answer_set.wants_cover:
            return

        token = self.lock.begin()
        if token is None:
            return
        self.image_phase = ImagePhase.PENDING
        self.image_error = None

        started_at = time.monotonic()
        try:
            result = await self.acquirer.acquire(answer_set, lambda: self.lock.is_current(token))
        except StaleResponse as e:
            session_logger.stale_discarded(self.session_id, token, str(e))
            return
        except NightStoryError as e:
            if self.lock.fail(token):
                self.image_phase = ImagePhase.ERROR
                self.image_error = f"Could not create the cover image: {e.message}"
                session_logger.phase_failed(self.session_id, "cover", e)
            return
        except Exception as e:
            logger.exception(f"Unexpected cover failure for session {self.session_id}")
            if self.lock.fail(token):
                self.image_phase = ImagePhase.ERROR
                self.image_error = f"Could not create the cover image: {e}"
                session_logger.phase_failed(self.session_id, "cover", e)
            return

        if self.lock.finalize(token, result):
            self.image_phase = ImagePhase.READY
            session_logger.stage_completed(self.session_id, "cover", time.monotonic() - started_at)

    def start_new_session(self) -> None:
        """
        Forget everything: cache keys, cover lock and in-memory phases.

        In-flight work from before the reset finishes into the void.
        """
        clear_session(self.cache)
        self.lock.reset()
        self._epoch += 1
        self._reset_state()
        logger.info(f"Session {self.session_id} reset")

    def snapshot(self) -> dict:
        """Observable state for the presentation layer."""
        verdict = self.verdict
        return {
            "session_id": self.session_id,
            "narrative_phase": self.narrative_phase.value,
            "image_phase": self.image_phase.value,
            "narrative": self.narrative.to_dict() if self.narrative else None,
            "verdict": {"valid": verdict.valid, "reasons": list(verdict.reasons)} if verdict else None,
            "attempts": self.narrative_result.attempt_count if self.narrative_result else 0,
            "cover": self.cover.to_dict() if self.cover else None,
            "narrative_error": self.narrative_error,
            "image_error": self.image_error,
        }

    def _fail_narrative(self, error: NightStoryError) -> None:
        self.narrative_phase = NarrativePhase.ERROR
        self.narrative_error = error.message
        session_logger.phase_failed(self.session_id, "narrative", error)
