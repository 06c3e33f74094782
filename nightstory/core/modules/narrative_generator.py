"""
Narrative acquisition with evaluation and bounded retry.

Each attempt asks the narrative service for a story, parses it, and grades
it with the quality evaluator. A failed verdict is fed back verbatim on the
next attempt. Attempts are strictly sequential. When attempts run out the
last story obtained is returned, valid or not.
"""

import asyncio
import json
import logging
from typing import Optional

import dspy

from nightstory.config import STORY_CONSTANTS, get_narrative_lm, llm_retry
from nightstory.logging import session_logger
from ..errors import NightStoryError, ParseError, TransportError, ValidationError
from ..prompts import build_regeneration_suffix, build_story_messages
from ..themes import THEMES
from ..types import (
    AnswerSet,
    GenerationAttempt,
    Narrative,
    NarrativeRequest,
    NarrativeResult,
)
from .quality_evaluator import evaluate_narrative

logger = logging.getLogger(__name__)


class DspyNarrativeService:
    """
    Narrative service backed by a dspy.LM chat model.

    The blocking LM call runs in a worker thread so the event loop stays
    free while the story is being written.

    Args:
        lm: Optional explicit LM. Built from the environment on first use otherwise.
    """

    def __init__(self, lm: dspy.LM = None):
        self._lm = lm

    @property
    def lm(self) -> dspy.LM:
        """Lazy load the LM."""
        if self._lm is None:
            self._lm = get_narrative_lm()
        return self._lm

    def _call(self, messages: list[dict]):
        return self.lm(messages=messages)

    async def complete(self, messages: list[dict]) -> str:
        """
        Send chat messages and return the raw completion text.

        Raises:
            TransportError: If the service is unreachable, fails, or returns nothing
        """
        try:
            outputs = await asyncio.to_thread(llm_retry(self._call), messages)
        except Exception as e:
            raise TransportError(f"Narrative service call failed: {e}") from e

        if not outputs:
            raise TransportError("No response from narrative service")
        first = outputs[0]
        text = first.get("text") if isinstance(first, dict) else first
        if not text:
            raise TransportError("Empty response from narrative service")
        return text


def extract_first_object(raw: str) -> Optional[str]:
    """
    Find the first balanced {...} object in free text.

    Braces inside JSON strings are ignored. Returns None if no complete
    object is found.
    """
    start = raw.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(raw)):
            ch = raw[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return raw[start:i + 1]
        # Unbalanced from this brace; try the next one
        start = raw.find("{", start + 1)
    return None


def parse_narrative(raw: str) -> Narrative:
    """
    Decode a narrative service response.

    Tolerates prose or markdown fences around the payload by falling back
    to the first balanced object in the text.

    Raises:
        ParseError: If no story structure can be recovered
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        candidate = extract_first_object(raw or "")
        if candidate is None:
            raise ParseError("Failed to parse story JSON from narrative response")
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse extracted story JSON: {e}") from e
    return Narrative.from_dict(data)


def validate_answer_set(answer_set: AnswerSet) -> None:
    """
    Reject answer sets that cannot produce a story.

    Raises:
        ValidationError: If no children were given or a child has no name
    """
    if not answer_set.children:
        raise ValidationError("At least one child is required")
    for index, child in enumerate(answer_set.children):
        if not child.name.strip():
            raise ValidationError(f"Child {index + 1} has no name", details={"child_index": index})
    if answer_set.language not in STORY_CONSTANTS["languages"]:
        raise ValidationError(f"Unsupported language: {answer_set.language}")


def build_request(answer_set: AnswerSet) -> NarrativeRequest:
    """Turn questionnaire answers into a narrative request."""
    themes = list(answer_set.teaching_themes)
    if answer_set.custom_teaching_theme.strip():
        themes.append(answer_set.custom_teaching_theme.strip())
    if not themes:
        themes = [STORY_CONSTANTS["default_theme"]]

    characters = [THEMES[t].label(answer_set.language) for t in answer_set.character_themes]
    if answer_set.custom_characters.strip():
        characters.append(answer_set.custom_characters.strip())

    return NarrativeRequest(
        children=list(answer_set.children),
        themes=themes,
        length_minutes=answer_set.length_minutes,
        characters=characters,
        language=answer_set.language,
    )


class NarrativeGenerator:
    """
    Generate a bedtime story, retrying with evaluator feedback.

    Args:
        service: Object with `async complete(messages) -> str`
        max_attempts: Maximum narrative service calls per story
        session_id: Used to tag log lines
    """

    def __init__(
        self,
        service=None,
        max_attempts: int = STORY_CONSTANTS["max_attempts"],
        session_id: str = "",
    ):
        self.service = service or DspyNarrativeService()
        self.max_attempts = max_attempts
        self.session_id = session_id

    async def generate(self, answer_set: AnswerSet) -> NarrativeResult:
        """
        Run the attempt loop.

        Returns:
            NarrativeResult holding the first valid story, or the last story
            obtained when no attempt passed

        Raises:
            ValidationError: Before any call, for unusable answers
            TransportError, ParseError: Only if no attempt produced a story
        """
        validate_answer_set(answer_set)
        request = build_request(answer_set)

        attempts: list[GenerationAttempt] = []
        last_narrative: Optional[Narrative] = None
        last_verdict = None
        last_error: Optional[NightStoryError] = None
        prior_reasons: list[str] = []

        for index in range(self.max_attempts):
            augmentation = build_regeneration_suffix(prior_reasons) if index > 0 and prior_reasons else ""
            attempt = GenerationAttempt(index=index, prompt_augmentation=augmentation)
            attempts.append(attempt)

            messages = build_story_messages(request, prior_reasons if index > 0 else None)
            try:
                raw = await self.service.complete(messages)
                narrative = parse_narrative(raw)
            except (TransportError, ParseError) as e:
                attempt.error = e
                last_error = e
                session_logger.attempt_errored(self.session_id, index + 1, e)
                continue

            verdict = evaluate_narrative(
                narrative,
                request.children,
                answer_set.primary_theme,
                request.language,
            )
            attempt.narrative = narrative
            attempt.verdict = verdict
            last_narrative = narrative
            last_verdict = verdict

            if verdict.valid:
                break
            session_logger.attempt_failed(self.session_id, index + 1, verdict.reasons)
            prior_reasons = verdict.reasons

        if last_narrative is None:
            raise last_error

        if not last_verdict.valid:
            logger.info(
                f"Accepting last story after {len(attempts)} attempts with "
                f"{len(last_verdict.reasons)} unresolved issue(s)"
            )
        return NarrativeResult(narrative=last_narrative, verdict=last_verdict, attempts=attempts)
