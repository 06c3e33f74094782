"""Shared fixtures for unit tests."""

import json
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from nightstory.core.modules.cover_acquirer import CoverAcquirer
from nightstory.core.modules.cover_refiner import CoverRefiner
from nightstory.core.modules.cover_synthesizer import CoverSynthesizer
from nightstory.core.types import AnswerSet, Child, Narrative, StyleType, ThemeType


VALID_STORY = {
    "title": "Mia, Leo and the Sleepy Dragon",
    "sections": [
        {
            "headline": "The Glowing Cave",
            "body": "Mia found a glowing cave at the edge of the forest. Leo climbed the mossy rocks beside her.",
        },
        {
            "headline": "A New Friend",
            "body": "Inside, a friendly dragon yawned and smiled. Mia said hello, and Leo shared his blanket with the dragon.",
        },
    ],
}

MISSING_LEO_STORY = {
    "title": "Mia and the Sleepy Dragon",
    "sections": [
        {"headline": "The Cave", "body": "Mia found a glowing cave. Mia met a friendly dragon."},
    ],
}


class FakeNarrativeService:
    """Narrative service double returning scripted responses in order.

    Each response is a raw string, a dict (sent as JSON) or an exception to raise.
    The last response repeats once the script runs out.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def complete(self, messages):
        self.calls.append(messages)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


@pytest.fixture
def fake_service():
    """Factory for scripted narrative services."""
    return FakeNarrativeService


@pytest.fixture
def valid_story() -> dict:
    return json.loads(json.dumps(VALID_STORY))


@pytest.fixture
def missing_leo_story() -> dict:
    return json.loads(json.dumps(MISSING_LEO_STORY))


@pytest.fixture
def valid_narrative() -> Narrative:
    return Narrative.from_dict(VALID_STORY)


@pytest.fixture
def make_png():
    """Factory for in-memory PNG images."""
    def _make(width: int = 400, height: int = 300, color=(200, 120, 80)) -> bytes:
        buffer = BytesIO()
        Image.new("RGB", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()
    return _make


@pytest.fixture
def mia_and_leo() -> AnswerSet:
    """Two children, Dragons theme, Cartoon cover, no upload."""
    return AnswerSet(
        children=[Child(name="Mia", age="5"), Child(name="Leo", age="7")],
        character_themes=[ThemeType.DRAGONS],
        teaching_themes=["Courage"],
        length_minutes=8,
        include_images=True,
        visual_styles=[StyleType.CARTOON],
    )


@pytest.fixture
def mock_synthesizer():
    synthesizer = MagicMock(spec=CoverSynthesizer)
    synthesizer.synthesize = AsyncMock(return_value="data:image/png;base64,c3ludGg=")
    return synthesizer


@pytest.fixture
def mock_refiner():
    refiner = MagicMock(spec=CoverRefiner)
    refiner.refine = AsyncMock(return_value=None)
    return refiner


@pytest.fixture
def acquirer(mock_synthesizer, mock_refiner) -> CoverAcquirer:
    return CoverAcquirer(synthesizer=mock_synthesizer, refiner=mock_refiner)


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Make tenacity backoff instantaneous."""
    monkeypatch.setattr("time.sleep", lambda seconds: None)
