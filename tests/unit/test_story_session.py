"""Tests for the story session orchestrator."""

import asyncio
from unittest.mock import patch

import pytest
from PIL import Image

from nightstory.core.errors import TransportError
from nightstory.core.modules.narrative_generator import NarrativeGenerator
from nightstory.core.programs.story_session import ImagePhase, NarrativePhase, StorySession
from nightstory.core.session_cache import (
    ANSWER_SET_KEY,
    COVER_KEY,
    SessionCache,
    load_cover,
    save_cover,
)
from nightstory.core.types import AnswerSet, Child, ImageAcquisitionResult, ImageOrigin


async def _wait_until(condition, steps: int = 200):
    """Yield to the event loop until condition() holds."""
    for _ in range(steps):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def make_session(fake_service, valid_story, acquirer):
    """Build a session with a scripted narrative service and mocked cover clients."""
    def _make(*responses, cache=None):
        service = fake_service(*(responses or (valid_story,)))
        session = StorySession(
            session_id="test-session",
            cache=cache,
            generator=NarrativeGenerator(service=service),
            acquirer=acquirer,
        )
        return session, service
    return _make


class TestScenarios:
    @pytest.mark.asyncio
    async def test_mia_and_leo_synthesized_cover(self, make_session, mia_and_leo, mock_synthesizer, mock_refiner):
        session, service = make_session()
        session.submit(mia_and_leo)

        await session.start()

        assert session.narrative_phase is NarrativePhase.READY
        assert session.verdict.valid is True
        text = session.narrative.full_text()
        assert "Mia" in text and "Leo" in text and "dragon" in text
        assert len(service.calls) == 1

        mock_synthesizer.synthesize.assert_awaited_once()
        request = mock_synthesizer.synthesize.await_args.args[0]
        assert request.child_count_description == "exactly two children together"
        mock_refiner.refine.assert_not_awaited()

        assert session.image_phase is ImagePhase.READY
        assert session.cover.origin is ImageOrigin.SYNTHESIZED
        assert load_cover(session.cache) == session.cover

    @pytest.mark.asyncio
    async def test_missing_name_triggers_retry(self, make_session, mia_and_leo, missing_leo_story, valid_story):
        session, service = make_session(missing_leo_story, valid_story)
        session.submit(mia_and_leo)

        await session.start()

        assert len(service.calls) == 2
        assert session.narrative_result.attempt_count == 2
        assert session.verdict.valid is True

    @pytest.mark.asyncio
    async def test_uploaded_photo_takes_path_u(self, make_session, mia_and_leo, mock_synthesizer, mock_refiner, make_png):
        mia_and_leo.uploaded_image = make_png(400, 300)
        session, _ = make_session()
        session.submit(mia_and_leo)

        await session.start()
        await session.acquire_cover()
        await session.start()

        mock_synthesizer.synthesize.assert_not_awaited()
        mock_refiner.refine.assert_awaited_once()
        assert session.image_phase is ImagePhase.READY
        assert session.cover.origin is ImageOrigin.UPLOADED
        assert session.cover.image_reference.startswith("data:image/png;base64,")
        assert load_cover(session.cache) == session.cover


class TestSingleShot:
    @pytest.mark.asyncio
    async def test_concurrent_triggers_make_one_call(self, make_session, mia_and_leo, mock_synthesizer):
        gate = asyncio.Event()

        async def slow_synthesis(request):
            await gate.wait()
            return "data:image/png;base64,b25l"

        mock_synthesizer.synthesize.side_effect = slow_synthesis
        session, _ = make_session()
        session.submit(mia_and_leo)

        task = asyncio.create_task(session.start())
        await _wait_until(lambda: mock_synthesizer.synthesize.await_count == 1)
        assert session.image_phase is ImagePhase.PENDING

        await asyncio.gather(session.acquire_cover(), session.acquire_cover(), session.start())
        gate.set()
        await task

        assert mock_synthesizer.synthesize.await_count == 1
        assert session.cover.image_reference == "data:image/png;base64,b25l"

    @pytest.mark.asyncio
    async def test_finalized_cover_is_never_replaced(self, make_session, mia_and_leo, mock_synthesizer):
        session, _ = make_session()
        session.submit(mia_and_leo)
        await session.start()
        first = session.cover

        for _ in range(3):
            await session.acquire_cover()

        assert session.cover is first
        mock_synthesizer.synthesize.assert_awaited_once()


class TestStaleness:
    @pytest.mark.asyncio
    async def test_reset_during_acquisition_discards_result(self, make_session, mia_and_leo, mock_synthesizer):
        gate = asyncio.Event()

        async def slow_synthesis(request):
            await gate.wait()
            return "data:image/png;base64,c3RhbGU="

        mock_synthesizer.synthesize.side_effect = slow_synthesis
        session, _ = make_session()
        session.submit(mia_and_leo)

        task = asyncio.create_task(session.start())
        await _wait_until(lambda: mock_synthesizer.synthesize.await_count == 1)
        session.start_new_session()
        gate.set()
        await task

        assert session.cover is None
        assert session.cache.get(COVER_KEY) is None
        assert session.image_phase is ImagePhase.PENDING
        assert session.narrative_phase is NarrativePhase.PENDING

    @pytest.mark.asyncio
    async def test_reset_during_generation_discards_story(self, make_session, mia_and_leo, valid_story, mock_synthesizer):
        session, service = make_session()
        gate = asyncio.Event()
        original_complete = service.complete

        async def slow_complete(messages):
            await gate.wait()
            return await original_complete(messages)

        service.complete = slow_complete
        session.submit(mia_and_leo)

        task = asyncio.create_task(session.start())
        await asyncio.sleep(0)
        session.start_new_session()
        gate.set()
        await task

        assert session.narrative is None
        assert session.narrative_phase is NarrativePhase.PENDING
        mock_synthesizer.synthesize.assert_not_awaited()


class TestRestoreAndReset:
    @pytest.mark.asyncio
    async def test_cached_cover_skips_acquisition(self, make_session, mia_and_leo, mock_synthesizer, mock_refiner):
        cache = SessionCache()
        cached = ImageAcquisitionResult(image_reference="https://example.com/cover.png", origin=ImageOrigin.SYNTHESIZED)
        save_cover(cache, cached)
        session, service = make_session(cache=cache)
        session.submit(mia_and_leo)

        await session.start()

        assert session.image_phase is ImagePhase.READY
        assert session.cover.image_reference == "https://example.com/cover.png"
        mock_synthesizer.synthesize.assert_not_awaited()
        mock_refiner.refine.assert_not_awaited()
        assert session.narrative_phase is NarrativePhase.READY

    @pytest.mark.asyncio
    async def test_start_is_reentrant(self, make_session, mia_and_leo):
        session, service = make_session()
        session.submit(mia_and_leo)

        await asyncio.gather(session.start(), session.start())
        await session.start()

        assert len(service.calls) == 1

    @pytest.mark.asyncio
    async def test_start_new_session_clears_everything(self, make_session, mia_and_leo):
        session, _ = make_session()
        session.submit(mia_and_leo)
        await session.start()

        session.start_new_session()

        assert session.cache.get(ANSWER_SET_KEY) is None
        assert session.cache.get(COVER_KEY) is None
        assert session.cover is None
        assert session.narrative is None
        assert session.started is False
        assert session.lock.begin() is not None

    @pytest.mark.asyncio
    async def test_new_session_runs_again(self, make_session, mia_and_leo, mock_synthesizer):
        session, service = make_session()
        session.submit(mia_and_leo)
        await session.start()
        session.start_new_session()

        session.submit(mia_and_leo)
        await session.start()

        assert len(service.calls) == 2
        assert mock_synthesizer.synthesize.await_count == 2
        assert session.image_phase is ImagePhase.READY


class TestPhases:
    @pytest.mark.asyncio
    async def test_images_not_requested(self, make_session, mia_and_leo, mock_synthesizer):
        mia_and_leo.include_images = False
        session, _ = make_session()
        session.submit(mia_and_leo)

        await session.start()

        assert session.image_phase is ImagePhase.NOT_REQUESTED
        mock_synthesizer.synthesize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_style_means_no_cover(self, make_session, mock_synthesizer):
        session, _ = make_session()
        session.submit(AnswerSet(children=[Child(name="Mia"), Child(name="Leo")], include_images=True))

        await session.start()

        assert session.image_phase is ImagePhase.NOT_REQUESTED
        mock_synthesizer.synthesize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_answers_surface_as_narrative_error(self, make_session):
        session, service = make_session()

        await session.start()

        assert session.narrative_phase is NarrativePhase.ERROR
        assert "No questionnaire answers" in session.narrative_error
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_terminal_narrative_failure(self, make_session, mia_and_leo, mock_synthesizer):
        session, service = make_session(TransportError("narrative service down"))
        session.submit(mia_and_leo)

        await session.start()

        assert len(service.calls) == 3
        assert session.narrative_phase is NarrativePhase.ERROR
        assert session.narrative_error == "narrative service down"
        assert session.image_phase is ImagePhase.ERROR
        mock_synthesizer.synthesize.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_image_failure_is_recoverable(self, make_session, mia_and_leo, mock_synthesizer):
        mock_synthesizer.synthesize.side_effect = [
            TransportError("image service down"),
            "data:image/png;base64,c2Vjb25k",
        ]
        session, _ = make_session()
        session.submit(mia_and_leo)

        await session.start()

        assert session.narrative_phase is NarrativePhase.READY
        assert session.image_phase is ImagePhase.ERROR
        assert "image service down" in session.image_error
        assert session.lock.started is False
        assert session.lock.finalized is False

        await session.acquire_cover()

        assert session.image_phase is ImagePhase.READY
        assert session.image_error is None
        assert session.cover.image_reference == "data:image/png;base64,c2Vjb25k"

    @pytest.mark.asyncio
    async def test_oversized_photo_is_recoverable(self, make_session, mia_and_leo, mock_refiner, make_png):
        mia_and_leo.uploaded_image = make_png(400, 300)
        session, _ = make_session()
        session.submit(mia_and_leo)

        with patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            await session.start()

        assert session.narrative_phase is NarrativePhase.READY
        assert session.image_phase is ImagePhase.ERROR
        assert "could not be decoded" in session.image_error
        assert session.lock.started is False
        mock_refiner.refine.assert_not_awaited()

        await session.acquire_cover()

        assert session.image_phase is ImagePhase.READY
        assert session.cover.origin is ImageOrigin.UPLOADED

    @pytest.mark.asyncio
    async def test_unexpected_cover_error_releases_lock(self, make_session, mia_and_leo, mock_synthesizer):
        mock_synthesizer.synthesize.side_effect = [
            RuntimeError("unexpected"),
            "data:image/png;base64,c2Vjb25k",
        ]
        session, _ = make_session()
        session.submit(mia_and_leo)

        await session.start()

        assert session.image_phase is ImagePhase.ERROR
        assert "unexpected" in session.image_error
        assert session.lock.started is False

        await session.acquire_cover()

        assert session.image_phase is ImagePhase.READY
        assert session.cover.image_reference == "data:image/png;base64,c2Vjb25k"

    @pytest.mark.asyncio
    async def test_snapshot(self, make_session, mia_and_leo):
        session, _ = make_session()
        session.submit(mia_and_leo)
        await session.start()

        snapshot = session.snapshot()

        assert snapshot["session_id"] == "test-session"
        assert snapshot["narrative_phase"] == "ready"
        assert snapshot["image_phase"] == "ready"
        assert snapshot["narrative"]["title"] == "Mia, Leo and the Sleepy Dragon"
        assert snapshot["verdict"] == {"valid": True, "reasons": []}
        assert snapshot["attempts"] == 1
        assert snapshot["cover"]["origin"] == "synthesized"
