"""Tests for the single-shot cover lock."""

from nightstory.core.cover_lock import CoverLock, CoverState
from nightstory.core.session_cache import SessionCache, load_cover
from nightstory.core.types import ImageAcquisitionResult, ImageOrigin, StyleType


def _result(reference: str = "data:image/png;base64,AAAA") -> ImageAcquisitionResult:
    return ImageAcquisitionResult(image_reference=reference, origin=ImageOrigin.SYNTHESIZED, style=StyleType.CARTOON)


class TestCoverLock:
    def test_begin_is_single_shot(self):
        lock = CoverLock(SessionCache())

        first = lock.begin()
        second = lock.begin()

        assert first == 1
        assert second is None
        assert lock.state is CoverState.IN_FLIGHT

    def test_finalize_writes_and_persists(self):
        cache = SessionCache()
        lock = CoverLock(cache)
        token = lock.begin()

        assert lock.finalize(token, _result()) is True
        assert lock.state is CoverState.FINALIZED
        assert load_cover(cache).image_reference == "data:image/png;base64,AAAA"

    def test_finalized_result_is_immutable(self):
        lock = CoverLock(SessionCache())
        token = lock.begin()
        lock.finalize(token, _result("first"))

        assert lock.finalize(token, _result("second")) is False
        assert lock.result.image_reference == "first"
        assert lock.begin() is None

    def test_stale_token_is_discarded(self):
        cache = SessionCache()
        lock = CoverLock(cache)
        old = lock.begin()
        lock.reset()
        new = lock.begin()

        assert lock.finalize(old, _result("stale")) is False
        assert lock.result is None
        assert load_cover(cache) is None
        assert lock.finalize(new, _result("fresh")) is True
        assert lock.result.image_reference == "fresh"

    def test_failure_clears_started_only(self):
        lock = CoverLock(SessionCache())
        token = lock.begin()

        assert lock.fail(token) is True
        assert lock.state is CoverState.UNSTARTED
        assert lock.finalized is False
        assert lock.begin() == token + 1

    def test_failure_never_unlocks_a_finalized_cover(self):
        lock = CoverLock(SessionCache())
        token = lock.begin()
        lock.finalize(token, _result())

        assert lock.fail(token) is False
        assert lock.finalized is True
        assert lock.started is True

    def test_stale_failure_is_ignored(self):
        lock = CoverLock(SessionCache())
        old = lock.begin()
        lock.reset()
        lock.begin()

        assert lock.fail(old) is False
        assert lock.state is CoverState.IN_FLIGHT

    def test_restore_locks_permanently(self):
        lock = CoverLock(SessionCache())
        lock.restore(_result("cached"))

        assert lock.state is CoverState.FINALIZED
        assert lock.begin() is None
        assert lock.result.image_reference == "cached"

    def test_tokens_increase_monotonically(self):
        lock = CoverLock(SessionCache())
        tokens = []
        for _ in range(3):
            token = lock.begin()
            tokens.append(token)
            lock.fail(token)

        assert tokens == sorted(tokens)
        assert len(set(tokens)) == 3

    def test_is_current(self):
        lock = CoverLock(SessionCache())
        token = lock.begin()

        assert lock.is_current(token) is True
        lock.reset()
        assert lock.is_current(token) is False
