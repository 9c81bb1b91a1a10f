"""CompletionFinalizer tests — bounded retry, local fallback, sweep."""

import pytest

from survey_engine.finalizer import PENDING_COMPLETION_NAMESPACE, CompletionFinalizer

from helpers.builders import make_question
from helpers.fakes import FakeBackend


class SleepRecorder:
    """Async sleep stand-in that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def backend():
    b = FakeBackend([make_question("q1")])
    b.add_session("s1")
    return b


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def finalizer(backend, local_store, sleep):
    return CompletionFinalizer(backend, local_store, sleep=sleep)


class TestFinalize:

    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self, finalizer, backend, sleep):
        outcome = await finalizer.finalize("s1", response_time=420)
        assert outcome.completed is True
        assert outcome.attempts == 1
        assert sleep.delays == []
        assert backend.sessions["s1"]["response_time"] == 420

    @pytest.mark.asyncio
    async def test_succeeds_after_retries(self, finalizer, backend, sleep):
        backend.completion_failures = 2
        outcome = await finalizer.finalize("s1", response_time=420)
        assert outcome.completed is True
        assert outcome.attempts == 3
        assert sleep.delays == [1.0, 2.0], "Backoff should be 1s then 2s"
        assert finalizer.pending() == []

    @pytest.mark.asyncio
    async def test_exhausted_attempts_store_pending_record(self, finalizer, backend, sleep):
        backend.completion_failures = 3
        outcome = await finalizer.finalize("s1", response_time=420)

        assert outcome.completed is False
        assert outcome.attempts == 3
        assert len(backend.completion_calls) == 3
        assert sleep.delays == [1.0, 2.0], "No sleep after the final attempt"

        pending = finalizer.pending()
        assert [p.session_id for p in pending] == ["s1"]
        assert pending[0].response_time == 420
        assert outcome.pending == pending[0]

    @pytest.mark.asyncio
    async def test_server_refusal_counts_as_failure(self, finalizer, backend):
        backend.reject_completion = True
        outcome = await finalizer.finalize("s1", response_time=10)
        assert outcome.completed is False
        assert [p.session_id for p in finalizer.pending()] == ["s1"]

    @pytest.mark.asyncio
    async def test_unknown_session_is_not_retried(self, finalizer, backend, sleep):
        outcome = await finalizer.finalize("unknown-session", response_time=10)

        assert outcome.completed is False
        assert outcome.attempts == 1
        assert outcome.pending is None
        assert backend.completion_calls == ["unknown-session"]
        assert sleep.delays == []
        assert finalizer.pending() == [], "Nothing stored for a session the server lacks"

    @pytest.mark.asyncio
    async def test_pending_record_uses_injected_clock(self, backend, local_store, sleep, clock):
        finalizer = CompletionFinalizer(backend, local_store, sleep=sleep, clock=clock)
        backend.completion_failures = 3
        outcome = await finalizer.finalize("s1", response_time=420)
        assert outcome.pending.timestamp == clock()
        assert finalizer.pending()[0].timestamp == clock()


class TestSweep:

    @pytest.mark.asyncio
    async def test_sweep_completes_and_removes(self, finalizer, backend, local_store):
        backend.completion_failures = 3
        await finalizer.finalize("s1", response_time=420)

        assert await finalizer.sweep() == 1
        assert finalizer.pending() == []
        assert local_store.get_entry(PENDING_COMPLETION_NAMESPACE, "s1") is None
        assert backend.sessions["s1"]["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_sweep_keeps_failures(self, finalizer, backend):
        backend.completion_failures = 3
        await finalizer.finalize("s1", response_time=420)
        backend.offline = True

        assert await finalizer.sweep() == 0
        assert [p.session_id for p in finalizer.pending()] == ["s1"]

    @pytest.mark.asyncio
    async def test_sweep_with_nothing_pending(self, finalizer):
        assert await finalizer.sweep() == 0

    @pytest.mark.asyncio
    async def test_sweep_drops_unknown_session(self, finalizer, backend):
        backend.completion_failures = 3
        await finalizer.finalize("s1", response_time=420)
        del backend.sessions["s1"]

        assert await finalizer.sweep() == 0
        assert finalizer.pending() == []
        await finalizer.sweep()
        assert backend.completion_calls.count("s1") == 4, "A dropped record is not retried again"
