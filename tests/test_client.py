"""HttpSessionClient tests against an httpx.MockTransport."""

import json

import httpx
import pytest

from survey_engine.client import HttpSessionClient
from survey_engine.interfaces import RemoteError, SessionNotFoundError

QUESTION = {
    "id": "q1",
    "external_id": "Q1",
    "section": "General",
    "text": "Anything else?",
    "type": "text",
}


class Recorder:
    """MockTransport handler that records requests and replays a fixed response."""

    def __init__(self, status=200, body=None, error=None):
        self.status = status
        self.body = body
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status, json=self.body)


def _client(handler):
    transport = httpx.MockTransport(handler)
    return HttpSessionClient(
        client=httpx.AsyncClient(transport=transport, base_url="http://survey.test")
    )


class TestCreateAndResume:

    @pytest.mark.asyncio
    async def test_create_session(self):
        handler = Recorder(201, {
            "session_id": "s1", "role": "nurse", "language": "en",
            "questions": [QUESTION], "is_duplicate": True,
        })
        async with _client(handler) as client:
            created = await client.create_session(role="nurse", language="en", fingerprint="fp")

        assert created.session_id == "s1"
        assert created.is_duplicate is True
        assert created.questions[0].id == "q1"
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v1/sessions"
        assert json.loads(request.content)["fingerprint"] == "fp"

    @pytest.mark.asyncio
    async def test_create_rejected(self):
        async with _client(Recorder(400, {"detail": "Invalid role"})) as client:
            with pytest.raises(RemoteError, match="HTTP 400"):
                await client.create_session(role="x", language="en")

    @pytest.mark.asyncio
    async def test_resume(self):
        handler = Recorder(200, {
            "session_id": "s1", "role": "nurse", "language": "hi",
            "questions": [QUESTION], "answers": {"q1": "x"}, "current_index": 0,
        })
        async with _client(handler) as client:
            state = await client.resume_session("s1")
        assert state.answers == {"q1": "x"}
        assert handler.requests[0].url.path == "/api/v1/sessions/s1/resume"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 409])
    async def test_resume_not_resumable(self, status):
        async with _client(Recorder(status, {"detail": "gone"})) as client:
            assert await client.resume_session("s1") is None

    @pytest.mark.asyncio
    async def test_resume_server_error(self):
        async with _client(Recorder(500, {"detail": "boom"})) as client:
            with pytest.raises(RemoteError):
                await client.resume_session("s1")


class TestSubmitAndComplete:

    @pytest.mark.asyncio
    async def test_submit_accepted(self):
        handler = Recorder(200, {"session_id": "s1", "question_id": "q1"})
        async with _client(handler) as client:
            ok = await client.submit_answer(
                session_id="s1", question_id="q1", value=["a", "b"], time_taken=4,
            )
        assert ok is True
        body = json.loads(handler.requests[0].content)
        assert body == {"session_id": "s1", "question_id": "q1", "value": ["a", "b"], "time_taken": 4}

    @pytest.mark.asyncio
    async def test_submit_rejected_returns_false(self):
        async with _client(Recorder(404, {"detail": "Session not found"})) as client:
            assert await client.submit_answer(session_id="s1", question_id="q1", value="x") is False

    @pytest.mark.asyncio
    async def test_transport_failure_raises_remote_error(self):
        handler = Recorder(error=httpx.ConnectError("connection refused"))
        async with _client(handler) as client:
            with pytest.raises(RemoteError):
                await client.submit_answer(session_id="s1", question_id="q1", value="x")

    @pytest.mark.asyncio
    async def test_complete(self):
        handler = Recorder(200, {"session_id": "s1"})
        async with _client(handler) as client:
            assert await client.complete_session("s1", response_time=300) is True
        request = handler.requests[0]
        assert request.method == "PATCH"
        assert json.loads(request.content) == {"complete": True, "response_time": 300}

    @pytest.mark.asyncio
    async def test_complete_unknown_session_raises_not_found(self):
        async with _client(Recorder(404, {"detail": "Resource not found"})) as client:
            with pytest.raises(SessionNotFoundError):
                await client.complete_session("s1", response_time=300)

    @pytest.mark.asyncio
    async def test_complete_server_error_returns_false(self):
        async with _client(Recorder(500, {"detail": "boom"})) as client:
            assert await client.complete_session("s1", response_time=300) is False


class TestParticipantsAndQuestions:

    @pytest.mark.asyncio
    async def test_check_participant_omits_missing_params(self):
        handler = Recorder(200, {"status": "new", "participant_hash": "abc"})
        async with _client(handler) as client:
            lookup = await client.check_participant(participant_hash="abc", fingerprint=None)
        assert lookup.status == "new"
        params = handler.requests[0].url.params
        assert params.get("participant_hash") == "abc"
        assert "fingerprint" not in params

    @pytest.mark.asyncio
    async def test_check_participant_failure(self):
        async with _client(Recorder(400, {"detail": "bad"})) as client:
            with pytest.raises(RemoteError):
                await client.check_participant(participant_hash=None, fingerprint=None)

    @pytest.mark.asyncio
    async def test_list_questions(self):
        handler = Recorder(200, [QUESTION])
        async with _client(handler) as client:
            questions = await client.list_questions("doctor")
        assert [q.id for q in questions] == ["q1"]
        assert handler.requests[0].url.params["role"] == "doctor"
