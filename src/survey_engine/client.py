"""HttpSessionClient — ``SessionBackend`` over the REST lifecycle API.

Talks to ``survey_server`` (routes under ``/api/v1``) with an
``httpx.AsyncClient``.  Transport failures become ``RemoteError``; HTTP
rejections are reported through return values as the interface specifies.

Usage::

    async with HttpSessionClient("http://localhost:8080") as client:
        created = await client.create_session(role="nurse", language="en")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from survey_engine.constants import API_BASE_URL, HTTP_TIMEOUT_SECONDS
from survey_engine.interfaces import RemoteError, SessionBackend, SessionNotFoundError
from survey_engine.models.question import Question
from survey_engine.models.session import (
    CreatedSession,
    ParticipantLookup,
    ServerSessionState,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class HttpSessionClient(SessionBackend):
    """Async HTTP implementation of the session lifecycle contract."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        # An injected client (e.g. one with a MockTransport) is used as-is
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "HttpSessionClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, converting transport failures into ``RemoteError``."""
        try:
            return await self._client.request(method, f"{API_PREFIX}{path}", **kwargs)
        except httpx.TransportError as exc:
            raise RemoteError(f"{method} {path}: {exc!r}") from exc

    # ------------------------------------------------------------------
    # SessionBackend
    # ------------------------------------------------------------------

    async def create_session(
        self,
        *,
        role: str,
        language: str,
        participant_hash: str | None = None,
        fingerprint: str | None = None,
        source_code: str | None = None,
        device_info: dict[str, Any] | None = None,
    ) -> CreatedSession:
        resp = await self._request(
            "POST",
            "/sessions",
            json={
                "role": role,
                "language": language,
                "participant_hash": participant_hash,
                "fingerprint": fingerprint,
                "source_code": source_code,
                "device_info": device_info,
            },
        )
        if not resp.is_success:
            raise RemoteError(f"create_session rejected with HTTP {resp.status_code}")
        return CreatedSession.model_validate(resp.json())

    async def resume_session(self, session_id: str) -> ServerSessionState | None:
        resp = await self._request("GET", f"/sessions/{session_id}/resume")
        if resp.status_code in (404, 409):
            logger.info("Session %s cannot be resumed (HTTP %d)", session_id, resp.status_code)
            return None
        if not resp.is_success:
            raise RemoteError(f"resume_session failed with HTTP {resp.status_code}")
        return ServerSessionState.model_validate(resp.json())

    async def submit_answer(
        self,
        *,
        session_id: str,
        question_id: str,
        value: Any,
        time_taken: int | None = None,
    ) -> bool:
        resp = await self._request(
            "POST",
            "/responses",
            json={
                "session_id": session_id,
                "question_id": question_id,
                "value": value,
                "time_taken": time_taken,
            },
        )
        if not resp.is_success:
            logger.warning(
                "Answer %s/%s rejected with HTTP %d",
                session_id, question_id, resp.status_code,
            )
        return resp.is_success

    async def complete_session(self, session_id: str, *, response_time: int) -> bool:
        resp = await self._request(
            "PATCH",
            f"/sessions/{session_id}",
            json={"complete": True, "response_time": response_time},
        )
        if resp.status_code == 404:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return resp.is_success

    async def check_participant(
        self,
        *,
        participant_hash: str | None,
        fingerprint: str | None,
    ) -> ParticipantLookup:
        params = {
            key: value
            for key, value in (
                ("participant_hash", participant_hash),
                ("fingerprint", fingerprint),
            )
            if value
        }
        resp = await self._request("GET", "/participants/check", params=params)
        if not resp.is_success:
            raise RemoteError(f"check_participant failed with HTTP {resp.status_code}")
        return ParticipantLookup.model_validate(resp.json())

    async def list_questions(self, role: str) -> list[Question]:
        resp = await self._request("GET", "/questions", params={"role": role})
        if not resp.is_success:
            raise RemoteError(f"list_questions failed with HTTP {resp.status_code}")
        return [Question.model_validate(item) for item in resp.json()]
