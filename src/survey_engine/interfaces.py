"""Abstract interface for the remote session-lifecycle collaborator.

The engine never talks HTTP directly.  It depends on ``SessionBackend``,
which ``survey_engine.client.HttpSessionClient`` implements over httpx and
tests replace with an in-memory fake.

Error contract:

  - a *transport* failure (no route, timeout, connection reset) raises
    ``RemoteError``
  - a *rejection* by a reachable server is reported in the return value
    (``False`` / ``None``), never raised, except that ``complete_session``
    raises ``SessionNotFoundError`` for a session the server does not know
"""

from abc import ABC, abstractmethod
from typing import Any

from survey_engine.models.question import Question
from survey_engine.models.session import (
    CreatedSession,
    ParticipantLookup,
    ServerSessionState,
)


class RemoteError(Exception):
    """The lifecycle API could not be reached or did not answer in time."""


class SessionNotFoundError(Exception):
    """The server has no session with the given id.  Retrying cannot help."""


class SessionBackend(ABC):
    """Contract of the server-side session lifecycle."""

    @abstractmethod
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
        """Create a session and freeze its question snapshot.

        Raises ``RemoteError`` on transport failure or rejection, since the
        respondent cannot proceed without a session.
        """
        ...

    @abstractmethod
    async def resume_session(self, session_id: str) -> ServerSessionState | None:
        """Fetch the server view of an in-progress session.

        Returns None when the session does not exist or is already completed.
        """
        ...

    @abstractmethod
    async def submit_answer(
        self,
        *,
        session_id: str,
        question_id: str,
        value: Any,
        time_taken: int | None = None,
    ) -> bool:
        """Upsert one answer keyed by ``(session_id, question_id)``.

        Returns True if the server accepted the answer.
        """
        ...

    @abstractmethod
    async def complete_session(self, session_id: str, *, response_time: int) -> bool:
        """Mark the session completed.  Returns True if accepted.

        Raises ``SessionNotFoundError`` when the session does not exist.
        """
        ...

    @abstractmethod
    async def check_participant(
        self,
        *,
        participant_hash: str | None,
        fingerprint: str | None,
    ) -> ParticipantLookup:
        """Look up prior sessions for a participant hash or device fingerprint."""
        ...

    @abstractmethod
    async def list_questions(self, role: str) -> list[Question]:
        """Return the current catalog for ``role`` (read-only)."""
        ...
