"""SurveyService — server side of the session lifecycle.

Stateless orchestrator: every method takes an ``AsyncSession`` and the
request's identifiers, loads what it needs through ``SessionRepository``,
and returns SDK models (never ORM rows).

Operations:
    create_session    — freeze the role's catalog into a new session
    resume_session    — frozen questions + answers + first unanswered index
    submit_answer     — idempotent upsert keyed by (session_id, question_id)
    complete_session  — set completed_at exactly once
    check_participant — dedup lookup by participant hash or fingerprint

Errors are raised as ``ValueError`` with messages the API's global handler
maps to HTTP codes ("not found" -> 404, "already completed" -> 409,
anything else -> 400).
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from survey_db.models.session import SurveySession
from survey_db.repository import SessionRepository
from survey_engine.catalog import CatalogStore
from survey_engine.constants import (
    DISPLAY_ONLY_TYPES,
    FINGERPRINT_DUPLICATE_THRESHOLD,
    ROLES,
    SUPPORTED_LANGUAGES,
)
from survey_engine.evaluator import ConditionEvaluator
from survey_engine.models.question import Question
from survey_engine.models.session import (
    CompletionReceipt,
    CreatedSession,
    ParticipantLookup,
    ServerSessionState,
)
from survey_engine.validation import is_answered

logger = logging.getLogger(__name__)


def first_unanswered_index(visible: list[Question], answers: dict[str, Any]) -> int:
    """Index of the first visible question still awaiting an answer.

    Display-only questions never need an answer and are skipped.  When
    everything is answered the last question is returned, so the index
    always points inside the visible sequence.
    """
    for i, q in enumerate(visible):
        if q.type in DISPLAY_ONLY_TYPES:
            continue
        if not is_answered(answers.get(q.id)):
            return i
    return max(len(visible) - 1, 0)


class SurveyService:
    """Server-side session lifecycle backed by PostgreSQL."""

    def __init__(
        self,
        catalog: CatalogStore,
        *,
        evaluator: ConditionEvaluator | None = None,
        duplicate_threshold: int = FINGERPRINT_DUPLICATE_THRESHOLD,
    ) -> None:
        self._catalog = catalog
        self._evaluator = evaluator or ConditionEvaluator()
        self._duplicate_threshold = duplicate_threshold
        self._repo = SessionRepository()

    # ==================================================================
    # Session creation
    # ==================================================================

    async def create_session(
        self,
        db: AsyncSession,
        *,
        role: str,
        language: str,
        participant_hash: str | None = None,
        fingerprint: str | None = None,
        source_code: str | None = None,
        device_info: dict[str, Any] | None = None,
    ) -> CreatedSession:
        """Create a session with the role's questions frozen into it.

        A device fingerprint that has already started
        ``duplicate_threshold`` sessions marks the new one as a probable
        duplicate (``is_valid=False``); creation still succeeds.
        """
        if role not in ROLES:
            raise ValueError(f"Invalid role: {role!r}")
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Invalid language: {language!r}")

        questions = self._catalog.questions_for_role(role)
        if not questions:
            raise ValueError(f"Invalid catalog: no questions for role {role!r}")

        is_duplicate = False
        if fingerprint:
            prior = await self._repo.register_fingerprint(db, fingerprint)
            is_duplicate = prior >= self._duplicate_threshold

        row = await self._repo.create_session(
            db,
            role=role,
            language=language,
            questions=[q.model_dump(mode="json") for q in questions],
            participant_hash=participant_hash,
            fingerprint=fingerprint,
            source_code=source_code,
            device_info=device_info,
            is_valid=not is_duplicate,
        )
        logger.info(
            "Created session %s role=%s questions=%d duplicate=%s",
            row.id, role, len(questions), is_duplicate,
        )
        return CreatedSession(
            session_id=str(row.id),
            role=role,
            language=language,
            questions=questions,
            is_duplicate=is_duplicate,
        )

    # ==================================================================
    # Resume
    # ==================================================================

    async def resume_session(
        self, db: AsyncSession, *, session_id: str
    ) -> ServerSessionState:
        """Return the frozen questions, stored answers and resume position.

        Raises ``ValueError`` if the session does not exist or is already
        completed.
        """
        row = await self._get_row(db, session_id)
        if row.completed_at is not None:
            raise ValueError(f"Session already completed: session_id={session_id}")

        questions = [Question.model_validate(raw) for raw in row.questions]
        answers = await self._load_answers(db, row)
        visible = self._evaluator.visible_questions(questions, answers)

        return ServerSessionState(
            session_id=str(row.id),
            role=row.role,
            language=row.language,
            questions=questions,
            answers=answers,
            current_index=first_unanswered_index(visible, answers),
        )

    # ==================================================================
    # Answers
    # ==================================================================

    async def submit_answer(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        question_id: str,
        value: Any,
        time_taken: int | None = None,
    ) -> None:
        """Upsert one answer.

        Answers are accepted after completion too: a device may still be
        draining its queue when the completion request lands.
        """
        row = await self._get_row(db, session_id)
        known = {raw.get("id") for raw in row.questions}
        if question_id not in known:
            raise ValueError(
                f"Question not found in session: session_id={session_id}, "
                f"question_id={question_id}"
            )
        await self._repo.upsert_response(
            db, row, question_id=question_id, value=value, time_taken=time_taken,
        )

    # ==================================================================
    # Completion
    # ==================================================================

    async def complete_session(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        response_time: int | None = None,
        is_valid: bool | None = None,
    ) -> CompletionReceipt:
        """Mark the session completed; repeated calls are no-ops."""
        row = await self._get_row(db, session_id)
        already = row.completed_at is not None
        row = await self._repo.complete_session(db, row, response_time=response_time)
        if is_valid is not None:
            row = await self._repo.set_validity(db, row, is_valid)
        if already:
            logger.info("Session %s completion repeated; keeping first timestamp", session_id)
        else:
            logger.info("Session %s completed in %ss", session_id, response_time)
        return CompletionReceipt(
            session_id=str(row.id),
            completed_at=row.completed_at,
            response_time=row.response_time,
            is_valid=row.is_valid,
        )

    # ==================================================================
    # Participant check
    # ==================================================================

    async def check_participant(
        self,
        db: AsyncSession,
        *,
        participant_hash: str | None,
        fingerprint: str | None,
    ) -> ParticipantLookup:
        """Classify a participant as new, in_progress or completed.

        Matches the most recent session sharing the participant hash or the
        device fingerprint.
        """
        if not participant_hash and not fingerprint:
            raise ValueError("participant_hash or fingerprint is required")

        row = await self._repo.find_latest_for_participant(
            db, participant_hash=participant_hash, fingerprint=fingerprint,
        )
        if row is None:
            return ParticipantLookup(status="new", participant_hash=participant_hash)

        if row.completed_at is not None:
            return ParticipantLookup(
                status="completed",
                participant_hash=participant_hash,
                session_id=str(row.id),
                role=row.role,
                completed_at=row.completed_at,
            )

        return ParticipantLookup(
            status="in_progress",
            participant_hash=participant_hash,
            session_id=str(row.id),
            role=row.role,
            started_at=row.started_at,
            response_count=await self._repo.count_responses(db, row),
        )

    # ==================================================================
    # Catalog
    # ==================================================================

    def list_questions(self, role: str) -> list[Question]:
        """Current catalog for ``role`` (not a frozen snapshot)."""
        return self._catalog.questions_for_role(role)

    # ==================================================================
    # Internals
    # ==================================================================

    async def _get_row(self, db: AsyncSession, session_id: str) -> SurveySession:
        """Load a session row or raise ``ValueError('Session not found')``."""
        try:
            pk = uuid.UUID(session_id)
        except (TypeError, ValueError):
            raise ValueError(f"Session not found: session_id={session_id}") from None
        row = await self._repo.get_by_id(db, pk)
        if row is None:
            raise ValueError(f"Session not found: session_id={session_id}")
        return row

    async def _load_answers(
        self, db: AsyncSession, row: SurveySession
    ) -> dict[str, Any]:
        responses = await self._repo.list_responses(db, row)
        return {r.question_id: r.value for r in responses}
