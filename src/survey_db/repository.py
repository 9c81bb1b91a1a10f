"""Async CRUD repository for survey sessions, responses and fingerprints.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods ``flush()`` but never ``commit()``; the
API's ``get_db`` dependency commits once per request.

The repository avoids business-logic validation (that lives in the
session service).  It does enforce the storage-level guarantees: one
response row per ``(session_id, question_id)`` via an upsert, and a
``completed_at`` that is written only once.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from survey_db.models.fingerprint import DeviceFingerprint
from survey_db.models.response import SurveyResponse
from survey_db.models.session import SurveySession


class SessionRepository:
    """Async read/write operations on the survey tables."""

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(
        self,
        db: AsyncSession,
        *,
        role: str,
        language: str,
        questions: list[dict[str, Any]],
        participant_hash: str | None = None,
        fingerprint: str | None = None,
        source_code: str | None = None,
        device_info: dict[str, Any] | None = None,
        is_valid: bool = True,
    ) -> SurveySession:
        """Insert a new session row with its frozen question snapshot."""
        session = SurveySession(
            role=role,
            language=language,
            questions=questions,
            participant_hash=participant_hash,
            fingerprint=fingerprint,
            source_code=source_code,
            device_info=device_info,
            is_valid=is_valid,
        )
        db.add(session)
        await db.flush()  # Populate defaults (id, started_at)
        return session

    async def get_by_id(
        self, db: AsyncSession, session_id: uuid.UUID
    ) -> SurveySession | None:
        """Fetch a session by primary key."""
        return await db.get(SurveySession, session_id)

    async def find_latest_for_participant(
        self,
        db: AsyncSession,
        *,
        participant_hash: str | None,
        fingerprint: str | None,
    ) -> SurveySession | None:
        """Most recently started session matching the hash OR the fingerprint."""
        clauses = []
        if participant_hash:
            clauses.append(SurveySession.participant_hash == participant_hash)
        if fingerprint:
            clauses.append(SurveySession.fingerprint == fingerprint)
        if not clauses:
            return None
        stmt = (
            select(SurveySession)
            .where(or_(*clauses))
            .order_by(SurveySession.started_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def complete_session(
        self,
        db: AsyncSession,
        session: SurveySession,
        *,
        response_time: int | None = None,
    ) -> SurveySession:
        """Set ``completed_at`` (first call only) and the response time.

        Later calls leave ``completed_at`` untouched, so a retried
        completion is harmless.
        """
        if session.completed_at is None:
            session.completed_at = datetime.now(timezone.utc)
            if response_time is not None:
                session.response_time = response_time
        await db.flush()
        return session

    async def set_validity(
        self, db: AsyncSession, session: SurveySession, is_valid: bool
    ) -> SurveySession:
        """Overwrite the soft validity flag."""
        session.is_valid = is_valid
        await db.flush()
        return session

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def upsert_response(
        self,
        db: AsyncSession,
        session: SurveySession,
        *,
        question_id: str,
        value: Any,
        time_taken: int | None = None,
    ) -> None:
        """Insert or overwrite the answer for ``(session, question_id)``."""
        now = datetime.now(timezone.utc)
        stmt = insert(SurveyResponse).values(
            id=uuid.uuid4(),
            session_id=session.id,
            question_id=question_id,
            value=value,
            time_taken=time_taken,
            recorded_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_response_session_question",
            set_={
                "value": stmt.excluded.value,
                "time_taken": stmt.excluded.time_taken,
                "recorded_at": stmt.excluded.recorded_at,
            },
        )
        await db.execute(stmt)
        await db.flush()

    async def list_responses(
        self, db: AsyncSession, session: SurveySession
    ) -> list[SurveyResponse]:
        """All response rows of a session, oldest first."""
        stmt = (
            select(SurveyResponse)
            .where(SurveyResponse.session_id == session.id)
            .order_by(SurveyResponse.recorded_at)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count_responses(self, db: AsyncSession, session: SurveySession) -> int:
        """Number of questions the session has answered."""
        stmt = select(func.count()).select_from(SurveyResponse).where(
            SurveyResponse.session_id == session.id
        )
        result = await db.execute(stmt)
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Fingerprints
    # ------------------------------------------------------------------

    async def register_fingerprint(self, db: AsyncSession, fingerprint: str) -> int:
        """Count one more session for ``fingerprint``.

        Returns the number of sessions the device had started *before*
        this one.
        """
        now = datetime.now(timezone.utc)
        stmt = insert(DeviceFingerprint).values(
            fingerprint=fingerprint,
            session_count=1,
            first_seen_at=now,
            last_seen_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DeviceFingerprint.fingerprint],
            set_={
                "session_count": DeviceFingerprint.session_count + 1,
                "last_seen_at": now,
            },
        ).returning(DeviceFingerprint.session_count)
        result = await db.execute(stmt)
        await db.flush()
        return int(result.scalar_one()) - 1
