"""DurableResponseQueue — local write-ahead log of answer submissions.

Every answer is written here *before* any network attempt, so an answer
survives connectivity loss, process restarts and server outages.  Records
are never deleted: delivery only flips ``synced`` from False to True, and
unsynced records stay eligible for delivery indefinitely.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select

from survey_engine.local.models import PendingResponseRow
from survey_engine.local.store import LocalStore
from survey_engine.models.records import PendingResponseRecord, make_record_id

logger = logging.getLogger(__name__)


def _to_record(row: PendingResponseRow) -> PendingResponseRecord:
    return PendingResponseRecord(
        id=row.id,
        session_id=row.session_id,
        question_id=row.question_id,
        value=row.value,
        timestamp=row.timestamp,
        synced=row.synced,
        time_taken=row.time_taken,
    )


class DurableResponseQueue:
    """Append-only answer queue backed by the ``pending_responses`` table."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def enqueue(
        self,
        session_id: str,
        question_id: str,
        value: Any,
        *,
        timestamp: int,
        time_taken: int | None = None,
    ) -> PendingResponseRecord:
        """Persist one answer submission and return its record.

        Each record is newer than every earlier record for the same
        question.  Re-enqueueing the question's current answer returns the
        existing record unchanged (including its ``synced`` flag); a
        different value that arrives at or before the newest timestamp is
        moved to one millisecond after it.
        """
        with self._store.session() as db:
            latest = self._latest_row(db, session_id, question_id)
            if latest is not None and latest.timestamp >= timestamp:
                if latest.value == value:
                    logger.debug("Record %s already queued", latest.id)
                    return _to_record(latest)
                timestamp = latest.timestamp + 1
            record_id = make_record_id(session_id, question_id, timestamp)
            row = PendingResponseRow(
                id=record_id,
                session_id=session_id,
                question_id=question_id,
                value=value,
                timestamp=timestamp,
                synced=False,
                time_taken=time_taken,
            )
            db.add(row)
            db.flush()
            return _to_record(row)

    def mark_synced(self, record_id: str) -> None:
        """Flip a record's ``synced`` flag.  Unknown ids are ignored."""
        with self._store.session() as db:
            row = db.get(PendingResponseRow, record_id)
            if row is None:
                logger.warning("mark_synced: unknown record %s", record_id)
                return
            row.synced = True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, record_id: str) -> PendingResponseRecord | None:
        """Fetch one record by id."""
        with self._store.session() as db:
            row = db.get(PendingResponseRow, record_id)
            return _to_record(row) if row is not None else None

    def latest(self, session_id: str, question_id: str) -> PendingResponseRecord | None:
        """The newest record for one question (its current answer), or None."""
        with self._store.session() as db:
            row = self._latest_row(db, session_id, question_id)
            return _to_record(row) if row is not None else None

    def pending(self, session_id: str | None = None) -> list[PendingResponseRecord]:
        """Return every unsynced record, oldest first.

        Several records may exist for one question; only the newest carries
        the current answer (see :meth:`latest`).
        """
        stmt = select(PendingResponseRow).where(PendingResponseRow.synced.is_(False))
        if session_id is not None:
            stmt = stmt.where(PendingResponseRow.session_id == session_id)
        stmt = stmt.order_by(PendingResponseRow.timestamp)
        with self._store.session() as db:
            return [_to_record(row) for row in db.scalars(stmt).all()]

    def records(self, session_id: str) -> list[PendingResponseRecord]:
        """Return all records (synced or not) for one session, oldest first."""
        stmt = (
            select(PendingResponseRow)
            .where(PendingResponseRow.session_id == session_id)
            .order_by(PendingResponseRow.timestamp)
        )
        with self._store.session() as db:
            return [_to_record(row) for row in db.scalars(stmt).all()]

    def pending_count(self, session_id: str | None = None) -> int:
        """Number of unsynced records (optionally for one session)."""
        stmt = select(func.count()).select_from(PendingResponseRow).where(
            PendingResponseRow.synced.is_(False)
        )
        if session_id is not None:
            stmt = stmt.where(PendingResponseRow.session_id == session_id)
        with self._store.session() as db:
            return int(db.scalar(stmt) or 0)

    @staticmethod
    def _latest_row(db, session_id: str, question_id: str) -> PendingResponseRow | None:
        stmt = (
            select(PendingResponseRow)
            .where(
                PendingResponseRow.session_id == session_id,
                PendingResponseRow.question_id == question_id,
            )
            .order_by(PendingResponseRow.timestamp.desc())
            .limit(1)
        )
        return db.scalars(stmt).first()
