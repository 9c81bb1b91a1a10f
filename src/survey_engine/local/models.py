"""ORM models for the respondent-side SQLite store.

Two tables:

  - ``pending_responses`` — the write-ahead answer queue, one row per
    submission, keyed by the deterministic record id.  Rows are never
    deleted; delivery only flips ``synced``.
  - ``local_entries`` — namespaced key/value JSON rows for everything else
    (the progress snapshot slot, pending completions).
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class LocalBase(DeclarativeBase):
    """Declarative base for the local store (separate metadata from survey_db)."""

    pass


class PendingResponseRow(LocalBase):
    """One queued answer submission."""

    __tablename__ = "pending_responses"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    session_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    question_id: Mapped[str] = mapped_column(String, nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    # Epoch milliseconds when the answer was given
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    synced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    time_taken: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        # Hot path for the sync driver: "all unsynced rows"
        Index("ix_pending_synced", "synced"),
    )

    def __repr__(self) -> str:
        return f"<PendingResponseRow(id={self.id!r}, synced={self.synced})>"


class LocalEntry(LocalBase):
    """A JSON value stored under ``(namespace, key)``."""

    __tablename__ = "local_entries"

    namespace: Mapped[str] = mapped_column(String, primary_key=True)
    key: Mapped[str] = mapped_column(String, primary_key=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
