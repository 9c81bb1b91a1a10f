"""SurveySession ORM model — one row per respondent session.

The role's question list is frozen into the ``questions`` JSONB column at
creation, so later catalog edits never change what an in-progress session
sees on resume.  Answers live in ``survey_responses`` (one row per
question), which lets the upsert stay a single-row write.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_db.models.base import Base


class SurveySession(Base):
    """One survey attempt by one respondent."""

    __tablename__ = "survey_sessions"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    # Hash of normalised name + phone digits; null for anonymous entry
    participant_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    fingerprint: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="en")
    # Distribution link the respondent arrived through
    source_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_info: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # --- Frozen question snapshot ---
    # List of serialised Question dicts, in survey order
    questions: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )

    # --- Quality ---
    # False marks a probable duplicate (device fingerprint reused); soft flag only
    is_valid: Mapped[bool] = mapped_column(nullable=False, default=True)

    # --- Timestamps ---
    started_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    # Set exactly once, when the session transitions to completed
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    # Seconds from start to completion, as measured on the device
    response_time: Mapped[int | None] = mapped_column(Integer, nullable=True)

    responses = relationship(
        "SurveyResponse",
        back_populates="session",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint("role IN ('nurse', 'doctor')", name="ck_session_role"),
        # Dedup lookups: by participant hash or by fingerprint, newest first
        Index(
            "ix_sessions_participant",
            "participant_hash",
            "started_at",
            postgresql_where=text("participant_hash IS NOT NULL"),
        ),
        Index(
            "ix_sessions_fingerprint",
            "fingerprint",
            "started_at",
            postgresql_where=text("fingerprint IS NOT NULL"),
        ),
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def __repr__(self) -> str:
        return (
            f"<SurveySession(id={self.id!s}, role={self.role!r}, "
            f"completed={self.completed_at is not None})>"
        )
