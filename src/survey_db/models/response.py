"""SurveyResponse ORM model — one answer per (session, question)."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from survey_db.models.base import Base


class SurveyResponse(Base):
    """The latest answer a session gave to one question.

    Re-submission of the same ``(session_id, question_id)`` overwrites the
    row, which is what makes at-least-once delivery safe.
    """

    __tablename__ = "survey_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("survey_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[str] = mapped_column(Text, nullable=False)
    # Scalar, list, or {"selected": ..., "other_text": ...}
    value: Mapped[Any] = mapped_column(JSONB, nullable=True)
    time_taken: Mapped[int | None] = mapped_column(Integer, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    session = relationship("SurveySession", back_populates="responses")

    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_response_session_question"),
    )

    def __repr__(self) -> str:
        return f"<SurveyResponse(session={self.session_id!s}, question={self.question_id!r})>"
