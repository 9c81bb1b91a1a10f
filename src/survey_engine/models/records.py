"""Locally persisted records — the write-ahead queue, snapshot and fallbacks.

These models are the serialised form of what the local store keeps on disk.
They never leave the respondent's device except through the sync driver.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


def make_record_id(session_id: str, question_id: str, timestamp: int) -> str:
    """Deterministic record id: ``{session_id}_{question_id}_{timestamp}``.

    Re-enqueueing the same logical answer (same millisecond timestamp)
    yields the same id, which makes the queue write idempotent.
    """
    return f"{session_id}_{question_id}_{timestamp}"


class PendingResponseRecord(BaseModel):
    """One answer submission waiting for (or past) delivery.

    ``timestamp`` is epoch milliseconds at the time the answer was given.
    The only mutation a record ever sees is ``synced`` going False -> True.
    """

    id: str
    session_id: str
    question_id: str
    value: Any = None
    timestamp: int
    synced: bool = False
    # Seconds the question was on screen before it was answered
    time_taken: int | None = None


class ProgressSnapshot(BaseModel):
    """Single-slot recovery snapshot of the respondent's position.

    ``current_index`` is an index into the *visible* question sequence.
    """

    session_id: str
    role: str
    current_index: int = 0
    answers: dict[str, Any] = Field(default_factory=dict)
    language: str
    start_time: datetime
    last_updated: datetime


class PendingCompletion(BaseModel):
    """Fallback record written when every completion attempt failed."""

    session_id: str
    response_time: int
    timestamp: datetime
