"""Session models — the contract between the engine, the lifecycle API and callers.

These models are intentionally decoupled from the ORM models in ``survey_db``
so that API consumers never see database internals.

  - CreatedSession / ServerSessionState / ParticipantLookup: lifecycle API payloads
  - ResolvedState: outcome of merging server and local state on resume
  - SurveyView: everything a presentation layer needs to render the current screen
"""

import enum
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from survey_engine.models.question import Question


class Phase(str, enum.Enum):
    """Respondent-facing phases of a survey session.

    Transitions:
        participant-entry -> role-selection      (new participant)
        participant-entry -> survey              (in-progress session resumed)
        participant-entry -> already-completed   (participant already finished)
        recovery-prompt   -> survey | participant-entry
        role-selection    -> survey
        survey            -> completed
    """

    PARTICIPANT_ENTRY = "participant-entry"
    ROLE_SELECTION = "role-selection"
    RECOVERY_PROMPT = "recovery-prompt"
    SURVEY = "survey"
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already-completed"


# Phases the controller never leaves except by starting over.
TERMINAL_PHASES: set[Phase] = {Phase.COMPLETED, Phase.ALREADY_COMPLETED}


# ------------------------------------------------------------------
# Lifecycle API payloads
# ------------------------------------------------------------------

class CreatedSession(BaseModel):
    """Result of creating a session: id plus the frozen question snapshot."""

    session_id: str
    role: str
    language: str
    questions: list[Question]
    is_duplicate: bool = False


class ServerSessionState(BaseModel):
    """Server view of an in-progress session, used for resume.

    ``current_index`` is the server's computed position: the first visible
    question without an answer.
    """

    session_id: str
    role: str
    language: str
    questions: list[Question]
    answers: dict[str, Any] = Field(default_factory=dict)
    current_index: int = 0


class CompletionReceipt(BaseModel):
    """Server acknowledgement of a completion request."""

    session_id: str
    completed_at: datetime
    response_time: int | None = None
    is_valid: bool = True


class ParticipantLookup(BaseModel):
    """Outcome of the respondent dedup check."""

    status: Literal["new", "in_progress", "completed"]
    participant_hash: str | None = None
    session_id: str | None = None
    role: str | None = None
    completed_at: datetime | None = None
    response_count: int | None = None
    started_at: datetime | None = None


# ------------------------------------------------------------------
# Engine outputs
# ------------------------------------------------------------------

class ResolvedState(BaseModel):
    """Merged server + local state the controller resumes from."""

    session_id: str
    role: str
    language: str
    questions: list[Question]
    answers: dict[str, Any] = Field(default_factory=dict)
    current_index: int = 0


class SectionProgress(BaseModel):
    """Answered / total counts for one section of the visible sequence."""

    section: str
    section_order: int
    question_count: int
    answered_count: int


class SurveyProgress(BaseModel):
    """Where the respondent is, overall and within the current section."""

    answered: int
    total: int
    percent: int
    sections: list[SectionProgress]
    current_section: str | None = None
    position_in_section: int = 0
    section_size: int = 0


class RecoverySummary(BaseModel):
    """What the recovery prompt shows about a saved snapshot."""

    session_id: str
    role: str
    current_index: int
    answered: int
    last_updated: datetime


class SurveyView(BaseModel):
    """Render model for the current screen."""

    phase: Phase
    language: str
    session_id: str | None = None
    role: str | None = None
    # Current question with piping applied (None outside the survey phase)
    question: Optional[Question] = None
    answer: Any = None
    answers: dict[str, Any] = Field(default_factory=dict)
    current_index: int = 0
    total: int = 0
    is_first: bool = True
    is_last: bool = False
    progress: SurveyProgress | None = None
    offline: bool = False
    pending_sync: int = 0
    completed_at: datetime | None = None
    recovery: RecoverySummary | None = None
