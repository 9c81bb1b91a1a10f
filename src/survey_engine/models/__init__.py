"""Typed models for the survey engine."""

from survey_engine.models.question import (
    Condition,
    LikertLabels,
    Question,
    QuestionConfig,
)
from survey_engine.models.records import (
    PendingCompletion,
    PendingResponseRecord,
    ProgressSnapshot,
    make_record_id,
)
from survey_engine.models.session import (
    CompletionReceipt,
    CreatedSession,
    ParticipantLookup,
    Phase,
    RecoverySummary,
    ResolvedState,
    SectionProgress,
    ServerSessionState,
    SurveyProgress,
    SurveyView,
)

__all__ = [
    "Condition",
    "LikertLabels",
    "Question",
    "QuestionConfig",
    "PendingCompletion",
    "PendingResponseRecord",
    "ProgressSnapshot",
    "make_record_id",
    "CompletionReceipt",
    "CreatedSession",
    "ParticipantLookup",
    "Phase",
    "RecoverySummary",
    "ResolvedState",
    "SectionProgress",
    "ServerSessionState",
    "SurveyProgress",
    "SurveyView",
]
