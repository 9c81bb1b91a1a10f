"""survey_engine — Local-first survey session SDK.

Public API:
    SessionPhaseController — respondent-facing state machine (entry, survey, completion)
    SurveyContext          — per-controller language, clock, fingerprint, source code
    ConditionEvaluator     — visible-question computation
    OptionRandomizer       — once-per-session option shuffling
    CatalogStore           — loads the YAML question catalog into typed models

Durability & sync:
    LocalStore             — SQLite-backed local store
    DurableResponseQueue   — write-ahead answer queue
    ProgressSnapshotStore  — single-slot recovery snapshot with TTL
    SyncDriver             — opportunistic delivery of queued answers
    ConnectivityMonitor    — online/offline signal feeding the sync driver
    CompletionFinalizer    — bounded-retry completion with local fallback

Remote collaborator:
    SessionBackend         — ABC for the session lifecycle API
    HttpSessionClient      — httpx implementation of SessionBackend
    RemoteError            — transport failure raised by backends

Helpers:
    merge_resume_state     — pure merge of server and local state on resume
    pipe_text / pipe_question — {{externalId}} answer substitution
    participant_hash / device_fingerprint — identity hashing
"""

from survey_engine.catalog import CatalogStore
from survey_engine.client import HttpSessionClient
from survey_engine.controller import SessionPhaseController, SurveyContext
from survey_engine.evaluator import ConditionEvaluator
from survey_engine.finalizer import CompletionFinalizer, CompletionOutcome
from survey_engine.identity import (
    ParticipantIdentityResolver,
    device_fingerprint,
    participant_hash,
)
from survey_engine.interfaces import RemoteError, SessionBackend
from survey_engine.local import LocalStore
from survey_engine.merge import merge_resume_state
from survey_engine.piping import pipe_question, pipe_text
from survey_engine.queue import DurableResponseQueue
from survey_engine.randomizer import OptionRandomizer
from survey_engine.snapshot import ProgressSnapshotStore
from survey_engine.sync import ConnectivityMonitor, SyncDriver, SyncReport
from survey_engine.validation import RequiredAnswerError

__all__ = [
    # Controller
    "SessionPhaseController",
    "SurveyContext",
    # Question logic
    "CatalogStore",
    "ConditionEvaluator",
    "OptionRandomizer",
    "pipe_question",
    "pipe_text",
    "RequiredAnswerError",
    # Durability & sync
    "LocalStore",
    "DurableResponseQueue",
    "ProgressSnapshotStore",
    "SyncDriver",
    "SyncReport",
    "ConnectivityMonitor",
    "CompletionFinalizer",
    "CompletionOutcome",
    "merge_resume_state",
    # Identity
    "ParticipantIdentityResolver",
    "device_fingerprint",
    "participant_hash",
    # Remote
    "SessionBackend",
    "HttpSessionClient",
    "RemoteError",
]
