"""SessionPhaseController — the respondent-facing state machine.

Orchestrates every other component of the engine:

  - ``start()``: offer recovery of a saved snapshot, or ask who is answering
  - ``submit_participant()``: dedup lookup -> role selection, resume, or refusal
  - ``select_role()``: create the session and freeze its questions
  - ``resume()`` / ``discard()``: act on the recovery prompt
  - ``answer()`` / ``next()`` / ``previous()``: move through the visible questions
  - ``view()``: render model for the current screen

Answers are written to the durable queue before any network attempt, and
the snapshot is saved after every state change, so a crash or reload at any
point loses nothing.  Network failures never block the respondent; only
local validation can stop navigation.

Language and the clock live on an explicit ``SurveyContext`` value rather
than in module globals, so several controllers can run side by side.

Usage::

    store = LocalStore("survey_local.db")
    async with HttpSessionClient(API_BASE_URL) as backend:
        controller = SessionPhaseController(backend, store)
        view = controller.start()
        view = await controller.submit_participant("Jane", "555-0100")
        view = await controller.select_role("nurse")
        view = await controller.answer("Yes")
        view = await controller.next()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from survey_engine.constants import DEFAULT_LANGUAGE, ROLES, SUPPORTED_LANGUAGES
from survey_engine.evaluator import ConditionEvaluator
from survey_engine.finalizer import CompletionFinalizer, CompletionOutcome
from survey_engine.identity import ParticipantIdentityResolver, participant_hash
from survey_engine.interfaces import RemoteError, SessionBackend
from survey_engine.local.store import LocalStore
from survey_engine.merge import merge_resume_state
from survey_engine.models.question import Question
from survey_engine.models.records import ProgressSnapshot
from survey_engine.models.session import (
    Phase,
    RecoverySummary,
    ResolvedState,
    SurveyView,
)
from survey_engine.piping import pipe_question
from survey_engine.progress import survey_progress
from survey_engine.queue import DurableResponseQueue
from survey_engine.randomizer import OptionRandomizer
from survey_engine.snapshot import ProgressSnapshotStore
from survey_engine.sync import ConnectivityMonitor, SyncDriver
from survey_engine.validation import is_answered, require_answer, validate_answer

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@dataclass
class SurveyContext:
    """Per-controller ambient values threaded through rendering and persistence."""

    language: str = DEFAULT_LANGUAGE
    clock: Callable[[], datetime] = _utcnow
    # Device fingerprint sent with the dedup lookup and session creation
    fingerprint: str | None = None
    # Distribution link the respondent arrived through
    source_code: str | None = None
    device_info: dict[str, Any] = field(default_factory=dict)


class SessionPhaseController:
    """Drives one respondent through a survey session."""

    def __init__(
        self,
        backend: SessionBackend,
        store: LocalStore,
        *,
        context: SurveyContext | None = None,
        connectivity: ConnectivityMonitor | None = None,
        evaluator: ConditionEvaluator | None = None,
        finalizer: CompletionFinalizer | None = None,
    ) -> None:
        self._backend = backend
        self.context = context or SurveyContext()
        self.evaluator = evaluator or ConditionEvaluator()
        self.queue = DurableResponseQueue(store)
        self.snapshots = ProgressSnapshotStore(store)
        self.sync = SyncDriver(self.queue, backend, connectivity)
        self.finalizer = finalizer or CompletionFinalizer(
            backend, store, clock=self.context.clock,
        )
        self.identity = ParticipantIdentityResolver(backend)
        self.last_completion: CompletionOutcome | None = None
        self._reset()

    def _reset(self) -> None:
        """Forget everything about the current respondent."""
        self.phase = Phase.PARTICIPANT_ENTRY
        self.session_id: str | None = None
        self.role: str | None = None
        self.questions: list[Question] = []
        self.answers: dict[str, Any] = {}
        self.current_index = 0
        self.participant_hash: str | None = None
        self.completed_at: datetime | None = None
        self._start_time: datetime | None = None
        self._shown_at: datetime | None = None
        self._recovery: ProgressSnapshot | None = None

    # ==================================================================
    # Entry
    # ==================================================================

    def start(self) -> SurveyView:
        """Decide the entry point: recovery prompt or participant entry."""
        snapshot = self.snapshots.load(now=self.context.clock())
        self._reset()
        if snapshot is not None:
            self._recovery = snapshot
            self.phase = Phase.RECOVERY_PROMPT
        return self.view()

    def start_new(self) -> SurveyView:
        """Return to participant entry for the next respondent."""
        self._reset()
        return self.view()

    async def submit_participant(
        self,
        name: str | None,
        phone: str | None,
        *,
        anonymous: bool = False,
    ) -> SurveyView:
        """Run the dedup lookup and route to the matching phase.

        Raises ``ValueError`` if name or phone is missing for a
        non-anonymous entry.  A lookup that cannot reach the server falls
        through to role selection.
        """
        self._require_phase(Phase.PARTICIPANT_ENTRY, "submit_participant")

        try:
            lookup = await self.identity.resolve(
                name, phone, self.context.fingerprint, anonymous=anonymous,
            )
        except RemoteError as exc:
            logger.warning("Participant lookup failed, continuing as new: %s", exc)
            self.participant_hash = participant_hash(name or "", phone or "")
            self.phase = Phase.ROLE_SELECTION
            return self.view()

        self.participant_hash = lookup.participant_hash

        if lookup.status == "completed":
            self.session_id = lookup.session_id
            self.role = lookup.role
            self.completed_at = lookup.completed_at
            self.phase = Phase.ALREADY_COMPLETED
            return self.view()

        if lookup.status == "in_progress" and lookup.session_id:
            resolved = await self._fetch_resolved(lookup.session_id)
            if resolved is not None:
                self._enter_survey(resolved, start_time=lookup.started_at)
                return self.view()
            logger.info("Could not resume %s; starting a new session", lookup.session_id)

        self.phase = Phase.ROLE_SELECTION
        return self.view()

    async def select_role(self, role: str, *, source_code: str | None = None) -> SurveyView:
        """Create a session for ``role`` and enter the survey.

        ``source_code`` overrides the distribution link on the context.

        Raises ``RemoteError`` if the session cannot be created (the phase
        stays at role selection so the respondent can retry), and
        ``ValueError`` for an unknown role or an empty question list.
        """
        self._require_phase(Phase.ROLE_SELECTION, "select_role")
        if role not in ROLES:
            raise ValueError(f"Invalid role: {role!r}")

        created = await self._backend.create_session(
            role=role,
            language=self.context.language,
            participant_hash=self.participant_hash,
            fingerprint=self.context.fingerprint,
            source_code=source_code or self.context.source_code,
            device_info=self.context.device_info or None,
        )
        if not created.questions:
            raise ValueError(f"No questions available for role {role!r}")
        if created.is_duplicate:
            logger.info("Session %s flagged as probable duplicate", created.session_id)

        self._enter_survey(
            ResolvedState(
                session_id=created.session_id,
                role=created.role,
                language=created.language,
                questions=created.questions,
            ),
            start_time=None,
        )
        return self.view()

    # ==================================================================
    # Recovery prompt
    # ==================================================================

    async def resume(self) -> SurveyView:
        """Resume the saved snapshot's session.

        If the server no longer knows the session (or it is already
        completed), the snapshot is discarded and the respondent starts
        over.  A transport failure raises ``RemoteError`` and keeps the
        prompt, so nothing local is thrown away while offline.
        """
        self._require_phase(Phase.RECOVERY_PROMPT, "resume")
        snapshot = self._recovery
        server = await self._backend.resume_session(snapshot.session_id)
        if server is None:
            logger.info("Session %s not resumable; discarding snapshot", snapshot.session_id)
            return self.discard()

        resolved = merge_resume_state(server, snapshot, self.evaluator)
        self._enter_survey(resolved, start_time=snapshot.start_time)
        return self.view()

    def discard(self) -> SurveyView:
        """Drop the saved snapshot and return to participant entry."""
        self.snapshots.clear()
        self._reset()
        return self.view()

    # ==================================================================
    # Survey navigation
    # ==================================================================

    async def answer(self, value: Any) -> SurveyView:
        """Record an answer to the current question.

        The answer is validated, then queued locally, then applied to the
        in-memory map and snapshot, and only then delivered (when online).
        """
        self._require_phase(Phase.SURVEY, "answer")
        question = self.current_question()
        validate_answer(question, value)

        now = self.context.clock()
        time_taken = None
        if self._shown_at is not None:
            time_taken = max(int((now - self._shown_at).total_seconds()), 0)

        record = self.queue.enqueue(
            self.session_id,
            question.id,
            value,
            timestamp=_epoch_ms(now),
            time_taken=time_taken,
        )
        self.answers[question.id] = value
        self._anchor_on(question.id)
        self._save_snapshot()

        if self.sync.connectivity.is_online:
            await self.sync.deliver(record)
        return self.view()

    async def next(self) -> SurveyView:
        """Advance to the next visible question, or finish after the last one.

        Raises ``RequiredAnswerError`` when the current question is
        required and unanswered.
        """
        self._require_phase(Phase.SURVEY, "next")
        visible = self.visible_questions()
        if visible:
            question = visible[self._clamp(self.current_index, visible)]
            require_answer(question, self.answers.get(question.id))

        if self.current_index < len(visible) - 1:
            self.current_index += 1
            self._shown_at = self.context.clock()
            self._save_snapshot()
            return self.view()

        await self._finish()
        return self.view()

    def previous(self) -> SurveyView:
        """Go back one visible question (no-op on the first)."""
        self._require_phase(Phase.SURVEY, "previous")
        if self.current_index > 0:
            self.current_index -= 1
            self._shown_at = self.context.clock()
            self._save_snapshot()
        return self.view()

    def set_language(self, language: str) -> SurveyView:
        """Switch the display language; kept in the snapshot."""
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language!r}")
        self.context.language = language
        if self.phase == Phase.SURVEY:
            self._save_snapshot()
        return self.view()

    # ==================================================================
    # Rendering
    # ==================================================================

    def visible_questions(self) -> list[Question]:
        """Visible sequence for the current answers (recomputed every call)."""
        return self.evaluator.visible_questions(self.questions, self.answers)

    def current_question(self) -> Question:
        """The visible question at the current index (without piping)."""
        visible = self.visible_questions()
        if not visible:
            raise ValueError(f"Session {self.session_id} has no visible question")
        self.current_index = self._clamp(self.current_index, visible)
        return visible[self.current_index]

    def view(self) -> SurveyView:
        """Build the render model for the current phase."""
        view = SurveyView(
            phase=self.phase,
            language=self.context.language,
            session_id=self.session_id,
            role=self.role,
            offline=not self.sync.connectivity.is_online,
            pending_sync=self.queue.pending_count(self.session_id) if self.session_id else 0,
            completed_at=self.completed_at,
        )

        if self.phase == Phase.RECOVERY_PROMPT and self._recovery is not None:
            snap = self._recovery
            view.recovery = RecoverySummary(
                session_id=snap.session_id,
                role=snap.role,
                current_index=snap.current_index,
                answered=sum(1 for v in snap.answers.values() if is_answered(v)),
                last_updated=snap.last_updated,
            )

        visible = self.visible_questions() if self.phase == Phase.SURVEY else []
        if visible:
            self.current_index = self._clamp(self.current_index, visible)
            question = visible[self.current_index]
            view.question = pipe_question(question, self.questions, self.answers)
            view.answer = self.answers.get(question.id)
            view.answers = dict(self.answers)
            view.current_index = self.current_index
            view.total = len(visible)
            view.is_first = self.current_index == 0
            view.is_last = self.current_index == len(visible) - 1
            view.progress = survey_progress(visible, self.answers, self.current_index)
        return view

    # ==================================================================
    # Internals
    # ==================================================================

    def _require_phase(self, phase: Phase, operation: str) -> None:
        if self.phase != phase:
            raise ValueError(
                f"{operation} is only valid during {phase.value}, "
                f"current phase is {self.phase.value}"
            )

    async def _fetch_resolved(self, session_id: str) -> ResolvedState | None:
        """Fetch and merge server state for ``session_id``; None on any failure."""
        try:
            server = await self._backend.resume_session(session_id)
        except RemoteError as exc:
            logger.warning("Resume of %s failed: %s", session_id, exc)
            return None
        if server is None:
            return None
        snapshot = self.snapshots.load(now=self.context.clock())
        return merge_resume_state(server, snapshot, self.evaluator)

    def _enter_survey(self, state: ResolvedState, *, start_time: datetime | None) -> None:
        """Load a session into memory, randomize once, and enter the survey."""
        now = self.context.clock()
        self.session_id = state.session_id
        self.role = state.role
        self.questions = OptionRandomizer(state.session_id).apply(state.questions)
        self.answers = dict(state.answers)
        self.context.language = state.language or self.context.language
        self._start_time = start_time or now
        self._shown_at = now
        self._recovery = None
        self.current_index = self._clamp(state.current_index, self.visible_questions())
        self.phase = Phase.SURVEY
        self._save_snapshot()
        logger.info(
            "Session %s entered survey at index %d (%d answers)",
            self.session_id, self.current_index, len(self.answers),
        )

    def _anchor_on(self, question_id: str) -> None:
        """Keep the index on ``question_id`` after visibility changed."""
        visible = self.visible_questions()
        for i, q in enumerate(visible):
            if q.id == question_id:
                self.current_index = i
                return
        self.current_index = self._clamp(self.current_index, visible)

    @staticmethod
    def _clamp(index: int, visible: list[Question]) -> int:
        return min(max(index, 0), max(len(visible) - 1, 0))

    def _save_snapshot(self) -> None:
        self.snapshots.save(
            ProgressSnapshot(
                session_id=self.session_id,
                role=self.role,
                current_index=self.current_index,
                answers=self.answers,
                language=self.context.language,
                start_time=self._start_time,
                last_updated=self.context.clock(),
            )
        )

    async def _finish(self) -> None:
        """Flush pending answers, finalize completion, clear the snapshot."""
        now = self.context.clock()
        response_time = int((now - self._start_time).total_seconds())

        if self.sync.connectivity.is_online:
            await self.sync.flush(self.session_id)

        self.last_completion = await self.finalizer.finalize(self.session_id, response_time)
        self.snapshots.clear()
        self.completed_at = now
        self.phase = Phase.COMPLETED
