"""CompletionFinalizer — bounded-retry completion with a local fallback.

Completion is attempted up to ``COMPLETION_MAX_ATTEMPTS`` times, sleeping
``COMPLETION_RETRY_DELAYS`` seconds between attempts (1 s, then 2 s).  If
every attempt fails, a ``PendingCompletion`` record is written to the local
store so :meth:`CompletionFinalizer.sweep` can retry it later.  A session
the server does not know is given up on at once, both here and in the sweep.

The respondent is never blocked: :meth:`finalize` always returns, and the
controller moves to the completed phase whatever the outcome.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable

from survey_engine.constants import COMPLETION_MAX_ATTEMPTS, COMPLETION_RETRY_DELAYS
from survey_engine.interfaces import RemoteError, SessionBackend, SessionNotFoundError
from survey_engine.local.store import LocalStore
from survey_engine.models.records import PendingCompletion

logger = logging.getLogger(__name__)

PENDING_COMPLETION_NAMESPACE = "pending_completion"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CompletionOutcome:
    """Result of one finalize call."""

    completed: bool
    attempts: int
    pending: PendingCompletion | None = None


class CompletionFinalizer:
    """Marks sessions completed on the server, retrying a bounded number of times."""

    def __init__(
        self,
        backend: SessionBackend,
        store: LocalStore,
        *,
        max_attempts: int = COMPLETION_MAX_ATTEMPTS,
        delays: tuple[float, ...] = COMPLETION_RETRY_DELAYS,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._backend = backend
        self._store = store
        self._max_attempts = max_attempts
        self._delays = delays
        self._sleep = sleep
        self._clock = clock

    async def finalize(self, session_id: str, response_time: int) -> CompletionOutcome:
        """Try to complete ``session_id``; fall back to a local record."""
        for attempt in range(1, self._max_attempts + 1):
            try:
                accepted = await self._attempt(session_id, response_time)
            except SessionNotFoundError:
                logger.error("Session %s is unknown to the server; not completing", session_id)
                return CompletionOutcome(completed=False, attempts=attempt)
            if accepted:
                logger.info("Session %s completed (attempt %d)", session_id, attempt)
                return CompletionOutcome(completed=True, attempts=attempt)
            if attempt < self._max_attempts:
                delay = self._delays[min(attempt - 1, len(self._delays) - 1)]
                await self._sleep(delay)

        pending = PendingCompletion(
            session_id=session_id,
            response_time=response_time,
            timestamp=self._clock(),
        )
        self._store.put_entry(
            PENDING_COMPLETION_NAMESPACE, session_id, pending.model_dump(mode="json")
        )
        logger.warning(
            "Completion of %s failed after %d attempts; stored for later retry",
            session_id, self._max_attempts,
        )
        return CompletionOutcome(
            completed=False, attempts=self._max_attempts, pending=pending,
        )

    # ------------------------------------------------------------------
    # Stored fallbacks
    # ------------------------------------------------------------------

    def pending(self) -> list[PendingCompletion]:
        """Every stored pending completion, oldest first."""
        entries = self._store.list_entries(PENDING_COMPLETION_NAMESPACE)
        records = [PendingCompletion.model_validate(raw) for raw in entries.values()]
        return sorted(records, key=lambda r: r.timestamp)

    async def sweep(self) -> int:
        """Retry each stored pending completion once.

        Accepted completions, and those for sessions the server does not
        know, are removed from the store.  Returns the number of sessions
        completed by this sweep.
        """
        completed = 0
        for record in self.pending():
            try:
                accepted = await self._attempt(record.session_id, record.response_time)
            except SessionNotFoundError:
                logger.error("Dropping pending completion for unknown session %s", record.session_id)
                self._store.delete_entry(PENDING_COMPLETION_NAMESPACE, record.session_id)
                continue
            if accepted:
                self._store.delete_entry(PENDING_COMPLETION_NAMESPACE, record.session_id)
                completed += 1
        if completed:
            logger.info("Sweep completed %d pending session(s)", completed)
        return completed

    async def _attempt(self, session_id: str, response_time: int) -> bool:
        try:
            return await self._backend.complete_session(
                session_id, response_time=response_time,
            )
        except RemoteError as exc:
            logger.warning("Completion attempt for %s failed: %s", session_id, exc)
            return False
