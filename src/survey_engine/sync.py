"""SyncDriver — opportunistic delivery of queued answers.

Delivery is triggered:

  1. right after an answer is enqueued, when the device is online
  2. when connectivity is restored (``ConnectivityMonitor.set_online(True)``)
  3. just before completion is finalized
  4. periodically, by the background loop started with :meth:`SyncDriver.start`

Delivery is at-least-once.  Before each submission the record's ``synced``
flag is re-read; a repeated submission is absorbed by the server's
``(session_id, question_id)`` upsert.  Submissions are serialized, and a
record replaced by a later answer to the same question is retired without
being sent, so an older value can never land after a newer one.

A failed submission leaves the record unsynced; nothing is ever dropped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from survey_engine.constants import SYNC_INTERVAL_SECONDS
from survey_engine.interfaces import RemoteError, SessionBackend
from survey_engine.models.records import PendingResponseRecord
from survey_engine.queue import DurableResponseQueue

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Connectivity
# ------------------------------------------------------------------

class ConnectivityMonitor:
    """Holds the current online/offline state and notifies on reconnect.

    The host application feeds it (browser ``online`` events, a network
    reachability check, ...).  Listeners are awaited only on an
    offline -> online transition.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[Callable[[], Awaitable[object]]] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def add_listener(self, callback: Callable[[], Awaitable[object]]) -> None:
        """Register an async callback run whenever connectivity is restored."""
        self._listeners.append(callback)

    async def set_online(self, online: bool) -> None:
        """Record the new state; on reconnect, run every listener."""
        restored = online and not self._online
        self._online = online
        if not restored:
            return
        logger.info("Connectivity restored")
        for callback in self._listeners:
            await callback()


# ------------------------------------------------------------------
# Driver
# ------------------------------------------------------------------

@dataclass
class SyncReport:
    """Outcome of one flush."""

    attempted: int = 0
    synced: int = 0
    failed: int = 0


class SyncDriver:
    """Moves unsynced queue records to the lifecycle API."""

    def __init__(
        self,
        queue: DurableResponseQueue,
        backend: SessionBackend,
        connectivity: ConnectivityMonitor | None = None,
    ) -> None:
        self._queue = queue
        self._backend = backend
        self.connectivity = connectivity or ConnectivityMonitor()
        self.connectivity.add_listener(self.flush)
        self._flush_lock = asyncio.Lock()
        self._deliver_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    async def deliver(self, record: PendingResponseRecord) -> bool:
        """Submit a single record and mark it synced on acceptance.

        Returns True if the record is synced after the call (including the
        case where it already was, or where a later answer replaced it).
        Never raises for remote failures.
        """
        async with self._deliver_lock:
            return await self._deliver(record)

    async def _deliver(self, record: PendingResponseRecord) -> bool:
        current = self._queue.get(record.id)
        if current is None:
            logger.warning("deliver: record %s is not in the queue", record.id)
            return False
        if current.synced:
            return True

        latest = self._queue.latest(current.session_id, current.question_id)
        if latest is not None and latest.id != current.id:
            logger.debug("Record %s superseded by %s", current.id, latest.id)
            self._queue.mark_synced(current.id)
            return True

        try:
            accepted = await self._backend.submit_answer(
                session_id=current.session_id,
                question_id=current.question_id,
                value=current.value,
                time_taken=current.time_taken,
            )
        except RemoteError as exc:
            logger.warning("Sync of %s failed: %s", current.id, exc)
            return False

        if not accepted:
            logger.warning("Server rejected record %s; will retry", current.id)
            return False

        self._queue.mark_synced(current.id)
        return True

    async def flush(self, session_id: str | None = None) -> SyncReport:
        """Attempt delivery of every unsynced record.

        Flushes are serialized; a flush requested while another runs waits
        for it and then re-reads the queue.
        """
        report = SyncReport()
        async with self._flush_lock:
            for record in self._queue.pending(session_id):
                report.attempted += 1
                if await self.deliver(record):
                    report.synced += 1
                else:
                    report.failed += 1
        if report.attempted:
            logger.info(
                "Sync flush: %d attempted, %d synced, %d failed",
                report.attempted, report.synced, report.failed,
            )
        return report

    # ------------------------------------------------------------------
    # Background loop
    # ------------------------------------------------------------------

    def start(self, interval: float = SYNC_INTERVAL_SECONDS) -> None:
        """Start the periodic background flush (no-op if already running)."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run(interval))

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            if self.connectivity.is_online:
                await self.flush()
