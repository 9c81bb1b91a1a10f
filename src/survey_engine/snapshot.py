"""ProgressSnapshotStore — the single recovery slot.

The controller saves a snapshot after every answer and navigation step.
On startup, a snapshot younger than the TTL (measured from ``last_updated``)
is offered for recovery; an older one is discarded on load.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from survey_engine.constants import SNAPSHOT_TTL_HOURS
from survey_engine.local.store import LocalStore
from survey_engine.models.records import ProgressSnapshot

logger = logging.getLogger(__name__)

SNAPSHOT_NAMESPACE = "progress"
SNAPSHOT_KEY = "current"


def _aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProgressSnapshotStore:
    """Save / load / clear the one progress snapshot."""

    def __init__(
        self,
        store: LocalStore,
        ttl: timedelta = timedelta(hours=SNAPSHOT_TTL_HOURS),
    ) -> None:
        self._store = store
        self._ttl = ttl

    def save(self, snapshot: ProgressSnapshot) -> None:
        """Overwrite the slot with ``snapshot``."""
        self._store.put_entry(
            SNAPSHOT_NAMESPACE, SNAPSHOT_KEY, snapshot.model_dump(mode="json")
        )

    def load(self, now: datetime | None = None) -> ProgressSnapshot | None:
        """Return the saved snapshot, or None if absent, corrupt or expired.

        Expired and unreadable snapshots are cleared as a side effect.
        """
        raw = self._store.get_entry(SNAPSHOT_NAMESPACE, SNAPSHOT_KEY)
        if raw is None:
            return None

        try:
            snapshot = ProgressSnapshot.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding unreadable progress snapshot")
            self.clear()
            return None

        now = now or datetime.now(timezone.utc)
        age = _aware(now) - _aware(snapshot.last_updated)
        if age > self._ttl:
            logger.info(
                "Discarding expired snapshot for session %s (age %s)",
                snapshot.session_id, age,
            )
            self.clear()
            return None
        return snapshot

    def clear(self) -> None:
        """Empty the slot."""
        self._store.delete_entry(SNAPSHOT_NAMESPACE, SNAPSHOT_KEY)
