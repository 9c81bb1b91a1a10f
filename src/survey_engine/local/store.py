"""LocalStore — synchronous SQLAlchemy engine over a SQLite file.

Local writes must complete before any network attempt and must never be
awaited, so this store deliberately uses the synchronous ORM.  Each public
method opens its own short transaction and commits before returning: once
a call returns, the data is on disk.

Usage::

    store = LocalStore("survey_local.db")   # or ":memory:" in tests
    store.put_entry("progress", "current", {...})
    store.get_entry("progress", "current")
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from survey_engine.constants import LOCAL_DB_PATH
from survey_engine.local.models import LocalBase, LocalEntry

logger = logging.getLogger(__name__)


class LocalStore:
    """Owns the SQLite engine and the namespaced key/value helpers."""

    def __init__(self, path: str | Path | None = None) -> None:
        path = str(path) if path is not None else LOCAL_DB_PATH
        if path == ":memory:":
            # One shared connection, otherwise every checkout gets an empty DB
            self._engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self._engine = create_engine(f"sqlite:///{path}")
        LocalBase.metadata.create_all(self._engine)
        self._factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        logger.debug("LocalStore opened at %s", path)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield an ORM session; commit on success, rollback on error."""
        with self._factory() as db:
            try:
                yield db
                db.commit()
            except Exception:
                db.rollback()
                raise

    def close(self) -> None:
        """Dispose the engine's connection pool."""
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Namespaced key/value entries
    # ------------------------------------------------------------------

    def put_entry(self, namespace: str, key: str, payload: Any) -> None:
        """Insert or overwrite the entry at ``(namespace, key)``."""
        with self.session() as db:
            db.merge(LocalEntry(namespace=namespace, key=key, payload=payload))

    def get_entry(self, namespace: str, key: str) -> Any | None:
        """Return the payload at ``(namespace, key)``, or None."""
        with self.session() as db:
            row = db.get(LocalEntry, (namespace, key))
            return row.payload if row is not None else None

    def list_entries(self, namespace: str) -> dict[str, Any]:
        """Return every payload in ``namespace`` keyed by entry key."""
        with self.session() as db:
            rows = db.scalars(
                select(LocalEntry).where(LocalEntry.namespace == namespace)
            ).all()
            return {row.key: row.payload for row in rows}

    def delete_entry(self, namespace: str, key: str) -> None:
        """Remove the entry at ``(namespace, key)`` if present."""
        with self.session() as db:
            db.execute(
                delete(LocalEntry).where(
                    LocalEntry.namespace == namespace,
                    LocalEntry.key == key,
                )
            )
