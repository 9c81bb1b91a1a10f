"""Database settings for the survey tables.

The connection target comes from ``DATABASE_URL`` when set, otherwise from
the ``PG_HOST`` / ``PG_PORT`` / ``PG_USER`` / ``PG_PASSWORD`` /
``PG_DATABASE`` variables used by docker-compose.  Either way the stored URL
is driver-neutral; :meth:`DatabaseSettings.url_for` picks the driver, so the
API server gets asyncpg and Alembic gets psycopg2 from the same value.

Pool tuning: ``PG_POOL_SIZE``, ``PG_MAX_OVERFLOW``, ``PG_POOL_RECYCLE``
(seconds).  ``SURVEY_DB_ECHO=1`` logs every statement.
"""

import os
from dataclasses import dataclass
from typing import Mapping

from sqlalchemy.engine import URL, make_url

_POSTGRES_BACKENDS = {"postgres", "postgresql"}
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DatabaseSettings:
    """Immutable connection and pool settings."""

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle: int = 1800
    echo: bool = False

    def url_for(self, driver: str | None = None) -> str:
        """Render :attr:`url` with ``postgresql+<driver>`` as its scheme."""
        drivername = f"postgresql+{driver}" if driver else "postgresql"
        return make_url(self.url).set(drivername=drivername).render_as_string(
            hide_password=False
        )

    @property
    def sync_url(self) -> str:
        return self.url_for("psycopg2")

    @property
    def async_url(self) -> str:
        return self.url_for("asyncpg")


def _normalize_url(raw: str) -> str:
    """Strip any driver from a postgres URL; refuse other databases."""
    url = make_url(raw)
    if url.get_backend_name() not in _POSTGRES_BACKENDS:
        raise ValueError(f"DATABASE_URL must point at PostgreSQL, got {url.drivername!r}")
    return url.set(drivername="postgresql").render_as_string(hide_password=False)


def _url_from_parts(env: Mapping[str, str]) -> str:
    url = URL.create(
        "postgresql",
        username=env.get("PG_USER", "survey"),
        password=env.get("PG_PASSWORD", "survey"),
        host=env.get("PG_HOST", "localhost"),
        port=int(env.get("PG_PORT", "5432")),
        database=env.get("PG_DATABASE", "survey"),
    )
    return url.render_as_string(hide_password=False)


def load_db_settings(env: Mapping[str, str] | None = None) -> DatabaseSettings:
    """Build settings from ``env`` (``os.environ`` by default)."""
    env = os.environ if env is None else env
    raw_url = env.get("DATABASE_URL")
    return DatabaseSettings(
        url=_normalize_url(raw_url) if raw_url else _url_from_parts(env),
        pool_size=int(env.get("PG_POOL_SIZE", "5")),
        max_overflow=int(env.get("PG_MAX_OVERFLOW", "10")),
        pool_recycle=int(env.get("PG_POOL_RECYCLE", "1800")),
        echo=env.get("SURVEY_DB_ECHO", "").strip().lower() in _TRUTHY,
    )


def get_sync_url() -> str:
    """psycopg2 URL for Alembic."""
    return load_db_settings().sync_url


def get_async_url() -> str:
    """asyncpg URL for the server's engine."""
    return load_db_settings().async_url
