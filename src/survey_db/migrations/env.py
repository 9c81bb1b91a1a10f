"""Alembic environment for the survey tables.

Migrations run synchronously over psycopg2.  The target database is the
one :func:`survey_db.config.get_sync_url` describes unless overridden on
the command line with ``alembic -x db_url=postgresql://... upgrade head``.

Revisions are tracked in ``survey_alembic_version`` so the survey schema
can share a database with other Alembic-managed applications.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from survey_db.config import get_sync_url
from survey_db.models.base import Base

import survey_db.models  # noqa: F401  (registers tables on Base.metadata)

VERSION_TABLE = "survey_alembic_version"

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("db_url") or get_sync_url()


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        version_table=VERSION_TABLE,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    _configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
