"""Database settings tests — URL building and pool options from env mappings."""

import pytest
from sqlalchemy.engine import make_url

from survey_db.config import DatabaseSettings, get_async_url, load_db_settings
from survey_db.engine import build_engine


class TestLoadDbSettings:

    def test_defaults_from_parts(self):
        settings = load_db_settings({})
        url = make_url(settings.url)
        assert (url.username, url.host, url.port, url.database) == (
            "survey", "localhost", 5432, "survey",
        )
        assert (settings.pool_size, settings.max_overflow, settings.pool_recycle) == (5, 10, 1800)
        assert settings.echo is False

    def test_parts_are_escaped(self):
        settings = load_db_settings({"PG_USER": "app", "PG_PASSWORD": "p@ss/word", "PG_HOST": "db"})
        url = make_url(settings.async_url)
        assert url.password == "p@ss/word"
        assert url.host == "db"

    @pytest.mark.parametrize("raw", [
        "postgres://u:p@h:5433/d",
        "postgresql://u:p@h:5433/d",
        "postgresql+asyncpg://u:p@h:5433/d",
        "postgresql+psycopg2://u:p@h:5433/d",
    ])
    def test_database_url_scheme_is_normalized(self, raw):
        settings = load_db_settings({"DATABASE_URL": raw, "PG_HOST": "ignored"})
        assert settings.url == "postgresql://u:p@h:5433/d"
        assert settings.async_url == "postgresql+asyncpg://u:p@h:5433/d"
        assert settings.sync_url == "postgresql+psycopg2://u:p@h:5433/d"

    def test_non_postgres_url_rejected(self):
        with pytest.raises(ValueError, match="PostgreSQL"):
            load_db_settings({"DATABASE_URL": "sqlite:///survey.db"})

    def test_pool_and_echo_options(self):
        settings = load_db_settings({
            "PG_POOL_SIZE": "2",
            "PG_MAX_OVERFLOW": "0",
            "PG_POOL_RECYCLE": "60",
            "SURVEY_DB_ECHO": "true",
        })
        assert (settings.pool_size, settings.max_overflow, settings.pool_recycle) == (2, 0, 60)
        assert settings.echo is True

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@envhost/d")
        assert get_async_url() == "postgresql+asyncpg://u:p@envhost/d"


class TestBuildEngine:

    @pytest.mark.asyncio
    async def test_engine_uses_asyncpg_and_pool_settings(self):
        settings = DatabaseSettings(url="postgresql://u:p@h/d", pool_size=3, echo=True)
        engine = build_engine(settings)
        try:
            assert engine.url.drivername == "postgresql+asyncpg"
            assert engine.pool.size() == 3
            assert engine.echo is True
        finally:
            await engine.dispose()
