import pytest

from survey_engine.local.store import LocalStore

from helpers.fakes import FakeClock


@pytest.fixture
def local_store(tmp_path):
    """Fresh SQLite-backed LocalStore in a per-test temp directory."""
    store = LocalStore(tmp_path / "local.db")
    yield store
    store.close()


@pytest.fixture
def clock():
    return FakeClock()
