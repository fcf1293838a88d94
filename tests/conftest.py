"""Shared pytest fixtures for PersistableTimer tests."""

import sys
import pytest

from PyQt6.QtCore import QCoreApplication

from persistable_timer.database.db import configure_engine, create_db_engine
from persistable_timer.storage import InMemoryKeyValueStore, SqlKeyValueStore
from persistable_timer.timer import LiveSession, ManualTickSource, TimerStore

from helpers import FakeClock


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point the default engine at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_backend():
    return InMemoryKeyValueStore()


@pytest.fixture
def sql_backend(tmp_path):
    """Durable backend on a throwaway SQLite file."""
    return SqlKeyValueStore(create_db_engine(f"sqlite:///{tmp_path / 'timers.db'}"))


@pytest.fixture(params=["memory", "sql"])
def backend(request):
    """Each backend in turn; both must behave identically."""
    return request.getfixturevalue(f"{request.param}_backend")


@pytest.fixture
def store(backend, clock):
    return TimerStore(backend, clock=clock)


@pytest.fixture
def ticks():
    return ManualTickSource()


@pytest.fixture
def session(qapp, store, ticks):
    """LiveSession for the unkeyed timer, ticking manually."""
    return LiveSession(store, tick_source=ticks)


@pytest.fixture
def silent_session(qapp, store, ticks):
    """LiveSession with publishing disabled."""
    return LiveSession(store, tick_source=ticks, emit_states=False)
