"""Durable backend: one row per key in a SQLAlchemy-managed table."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..database.db import get_engine, get_session, init_db, session_factory
from ..database.models import Preference
from ..timer.exceptions import TimerStorageError

logger = logging.getLogger(__name__)


class SqlKeyValueStore:
    """Key/value store over any SQLAlchemy engine.

    Without an explicit engine the package default (see
    ``database.db.configure_engine``) is used.  Access is serialized so
    an in-memory SQLite connection can be shared across threads.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()
        self._factory = session_factory(self._engine)
        self._lock = threading.RLock()
        with self._guard("initialise", None):
            init_db(self._engine)

    @contextmanager
    def _guard(self, action: str, key: str | None):
        try:
            with self._lock:
                yield
        except SQLAlchemyError as exc:
            logger.error("Storage %s failed for %r: %s", action, key, exc)
            raise TimerStorageError(f"storage {action} failed: {exc}", key) from exc

    def read(self, key: str) -> bytes | None:
        with self._guard("read", key), get_session(self._factory) as db:
            row = db.get(Preference, key)
            return None if row is None else bytes(row.value)

    def write(self, key: str, value: bytes) -> None:
        with self._guard("write", key), get_session(self._factory) as db:
            row = db.get(Preference, key)
            if row is None:
                db.add(Preference(key=key, value=bytes(value)))
            else:
                row.value = bytes(value)

    def delete(self, key: str) -> None:
        with self._guard("delete", key), get_session(self._factory) as db:
            row = db.get(Preference, key)
            if row is not None:
                db.delete(row)

    def list_keys(self) -> list[str]:
        with self._guard("list", None), get_session(self._factory) as db:
            return list(db.scalars(select(Preference.key)))
