"""Database connection and session management."""

import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session as OrmSession
from sqlalchemy.pool import StaticPool

from .models import Base

# ── paths ────────────────────────────────────────────────────────────────────

if sys.platform == "darwin":
    APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "PersistableTimer"
else:
    APP_SUPPORT_DIR = Path.home() / ".local" / "share" / "persistable-timer"
DB_PATH = APP_SUPPORT_DIR / "timers.db"

# ── default engine (created lazily) ───────────────────────────────────────

_engine = None


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_db_engine(url: str | None = None) -> Engine:
    """Build an engine for ``url`` (default: the SQLite file on disk).

    In-memory SQLite gets a single shared connection so every thread
    sees the same database.
    """
    if url is None:
        APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{DB_PATH}"

    kwargs: dict = {"echo": False}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_url(url):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def configure_engine(url: str) -> None:
    """Override the default database URL.  Used by tests to point at
    an in-memory SQLite database instead of the real one on disk."""
    global _engine
    _engine = create_db_engine(url)


def init_db(engine: Engine | None = None) -> None:
    """Create all tables.  Safe to run repeatedly."""
    Base.metadata.create_all(engine or get_engine())


def session_factory(engine: Engine | None = None) -> sessionmaker:
    return sessionmaker(bind=engine or get_engine(), expire_on_commit=False)


@contextmanager
def get_session(factory: sessionmaker | None = None):
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    session: OrmSession = (factory or session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
