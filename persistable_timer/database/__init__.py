"""Database package."""

from .db import configure_engine, create_db_engine, get_engine, get_session, init_db
from .models import Base, Preference

__all__ = [
    "configure_engine",
    "create_db_engine",
    "get_engine",
    "get_session",
    "init_db",
    "Base",
    "Preference",
]
