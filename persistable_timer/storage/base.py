"""The key/value capability the timer store persists through."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..settings import Settings


@runtime_checkable
class KeyValueStore(Protocol):
    """Opaque bytes keyed by string.

    ``write`` raises ``TimerStorageError`` on failure.  ``list_keys``
    returns every key currently stored, timer records or not.
    """

    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def list_keys(self) -> list[str]: ...


def open_store(settings: Settings) -> KeyValueStore:
    """Build the backend selected by ``settings.storage``."""
    if settings.storage == "memory":
        from .memory import InMemoryKeyValueStore

        return InMemoryKeyValueStore()
    if settings.storage == "sql":
        from ..database.db import create_db_engine
        from .sql import SqlKeyValueStore

        return SqlKeyValueStore(create_db_engine(settings.database_url))
    raise ValueError(f"unknown storage backend {settings.storage!r}")
