"""Key/value storage backends."""

from .base import KeyValueStore, open_store
from .memory import InMemoryKeyValueStore
from .sql import SqlKeyValueStore

__all__ = ["KeyValueStore", "open_store", "InMemoryKeyValueStore", "SqlKeyValueStore"]
