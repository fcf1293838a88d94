"""Timers (stopwatches and countdowns) whose state survives restarts."""

from .settings import Settings, load_settings, save_settings
from .storage import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore, open_store
from .timer import (
    Countdown,
    LiveSession,
    ManualTickSource,
    PausePeriod,
    PersistableTimerError,
    QtTickSource,
    Stopwatch,
    TimerRecord,
    TimerState,
    TimerStatus,
    TimerStore,
    compute_state,
)

__all__ = [
    "Settings",
    "load_settings",
    "save_settings",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqlKeyValueStore",
    "open_store",
    "Countdown",
    "LiveSession",
    "ManualTickSource",
    "PausePeriod",
    "PersistableTimerError",
    "QtTickSource",
    "Stopwatch",
    "TimerRecord",
    "TimerState",
    "TimerStatus",
    "TimerStore",
    "compute_state",
]
