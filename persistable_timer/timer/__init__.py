"""Timer package."""

from .exceptions import (
    PersistableTimerError,
    TimerNotStartedError,
    TimerAlreadyStartedError,
    TimerAlreadyPausedError,
    TimerNotPausedError,
    InvalidTimerTypeError,
    TimerStorageError,
    StreamDisabledError,
)
from .model import (
    Countdown,
    PausePeriod,
    Stopwatch,
    TimerKind,
    TimerRecord,
    TimerState,
    TimerStatus,
    compute_state,
    utc_now,
)
from .codec import decode_record, encode_record
from .store import DEFAULT_KEY_PREFIX, TimerStore
from .ticks import ManualTickSource, QtTickSource, TickSource
from .session import LiveSession

__all__ = [
    "PersistableTimerError",
    "TimerNotStartedError",
    "TimerAlreadyStartedError",
    "TimerAlreadyPausedError",
    "TimerNotPausedError",
    "InvalidTimerTypeError",
    "TimerStorageError",
    "StreamDisabledError",
    "Countdown",
    "PausePeriod",
    "Stopwatch",
    "TimerKind",
    "TimerRecord",
    "TimerState",
    "TimerStatus",
    "compute_state",
    "utc_now",
    "decode_record",
    "encode_record",
    "DEFAULT_KEY_PREFIX",
    "TimerStore",
    "ManualTickSource",
    "QtTickSource",
    "TickSource",
    "LiveSession",
]
