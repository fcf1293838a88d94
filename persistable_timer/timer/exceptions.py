"""Errors raised by timer lifecycle operations and storage."""

from __future__ import annotations


class PersistableTimerError(Exception):
    """Base class.  ``key`` is the storage key involved, when known."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, key={self.key!r})"


class TimerNotStartedError(PersistableTimerError):
    pass


class TimerAlreadyStartedError(PersistableTimerError):
    pass


class TimerAlreadyPausedError(PersistableTimerError):
    pass


class TimerNotPausedError(PersistableTimerError):
    pass


class InvalidTimerTypeError(PersistableTimerError):
    """A duration or elapsed adjustment was applied to the wrong kind."""

    def __init__(self, message: str, key: str | None = None, kind=None) -> None:
        super().__init__(message, key)
        self.kind = kind


class TimerStorageError(PersistableTimerError):
    """Encoding, decoding or backend failure.  The cause is chained."""


class StreamDisabledError(RuntimeError):
    """The state stream was read on a session that does not publish."""
