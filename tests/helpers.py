"""Shared test helpers for PersistableTimer."""

from datetime import datetime, timedelta, timezone

T0 = datetime(2026, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; call it for the current instant."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


def at(seconds: float) -> datetime:
    """Instant ``seconds`` after T0."""
    return T0 + timedelta(seconds=seconds)
