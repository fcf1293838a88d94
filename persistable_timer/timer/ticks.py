"""Tick sources: "call me every ``interval`` seconds until cancelled".

Ticks only trigger recomputation; they never touch persisted state.
"""

from __future__ import annotations

from typing import Callable, Protocol

from PyQt6.QtCore import QObject, QTimer


class TickSubscription(Protocol):
    def cancel(self) -> None: ...


class TickSource(Protocol):
    def subscribe(self, interval: float, callback: Callable[[], None]) -> TickSubscription: ...


# ── Qt event loop ─────────────────────────────────────────────────────────


class _QtTickSubscription:
    def __init__(self, timer: QTimer) -> None:
        self._timer: QTimer | None = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.stop()
        timer.timeout.disconnect()
        timer.deleteLater()


class QtTickSource:
    """Ticks from a ``QTimer`` on the calling thread's event loop."""

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent

    def subscribe(self, interval: float, callback: Callable[[], None]) -> _QtTickSubscription:
        timer = QTimer(self._parent)
        timer.setInterval(max(1, round(interval * 1000)))
        timer.timeout.connect(callback)
        timer.start()
        return _QtTickSubscription(timer)


# ── manual (tests, previews) ──────────────────────────────────────────────


class _ManualTickSubscription:
    def __init__(self, source: ManualTickSource, callback: Callable[[], None]) -> None:
        self._source = source
        self.callback = callback

    def cancel(self) -> None:
        self._source._subscriptions = [
            s for s in self._source._subscriptions if s is not self
        ]


class ManualTickSource:
    """Ticks only when ``tick()`` is called."""

    def __init__(self) -> None:
        self._subscriptions: list[_ManualTickSubscription] = []
        self.intervals: list[float] = []

    @property
    def active_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, interval: float, callback: Callable[[], None]) -> _ManualTickSubscription:
        subscription = _ManualTickSubscription(self, callback)
        self._subscriptions.append(subscription)
        self.intervals.append(interval)
        return subscription

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            for subscription in list(self._subscriptions):
                subscription.callback()
