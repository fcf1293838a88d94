"""Live view of one persisted timer.

A ``LiveSession`` forwards lifecycle calls to a ``TimerStore`` for one
key and republishes the computed ``TimerState`` on every tick while the
timer runs.

Signals
-------
state_updated(state: TimerState)
    Emitted after every lifecycle call and on every tick.
stream_closed()
    Emitted once when the session is finished or invalidated.  A later
    ``start`` opens a new stream on the same signal.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from PyQt6.QtCore import QObject, pyqtSignal

from .exceptions import StreamDisabledError, TimerNotStartedError
from .model import TimerKind, TimerRecord, TimerState, TimerStatus, compute_state
from .store import TimerStore
from .ticks import QtTickSource, TickSource, TickSubscription

if TYPE_CHECKING:
    from ..settings import Settings

logger = logging.getLogger(__name__)


class LiveSession(QObject):

    state_updated = pyqtSignal(object)
    stream_closed = pyqtSignal()

    def __init__(
        self,
        store: TimerStore,
        *,
        timer_id: str | None = None,
        tick_source: TickSource | None = None,
        update_interval: float = 1.0,
        emit_states: bool = True,
        clock: Callable[[], datetime] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)

        self._store = store
        self.timer_id = timer_id
        self.update_interval = update_interval
        self._emit_states = emit_states
        self._clock = clock or store.clock
        self._tick_source: TickSource = tick_source or QtTickSource(self)

        # ── transient state ───────────────────────────────────────────
        self._record: TimerRecord | None = None
        self._subscription: TickSubscription | None = None
        self._stream_closed = False
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls, settings: Settings, *, timer_id: str | None = None, **kwargs
    ) -> LiveSession:
        """Wire a session (and its store) from a ``Settings`` object."""
        from ..storage.base import open_store

        store = TimerStore(
            open_store(settings),
            key_prefix=settings.key_prefix,
            max_workers=settings.finish_all_workers,
        )
        return cls(
            store,
            timer_id=timer_id,
            update_interval=settings.update_interval,
            emit_states=settings.emit_states,
            **kwargs,
        )

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def store(self) -> TimerStore:
        return self._store

    @property
    def emit_states(self) -> bool:
        return self._emit_states

    @property
    def state_stream(self):
        """The ``state_updated`` signal.  Only valid when publishing."""
        if not self._emit_states:
            raise StreamDisabledError(
                "state_stream read on a session created with emit_states=False"
            )
        return self.state_updated

    @property
    def is_ticking(self) -> bool:
        return self._subscription is not None

    def get_record(self) -> TimerRecord:
        return self._store.get(self.timer_id)

    def is_running(self) -> bool:
        return self._store.is_running(self.timer_id)

    def current_state(self) -> TimerState:
        """Compute the state now, from the cache or the store."""
        record = self._record or self._store.get(self.timer_id)
        return compute_state(record, self._clock())

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def restore(self) -> TimerRecord:
        """Pick up a persisted timer, e.g. after a restart."""
        now = self._clock()
        record = self._store.get(self.timer_id)
        self._reopen_stream()
        self._record = record
        state = compute_state(record, now)
        self._publish(state)
        if state.status == TimerStatus.RUNNING:
            self._start_ticking()
        return record

    def start(self, kind: TimerKind, force_start: bool = False) -> TimerRecord:
        now = self._clock()
        record = self._store.start(
            kind, timer_id=self.timer_id, now=now, force_start=force_start
        )
        self._reopen_stream()
        self._apply(record, now)
        self._start_ticking()
        return record

    def pause(self) -> TimerRecord:
        """Pause and stop ticking; the stream stays open."""
        now = self._clock()
        record = self._store.pause(self.timer_id, now)
        self._apply(record, now)
        self._teardown(close_stream=False)
        return record

    def resume(self) -> TimerRecord:
        now = self._clock()
        record = self._store.resume(self.timer_id, now)
        self._apply(record, now)
        self._start_ticking()
        return record

    def finish(self, reset_elapsed: bool = False) -> TimerRecord:
        """Finish the timer and close the stream, even on failure.

        ``reset_elapsed`` publishes a final state with zero elapsed time;
        the returned record is unaffected.
        """
        try:
            now = self._clock()
            record = self._store.finish(self.timer_id, now)
            self._record = record
            state = compute_state(record, now)
            if reset_elapsed:
                state = replace(state, elapsed=0.0)
            self._publish(state)
        finally:
            self._teardown(close_stream=True)
        return record

    def finish_all(self) -> dict[str | None, TimerRecord]:
        """Finish every timer in the store.  Closes this session's stream
        when its own timer was among them."""
        now = self._clock()
        results = self._store.finish_all(now)
        if self.timer_id in results:
            self._apply(results[self.timer_id], now)
            self._teardown(close_stream=True)
        return results

    def add_remaining_time(self, extra: float) -> TimerRecord:
        now = self._clock()
        record = self._store.add_remaining_time(extra, self.timer_id)
        self._apply(record, now)
        return record

    def add_elapsed_time(self, extra: float) -> TimerRecord:
        now = self._clock()
        record = self._store.add_elapsed_time(extra, self.timer_id)
        self._apply(record, now)
        return record

    def invalidate(self) -> None:
        """Stop ticking and close the stream.  Idempotent."""
        self._teardown(close_stream=True)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _apply(self, record: TimerRecord, now: datetime) -> None:
        self._record = record
        self._publish(compute_state(record, now))

    def _reopen_stream(self) -> None:
        with self._lock:
            self._stream_closed = False

    def _publish(self, state: TimerState) -> None:
        if self._emit_states and not self._stream_closed:
            self.state_updated.emit(state)

    def _start_ticking(self) -> None:
        if not self._emit_states:
            return
        subscription = self._tick_source.subscribe(self.update_interval, self._on_tick)
        with self._lock:
            previous, self._subscription = self._subscription, subscription
        if previous is not None:
            previous.cancel()

    def _teardown(self, close_stream: bool) -> None:
        with self._lock:
            subscription, self._subscription = self._subscription, None
            close = close_stream and self._emit_states and not self._stream_closed
            if close:
                self._stream_closed = True
        if subscription is not None:
            subscription.cancel()
        if close:
            logger.debug("Closing state stream for timer %r", self.timer_id)
            self.stream_closed.emit()

    def _on_tick(self) -> None:
        if self._subscription is None:
            return
        record = self._record
        # the cache is only trusted while the key still exists
        if record is None or not self._store.is_running(self.timer_id):
            try:
                record = self._store.get(self.timer_id)
            except TimerNotStartedError:
                logger.debug("Timer %r vanished; stopping ticks", self.timer_id)
                self._record = None
                self._teardown(close_stream=False)
                return
            self._record = record
        self._publish(compute_state(record, self._clock()))
