"""Timer record model and state computation.

A timer is never stored as a ticking counter.  The persisted
``TimerRecord`` only lists lifecycle events (start, pause boundaries,
stop) and ``compute_state`` rebuilds elapsed time and status from them
for any instant.

Statuses
--------
RUNNING    Started, not paused, not stopped.
PAUSED     The last pause period has not been resumed (as of the instant).
FINISHED   ``stopped_at`` is set.  Overrides the other two.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


# ── clock ─────────────────────────────────────────────────────────────────


def utc_now() -> datetime:
    """Default clock: timezone-aware current instant."""
    return datetime.now(timezone.utc)


# ── enums ─────────────────────────────────────────────────────────────────


class TimerStatus(Enum):
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


# ── timer kinds ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Stopwatch:
    """Counts up from the start instant."""


@dataclass(frozen=True)
class Countdown:
    """Counts down from ``duration`` seconds.  Overrun goes negative."""

    duration: float


TimerKind = Stopwatch | Countdown


# ── persisted record ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class PausePeriod:
    paused_at: datetime
    resumed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        """True while the pause has not been resumed."""
        return self.resumed_at is None


@dataclass(frozen=True)
class TimerRecord:
    """Everything persisted about one timer.

    ``pause_periods`` is ordered by ``paused_at`` and only the last
    period may be open.  There is no stored status field.
    """

    started_at: datetime
    kind: TimerKind
    pause_periods: tuple[PausePeriod, ...] = ()
    stopped_at: datetime | None = None

    @property
    def is_paused(self) -> bool:
        return bool(self.pause_periods) and self.pause_periods[-1].is_open

    @property
    def latest_boundary(self) -> datetime:
        """The latest instant the record mentions."""
        instants = [self.started_at]
        for period in self.pause_periods:
            instants.append(period.paused_at)
            if period.resumed_at is not None:
                instants.append(period.resumed_at)
        if self.stopped_at is not None:
            instants.append(self.stopped_at)
        return max(instants)

    def with_pause(self, now: datetime) -> TimerRecord:
        return replace(
            self, pause_periods=self.pause_periods + (PausePeriod(paused_at=now),)
        )

    def with_resume(self, now: datetime) -> TimerRecord:
        last = replace(self.pause_periods[-1], resumed_at=now)
        return replace(self, pause_periods=self.pause_periods[:-1] + (last,))

    def state(self, now: datetime) -> TimerState:
        return compute_state(self, now)


# ── derived state ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerState:
    """Snapshot of a timer at ``computed_at``.  Never persisted."""

    elapsed: float
    status: TimerStatus
    kind: TimerKind
    started_at: datetime
    computed_at: datetime
    pause_periods: tuple[PausePeriod, ...] = field(default=())

    @property
    def remaining(self) -> float | None:
        """Seconds left on a countdown (negative on overrun), else None."""
        if isinstance(self.kind, Countdown):
            return self.kind.duration - self.elapsed
        return None

    @property
    def display_time(self) -> float:
        """Elapsed seconds for a stopwatch, remaining seconds for a countdown."""
        remaining = self.remaining
        return self.elapsed if remaining is None else remaining


def compute_state(record: TimerRecord, now: datetime) -> TimerState:
    """Derive elapsed time and status of ``record`` as of ``now``.

    A stopped record is evaluated at ``stopped_at`` regardless of
    ``now``.  A pause resumed exactly at the end instant still counts
    as paused at that instant.
    """
    end = record.stopped_at if record.stopped_at is not None else now
    elapsed = (end - record.started_at).total_seconds()
    status = TimerStatus.RUNNING

    for period in record.pause_periods:
        if period.resumed_at is not None and period.resumed_at < end:
            elapsed -= (period.resumed_at - period.paused_at).total_seconds()
        else:
            elapsed -= (end - period.paused_at).total_seconds()
            status = TimerStatus.PAUSED
            break

    if record.stopped_at is not None:
        status = TimerStatus.FINISHED

    return TimerState(
        elapsed=max(elapsed, 0.0),
        status=status,
        kind=record.kind,
        started_at=record.started_at,
        computed_at=now,
        pause_periods=record.pause_periods,
    )
