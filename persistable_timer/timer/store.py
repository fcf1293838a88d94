"""Per-key timer lifecycle on top of a key/value store.

Transitions (status is derived, never stored)
----------------------------------------------
ABSENT  → RUNNING    (start)
RUNNING → PAUSED     (pause)
PAUSED  → RUNNING    (resume)
RUNNING | PAUSED → FINISHED   (finish; the record is deleted)

Keys
----
The unkeyed timer lives under ``prefix``; a timer with id ``x`` under
``prefix + "_" + x``.  ``finish_all`` only touches keys in that
namespace.
"""

from __future__ import annotations

import logging
import threading
import weakref
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable

from .codec import decode_record, encode_record
from .exceptions import (
    InvalidTimerTypeError,
    PersistableTimerError,
    TimerAlreadyPausedError,
    TimerAlreadyStartedError,
    TimerNotPausedError,
    TimerNotStartedError,
)
from .model import Countdown, Stopwatch, TimerKind, TimerRecord, utc_now

if TYPE_CHECKING:
    from ..storage.base import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "persistableTimerKey"
DEFAULT_FINISH_ALL_WORKERS = 8


class TimerStore:
    """Validates transitions per timer and persists each result.

    Every operation is a single read-modify-write under a lock for its
    key, so callers sharing one ``TimerStore`` cannot interleave on the
    same timer.  Separate instances or processes are not coordinated.
    An instant earlier than the record's latest boundary (a clock
    stepping back) is clamped to that boundary.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        clock: Callable[[], datetime] = utc_now,
        max_workers: int = DEFAULT_FINISH_ALL_WORKERS,
    ) -> None:
        self._backend = backend
        self._prefix = key_prefix
        self.clock = clock
        self._max_workers = max(1, max_workers)
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    # ══════════════════════════════════════════════════════════════════
    #  KEY NAMESPACE
    # ══════════════════════════════════════════════════════════════════

    @property
    def key_prefix(self) -> str:
        return self._prefix

    def storage_key(self, timer_id: str | None = None) -> str:
        if timer_id is None:
            return self._prefix
        return f"{self._prefix}_{timer_id}"

    def owns_key(self, key: str) -> bool:
        return key == self._prefix or key.startswith(self._prefix + "_")

    def timer_id_for(self, key: str) -> str | None:
        """Inverse of ``storage_key``.  None is the unkeyed timer."""
        if not self.owns_key(key):
            raise ValueError(f"{key!r} is not a timer record key")
        if key == self._prefix:
            return None
        return key[len(self._prefix) + 1:]

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    # ══════════════════════════════════════════════════════════════════
    #  READS
    # ══════════════════════════════════════════════════════════════════

    def _not_before_record(self, key: str, record: TimerRecord, now: datetime) -> datetime:
        """Clamp ``now`` so boundaries never run backwards."""
        latest = record.latest_boundary
        if now < latest:
            logger.warning(
                "Clock for %r is behind the record (%s < %s); clamping", key, now, latest
            )
            return latest
        return now

    def _load(self, key: str) -> TimerRecord:
        payload = self._backend.read(key)
        if payload is None:
            raise TimerNotStartedError("timer has not started", key)
        return decode_record(payload, key)

    def get(self, timer_id: str | None = None) -> TimerRecord:
        return self._load(self.storage_key(timer_id))

    def is_running(self, timer_id: str | None = None) -> bool:
        """True while a record exists, paused or not."""
        return self._backend.read(self.storage_key(timer_id)) is not None

    # ══════════════════════════════════════════════════════════════════
    #  LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def _update(
        self, timer_id: str | None, change: Callable[[str, TimerRecord], TimerRecord]
    ) -> TimerRecord:
        key = self.storage_key(timer_id)
        with self._lock_for(key):
            record = change(key, self._load(key))
            self._backend.write(key, encode_record(record))
        return record

    def start(
        self,
        kind: TimerKind,
        *,
        timer_id: str | None = None,
        now: datetime | None = None,
        force_start: bool = False,
    ) -> TimerRecord:
        """Persist a fresh record.  ``force_start`` overwrites a live one."""
        key = self.storage_key(timer_id)
        now = now or self.clock()
        with self._lock_for(key):
            if not force_start and self._backend.read(key) is not None:
                raise TimerAlreadyStartedError("timer has already started", key)
            record = TimerRecord(started_at=now, kind=kind)
            self._backend.write(key, encode_record(record))
        logger.debug("Started %r as %s (forced=%s)", key, kind, force_start)
        return record

    def pause(self, timer_id: str | None = None, now: datetime | None = None) -> TimerRecord:
        now = now or self.clock()

        def change(key: str, record: TimerRecord) -> TimerRecord:
            if record.is_paused:
                raise TimerAlreadyPausedError("timer is already paused", key)
            return record.with_pause(self._not_before_record(key, record, now))

        record = self._update(timer_id, change)
        logger.debug("Paused %r", self.storage_key(timer_id))
        return record

    def resume(self, timer_id: str | None = None, now: datetime | None = None) -> TimerRecord:
        now = now or self.clock()

        def change(key: str, record: TimerRecord) -> TimerRecord:
            if not record.is_paused:
                raise TimerNotPausedError("timer is not paused", key)
            return record.with_resume(self._not_before_record(key, record, now))

        record = self._update(timer_id, change)
        logger.debug("Resumed %r", self.storage_key(timer_id))
        return record

    def finish(self, timer_id: str | None = None, now: datetime | None = None) -> TimerRecord:
        """Delete the record and return it stamped with ``stopped_at``.

        An open pause stays open in the snapshot, so a timer finished
        while paused reports the elapsed time it had when paused.
        """
        key = self.storage_key(timer_id)
        now = now or self.clock()
        with self._lock_for(key):
            record = self._load(key)
            record = replace(record, stopped_at=self._not_before_record(key, record, now))
            self._backend.delete(key)
        logger.debug("Finished %r", key)
        return record

    def finish_all(self, now: datetime | None = None) -> dict[str | None, TimerRecord]:
        """Finish every persisted timer concurrently.

        Returns ``{timer_id: final record}`` with the unkeyed timer under
        ``None``.  If any finish fails the first failure is raised once
        all have completed; timers already finished stay finished.
        """
        now = now or self.clock()
        timer_ids = [
            self.timer_id_for(key) for key in self._backend.list_keys() if self.owns_key(key)
        ]
        logger.info("Finishing %d timer(s)", len(timer_ids))
        if not timer_ids:
            return {}

        workers = min(self._max_workers, len(timer_ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                (timer_id, executor.submit(self.finish, timer_id, now))
                for timer_id in timer_ids
            ]

        results: dict[str | None, TimerRecord] = {}
        first_error: PersistableTimerError | None = None
        for timer_id, future in futures:
            try:
                results[timer_id] = future.result()
            except PersistableTimerError as exc:
                logger.warning("Could not finish timer %r: %s", timer_id, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
        return results

    # ══════════════════════════════════════════════════════════════════
    #  ADJUSTMENTS
    # ══════════════════════════════════════════════════════════════════

    def add_remaining_time(self, extra: float, timer_id: str | None = None) -> TimerRecord:
        """Lengthen a countdown by ``extra`` seconds."""

        def change(key: str, record: TimerRecord) -> TimerRecord:
            if not isinstance(record.kind, Countdown):
                raise InvalidTimerTypeError(
                    "remaining time applies to countdowns only", key, record.kind
                )
            return replace(record, kind=Countdown(duration=record.kind.duration + extra))

        return self._update(timer_id, change)

    def add_elapsed_time(self, extra: float, timer_id: str | None = None) -> TimerRecord:
        """Move a stopwatch's origin ``extra`` seconds earlier."""

        def change(key: str, record: TimerRecord) -> TimerRecord:
            if not isinstance(record.kind, Stopwatch):
                raise InvalidTimerTypeError(
                    "elapsed time applies to stopwatches only", key, record.kind
                )
            return replace(record, started_at=record.started_at - timedelta(seconds=extra))

        return self._update(timer_id, change)
