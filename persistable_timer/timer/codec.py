"""JSON codec for ``TimerRecord``.

Instants are ISO-8601 strings, durations float seconds.  Decoding
ignores fields it does not know about.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from .exceptions import TimerStorageError
from .model import Countdown, PausePeriod, Stopwatch, TimerKind, TimerRecord

logger = logging.getLogger(__name__)


def _instant(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _kind_to_dict(kind: TimerKind) -> dict:
    if isinstance(kind, Countdown):
        return {"type": "countdown", "duration": float(kind.duration)}
    return {"type": "stopwatch"}


def _kind_from_dict(data: dict) -> TimerKind:
    kind_type = data["type"]
    if kind_type == "countdown":
        return Countdown(duration=float(data["duration"]))
    if kind_type == "stopwatch":
        return Stopwatch()
    raise ValueError(f"unknown timer kind {kind_type!r}")


def record_to_dict(record: TimerRecord) -> dict:
    return {
        "startedAt": record.started_at.isoformat(),
        "pausePeriods": [
            {
                "pausedAt": p.paused_at.isoformat(),
                "resumedAt": None if p.resumed_at is None else p.resumed_at.isoformat(),
            }
            for p in record.pause_periods
        ],
        "kind": _kind_to_dict(record.kind),
        "stoppedAt": None if record.stopped_at is None else record.stopped_at.isoformat(),
    }


def record_from_dict(data: dict) -> TimerRecord:
    return TimerRecord(
        started_at=datetime.fromisoformat(data["startedAt"]),
        kind=_kind_from_dict(data["kind"]),
        pause_periods=tuple(
            PausePeriod(
                paused_at=datetime.fromisoformat(p["pausedAt"]),
                resumed_at=_instant(p.get("resumedAt")),
            )
            for p in data.get("pausePeriods", [])
        ),
        stopped_at=_instant(data.get("stoppedAt")),
    )


def encode_record(record: TimerRecord) -> bytes:
    try:
        return json.dumps(record_to_dict(record)).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise TimerStorageError(f"cannot encode timer record: {exc}") from exc


def decode_record(payload: bytes, key: str | None = None) -> TimerRecord:
    try:
        return record_from_dict(json.loads(payload.decode("utf-8")))
    except (UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.error("Undecodable timer record under %r: %s", key, exc)
        raise TimerStorageError(f"cannot decode timer record: {exc}", key) from exc
