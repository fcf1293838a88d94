"""Tests for LiveSession: publishing, ticking and stream lifecycle."""

import pytest

from persistable_timer.settings import Settings
from persistable_timer.storage import InMemoryKeyValueStore
from persistable_timer.timer.exceptions import (
    StreamDisabledError,
    TimerAlreadyStartedError,
    TimerNotStartedError,
)
from persistable_timer.timer.model import Countdown, Stopwatch, TimerStatus
from persistable_timer.timer.session import LiveSession
from persistable_timer.timer.ticks import ManualTickSource

from helpers import SignalCollector, T0, at


@pytest.fixture
def states(session):
    c = SignalCollector()
    session.state_stream.connect(c)
    return c


@pytest.fixture
def closed(session):
    c = SignalCollector()
    session.stream_closed.connect(c)
    return c


# ═══════════════════════════════════════════════════════════════════════════
#  LIFECYCLE PUBLISHING
# ═══════════════════════════════════════════════════════════════════════════


class TestPublishing:

    def test_start_publishes_and_ticks(self, session, states, ticks):
        record = session.start(Stopwatch())
        assert record.started_at == T0
        assert states.last.status == TimerStatus.RUNNING
        assert states.last.elapsed == 0
        assert session.is_ticking
        assert ticks.active_count == 1
        assert ticks.intervals == [1.0]

    def test_tick_recomputes(self, session, states, ticks, clock):
        session.start(Stopwatch())
        clock.advance(2)
        ticks.tick()
        assert states.last.elapsed == pytest.approx(2)
        assert states.last.computed_at == at(2)

    def test_pause_publishes_and_stops_ticking(self, session, states, ticks, clock, closed):
        session.start(Stopwatch())
        clock.advance(1)
        session.pause()
        assert states.last.status == TimerStatus.PAUSED
        assert not session.is_ticking
        assert ticks.active_count == 0
        assert len(closed) == 0

    def test_resume_restarts_ticking(self, session, states, ticks, clock):
        session.start(Stopwatch())
        clock.advance(1)
        session.pause()
        clock.advance(5)
        session.resume()
        assert ticks.active_count == 1
        clock.advance(1)
        ticks.tick()
        assert states.last.status == TimerStatus.RUNNING
        assert states.last.elapsed == pytest.approx(2)

    def test_failed_operation_publishes_nothing(self, session, states):
        session.start(Stopwatch())
        count = len(states)
        with pytest.raises(TimerAlreadyStartedError):
            session.start(Stopwatch())
        assert len(states) == count

    def test_add_elapsed_time(self, session, states, clock):
        session.start(Stopwatch())
        session.add_elapsed_time(5)
        assert states.last.elapsed == pytest.approx(5)
        clock.advance(3)
        assert session.current_state().elapsed == pytest.approx(8)

    def test_add_remaining_time(self, session, states, clock):
        session.start(Countdown(duration=10))
        clock.advance(4)
        session.add_remaining_time(20)
        assert states.last.remaining == pytest.approx(26)


# ═══════════════════════════════════════════════════════════════════════════
#  FINISH / INVALIDATE
# ═══════════════════════════════════════════════════════════════════════════


class TestFinish:

    def test_finish_publishes_final_state_and_closes(self, session, states, closed, ticks, clock):
        session.start(Countdown(duration=10))
        clock.advance(2)
        record = session.finish()
        assert record.stopped_at == at(2)
        assert states.last.status == TimerStatus.FINISHED
        assert states.last.remaining == pytest.approx(8)
        assert len(closed) == 1
        assert ticks.active_count == 0
        assert not session.is_running()

    def test_finish_with_reset_elapsed(self, session, states, clock):
        session.start(Stopwatch())
        clock.advance(9)
        record = session.finish(reset_elapsed=True)
        assert states.last.elapsed == 0
        assert states.last.status == TimerStatus.FINISHED
        assert record.state(at(9)).elapsed == pytest.approx(9)

    def test_failed_finish_still_tears_down(self, session, closed, ticks, store):
        session.start(Stopwatch())
        store.finish()  # finished behind the session's back
        with pytest.raises(TimerNotStartedError):
            session.finish()
        assert len(closed) == 1
        assert ticks.active_count == 0
        assert not session.is_ticking

    def test_no_emission_after_close(self, session, states, ticks):
        session.start(Stopwatch())
        session.finish()
        count = len(states)
        ticks.tick(3)
        assert len(states) == count

    def test_invalidate_is_idempotent(self, session, closed, ticks):
        session.start(Stopwatch())
        session.invalidate()
        session.invalidate()
        assert len(closed) == 1
        assert ticks.active_count == 0

    def test_invalidate_during_tick_closes_once(self, session, closed, ticks):
        session.start(Stopwatch())
        session.state_updated.connect(lambda _state: session.invalidate())
        ticks.tick()
        session.invalidate()
        assert len(closed) == 1

    def test_start_after_finish_opens_new_stream(self, session, states, closed, ticks):
        session.start(Stopwatch())
        session.finish()
        session.start(Stopwatch())
        assert states.last.status == TimerStatus.RUNNING
        assert ticks.active_count == 1
        session.finish()
        assert len(closed) == 2


# ═══════════════════════════════════════════════════════════════════════════
#  TICKS AND CACHE
# ═══════════════════════════════════════════════════════════════════════════


class TestTicks:

    def test_tick_without_cache_reads_store(self, qapp, store, ticks, clock):
        store.start(Stopwatch(), timer_id="tea")
        session = LiveSession(store, timer_id="tea", tick_source=ticks)
        c = SignalCollector()
        session.state_updated.connect(c)
        session._start_ticking()
        clock.advance(3)
        ticks.tick()
        assert c.last.elapsed == pytest.approx(3)

    def test_tick_with_vanished_record_stops_ticking(self, qapp, store, ticks):
        session = LiveSession(store, tick_source=ticks)
        session._start_ticking()
        ticks.tick()
        assert ticks.active_count == 0
        assert not session.is_ticking

    def test_restarting_ticks_replaces_subscription(self, session, ticks):
        session.start(Stopwatch())
        session.add_elapsed_time(1)
        session.pause()
        session.resume()
        assert ticks.active_count == 1

    def test_custom_update_interval(self, qapp, store, ticks):
        session = LiveSession(store, tick_source=ticks, update_interval=0.25)
        session.start(Stopwatch())
        assert ticks.intervals == [0.25]


# ═══════════════════════════════════════════════════════════════════════════
#  RESTORE
# ═══════════════════════════════════════════════════════════════════════════


class TestRestore:

    def test_restore_running_timer(self, qapp, backend, clock):
        from persistable_timer.timer.store import TimerStore

        TimerStore(backend, clock=clock).start(Stopwatch(), timer_id="run")
        clock.advance(30)

        ticks = ManualTickSource()
        session = LiveSession(TimerStore(backend, clock=clock), timer_id="run", tick_source=ticks)
        c = SignalCollector()
        session.state_updated.connect(c)
        session.restore()
        assert c.last.elapsed == pytest.approx(30)
        assert ticks.active_count == 1

    def test_restore_paused_timer_does_not_tick(self, session, store, states, ticks):
        store.start(Stopwatch())
        store.pause()
        session.restore()
        assert states.last.status == TimerStatus.PAUSED
        assert ticks.active_count == 0

    def test_restore_missing_raises(self, session):
        with pytest.raises(TimerNotStartedError):
            session.restore()


# ═══════════════════════════════════════════════════════════════════════════
#  PUBLISHING DISABLED
# ═══════════════════════════════════════════════════════════════════════════


class TestSilentSession:

    def test_reading_stream_is_a_programming_error(self, silent_session):
        with pytest.raises(StreamDisabledError):
            silent_session.state_stream

    def test_operations_still_persist(self, silent_session, store, ticks):
        silent_session.start(Countdown(duration=5))
        silent_session.pause()
        silent_session.resume()
        assert store.is_running()
        assert ticks.active_count == 0
        silent_session.finish()
        assert not store.is_running()

    def test_nothing_is_emitted(self, silent_session):
        c = SignalCollector()
        silent_session.state_updated.connect(c)
        silent_session.stream_closed.connect(c)
        silent_session.start(Stopwatch())
        silent_session.finish()
        assert len(c) == 0


class TestFromSettings:

    def test_wires_store_and_options(self, qapp):
        settings = Settings(
            storage="memory", update_interval=0.5, emit_states=False, key_prefix="k"
        )
        ticks = ManualTickSource()
        session = LiveSession.from_settings(settings, timer_id="x", tick_source=ticks)
        assert isinstance(session.store._backend, InMemoryKeyValueStore)
        assert session.store.key_prefix == "k"
        assert session.update_interval == 0.5
        assert session.emit_states is False
        session.start(Stopwatch())
        assert session.store.storage_key("x") in session.store._backend.list_keys()


class TestFinishAll:

    def test_finishes_own_timer_and_closes(self, session, store, states, closed, clock):
        session.start(Stopwatch())
        store.start(Countdown(duration=60), timer_id="other")
        clock.advance(5)
        results = session.finish_all()
        assert set(results) == {None, "other"}
        assert states.last.status == TimerStatus.FINISHED
        assert states.last.elapsed == pytest.approx(5)
        assert len(closed) == 1

    def test_other_timers_leave_session_open(self, qapp, store, ticks):
        session = LiveSession(store, timer_id="mine", tick_source=ticks)
        c = SignalCollector()
        session.stream_closed.connect(c)
        store.start(Stopwatch(), timer_id="theirs")
        assert set(session.finish_all()) == {"theirs"}
        assert len(c) == 0

    def test_timer_finished_elsewhere_stops_publishing(self, qapp, store, ticks, clock):
        first = LiveSession(store, timer_id="a", tick_source=ticks)
        second = LiveSession(store, timer_id="b", tick_source=ManualTickSource())
        c = SignalCollector()
        first.state_updated.connect(c)
        first.start(Stopwatch())
        second.start(Stopwatch())

        second.finish_all()
        count = len(c)
        clock.advance(5)
        ticks.tick()

        assert len(c) == count
        assert not first.is_ticking
        assert ticks.active_count == 0
        assert not store.is_running("a")
