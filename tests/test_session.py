"""Tests for the session host."""

import random
from unittest.mock import Mock

import pytest

from curbside.simulation import SPEED_VALUES, Session
from curbside.state import EventKind, EventType
from curbside.state.tuning import EventScheduleTuning, SessionTuning


@pytest.fixture
def session():
    """One-minute session with no random events."""
    quiet = SessionTuning(events=EventScheduleTuning(base_trigger_chance_per_second=0.0))
    s = Session(duration=60, tuning=quiet, rng=random.Random(5), dev_mode=False)
    yield s
    s.teardown()


class TestTick:
    """Tick order and time handling."""

    def test_tick_order(self, session):
        """Timers, clock, confidence, fatigue, weather, scheduler, in that order."""
        calls = Mock()
        session.timers.advance = calls.timers
        session.state.update_time = calls.clock
        session.confidence.update = calls.confidence
        session.fatigue.update = calls.fatigue
        session.weather.update = calls.weather
        session.scheduler.update = calls.scheduler

        session.tick(0.1)

        assert [c[0] for c in calls.mock_calls] == [
            "timers", "clock", "confidence", "fatigue", "weather", "scheduler",
        ]

    def test_tick_advances_clock(self, session):
        """A tick moves elapsed time forward."""
        session.tick(1.0)
        assert session.state.elapsed == pytest.approx(1.0)

    def test_runs_to_time_end(self, session):
        """Ticking past the duration ends the session."""
        for _ in range(70):
            session.tick(1.0)
        assert not session.state.is_active
        assert session.state.time_remaining == 0


class TestDevControls:
    """Time scale, pause and step."""

    def test_time_scale(self, session):
        """Double speed doubles simulated time."""
        session.time_scale = 2.0
        session.tick(1.0)
        assert session.state.elapsed == pytest.approx(2.0)

    def test_pause_and_step(self, session):
        """Paused sessions only move on step()."""
        assert session.toggle_pause() is True
        session.tick(1.0)
        assert session.state.elapsed == 0

        session.step(0.5)
        assert session.state.elapsed == pytest.approx(0.5)

        assert session.toggle_pause() is False

    def test_cycle_speed_clamps(self, session):
        """Speed steps through the presets and stops at the ends."""
        assert session.cycle_speed(1) == 2.0
        assert session.cycle_speed(1) == 2.0
        assert session.cycle_speed(-1) == 1.0
        assert session.cycle_speed(-1) == 0.5
        assert session.cycle_speed(-1) == 0.25
        assert session.cycle_speed(-1) == SPEED_VALUES[0]


class TestLifecycle:
    """Reset, teardown and results."""

    def test_reset_starts_fresh(self, session):
        """Reset rebuilds state and announces it."""
        received = []
        session.bus.on(EventType.STATE_RESET, received.append)
        old_state = session.state

        for _ in range(10):
            session.tick(1.0)
        session.scheduler.force_trigger(EventKind.KARMA)
        session.reset()

        assert session.state is not old_state
        assert session.state.elapsed == 0
        assert session.state.events_triggered == ()
        assert session.scheduler.events_triggered == []
        assert len(received) == 1

    def test_reset_cancels_timers(self, session):
        """Pending dismissals don't survive a reset."""
        session.scheduler.force_trigger(EventKind.COP_CHECK)
        session.scheduler.select_option(0)
        assert session.timers.pending == 1

        session.reset()
        assert session.timers.pending == 0

    def test_session_end_closes_cop_check(self, session):
        """An officer reply pending at the end is dropped and the event closes."""
        ended = []
        session.bus.on(EventType.EVENT_ENDED, ended.append)
        session.scheduler.force_trigger(EventKind.COP_CHECK)
        session.scheduler.select_option(0)
        assert session.timers.pending == 1

        session.state.update_time(session.state.time_remaining)

        assert not session.state.is_active
        assert session.timers.pending == 0
        assert not session.scheduler.is_event_in_progress
        assert session.scheduler.cop_phase is None
        assert [e.kind for e in ended] == [EventKind.COP_CHECK]

    def test_session_end_closes_karma(self, session):
        """A karma sequence running at the end is closed out."""
        ended = []
        session.bus.on(EventType.EVENT_ENDED, ended.append)
        session.scheduler.force_trigger(EventKind.KARMA)

        session.state.add_confidence(-100)

        assert session.state.end_reason is not None
        assert not session.scheduler.is_event_in_progress
        assert session.scheduler.karma_phase_index is None
        assert [e.kind for e in ended] == [EventKind.KARMA]

    def test_reset_keeps_one_end_listener_each(self, session):
        """Scheduler and session each hold one end listener across resets."""
        session.reset()
        session.reset()
        assert session.bus.listener_count(EventType.SESSION_END) == 2

    def test_reset_keeps_one_reaction_listener(self, session):
        """Old confidence system is detached on reset."""
        session.reset()
        session.reset()
        assert session.bus.listener_count(EventType.REACTION) == 1

    def test_teardown_drops_everything(self, session):
        """Teardown cancels timers and clears listeners."""
        session.scheduler.force_trigger(EventKind.COP_CHECK)
        session.scheduler.select_option(0)

        session.teardown()

        assert session.timers.pending == 0
        assert session.bus.listener_count(EventType.REACTION) == 0

    def test_presets_by_name(self):
        """Difficulty and material can be given by name."""
        s = Session(difficulty="hard", material="foamboard", tuning=SessionTuning())
        assert s.difficulty.label == "Rush Hour"
        assert s.material.durability == 1.6

    def test_results(self, session):
        """Results grade the final snapshot."""
        session.state.add_score(800)
        for _ in range(61):
            session.tick(1.0)

        results = session.results()
        assert results.grade == "B"
        assert results.survived_full_session
        assert results.time_survived == 60
