"""Tests for the event scheduler."""

import logging
import random
from collections import Counter

import pytest

from curbside.state import EventKind, EventType, SchedulerState, SessionState
from curbside.state.tuning import EventScheduleTuning
from curbside.systems import EventScheduler, WeatherSimulation
from curbside.systems.scheduler import RAIN_BANNER_TEXT

ONLY_WEATHER = {EventKind.COP_CHECK: 0.0, EventKind.WEATHER: 1.0, EventKind.KARMA: 0.0}


def run(state, timers, scheduler, dt=0.5, seconds=None):
    """Drive timers, clock and scheduler in session order."""
    ticks = 0
    while state.is_active and (seconds is None or ticks * dt < seconds):
        timers.advance(dt)
        state.update_time(dt)
        scheduler.update(dt)
        ticks += 1


def start_times(bus, state):
    """Map of event kind to the elapsed time it started."""
    times = {}
    bus.on(EventType.EVENT_STARTED, lambda e: times.setdefault(e.kind, state.elapsed))
    return times


class TestPacing:
    """Minimum time, spacing and the cap."""

    def test_first_event_window(self, make_scheduler):
        """First event time is drawn from the configured window."""
        scheduler = make_scheduler()
        assert 25 <= scheduler.next_event_min_time <= 50
        assert scheduler.state == SchedulerState.IDLE

    def test_nothing_before_min_time(self, state, timers, make_scheduler):
        """Even a certain roll waits for the minimum time."""
        scheduler = make_scheduler(
            first_event_min_time=30, first_event_max_time=30,
            base_trigger_chance_per_second=2.0, event_weights=ONLY_WEATHER,
        )

        run(state, timers, scheduler, seconds=29.5)
        assert scheduler.events_triggered == []

        run(state, timers, scheduler, seconds=0.5)
        assert scheduler.events_triggered == [EventKind.WEATHER]
        assert scheduler.last_event_time == pytest.approx(30.0)

    def test_guarantee_survives_cap(self, state, bus, timers, make_scheduler):
        """After the cap only the guaranteed event fires, inside the tighter window."""
        times = start_times(bus, state)
        scheduler = make_scheduler(
            first_event_min_time=10, first_event_max_time=10,
            base_trigger_chance_per_second=2.0, event_weights=ONLY_WEATHER,
            max_events_per_session=1,
        )

        run(state, timers, scheduler)

        assert scheduler.events_triggered == [EventKind.WEATHER, EventKind.COP_CHECK]
        assert times[EventKind.WEATHER] == pytest.approx(10.0)
        # Capped urgency is 20s remaining of 120
        assert times[EventKind.COP_CHECK] > 100

    def test_spacing_checked_before_urgency(self, bus, timers, medium, posterboard):
        """A guaranteed event still waits out the spacing."""
        state = SessionState(40.0, bus)
        times = start_times(bus, state)
        weather = WeatherSimulation(state, posterboard, medium, rng=random.Random(0))
        scheduler = EventScheduler(
            state, weather, timers, medium,
            tuning=EventScheduleTuning(
                first_event_min_time=5, first_event_max_time=5,
                base_trigger_chance_per_second=2.0, event_weights=ONLY_WEATHER,
                min_event_spacing=25,
            ),
            rng=random.Random(0),
            dev_mode=False,
        )

        run(state, timers, scheduler)

        assert times[EventKind.WEATHER] == pytest.approx(5.0)
        # Urgent from 10s onwards, but spacing holds it until 30s
        assert times[EventKind.COP_CHECK] == pytest.approx(30.0)

    def test_no_scheduling_while_event_active(self, state, timers, make_scheduler):
        """A running event blocks new ones."""
        scheduler = make_scheduler(
            first_event_min_time=0, first_event_max_time=0,
            base_trigger_chance_per_second=2.0, min_event_spacing=0.1,
        )
        scheduler.force_trigger(EventKind.KARMA)

        run(state, timers, scheduler, dt=1.0, seconds=5)
        assert scheduler.events_triggered == [EventKind.KARMA]


class TestCoverage:
    """Guaranteed events fire before the session ends."""

    def test_guaranteed_event_forced_with_zero_chance(self, state, bus, timers, make_scheduler):
        """With no random triggers at all, the cop check still happens."""
        times = start_times(bus, state)
        scheduler = make_scheduler(base_trigger_chance_per_second=0.0)

        run(state, timers, scheduler)

        assert EventKind.COP_CHECK in state.events_triggered
        assert times[EventKind.COP_CHECK] > 90

    def test_ineligible_guarantee_waits(self, state, timers, make_scheduler):
        """A guaranteed kind that isn't eligible is not forced."""
        scheduler = make_scheduler(base_trigger_chance_per_second=0.0)
        state.add_confidence(-15)

        run(state, timers, scheduler)

        assert scheduler.events_triggered == []


class TestSelection:
    """Weighted pick among eligible kinds."""

    def _all_eligible(self, state):
        state.update_time(61)

    def test_frequencies_follow_weights(self, state, make_scheduler):
        """Empirical frequency converges on weight / total."""
        self._all_eligible(state)
        weights = {EventKind.COP_CHECK: 0.5, EventKind.WEATHER: 0.3, EventKind.KARMA: 0.2}
        scheduler = make_scheduler(rng=random.Random(42), event_weights=weights)

        trials = 20000
        counts = Counter(scheduler.pick_event_type() for _ in range(trials))

        for kind, weight in weights.items():
            assert counts[kind] / trials == pytest.approx(weight, abs=0.02)

    def test_weights_are_relative(self, state, make_scheduler):
        """Weights need not sum to one."""
        self._all_eligible(state)
        weights = {EventKind.COP_CHECK: 2.0, EventKind.WEATHER: 1.0, EventKind.KARMA: 1.0}
        scheduler = make_scheduler(rng=random.Random(7), event_weights=weights)

        trials = 20000
        counts = Counter(scheduler.pick_event_type() for _ in range(trials))

        assert counts[EventKind.COP_CHECK] / trials == pytest.approx(0.5, abs=0.02)
        assert counts[EventKind.KARMA] / trials == pytest.approx(0.25, abs=0.02)

    def test_zero_weight_never_picked(self, state, make_scheduler):
        """Zero-weight kinds are excluded."""
        self._all_eligible(state)
        weights = {EventKind.COP_CHECK: 1.0, EventKind.WEATHER: 0.0, EventKind.KARMA: 0.0}
        scheduler = make_scheduler(event_weights=weights)

        picks = {scheduler.pick_event_type() for _ in range(500)}
        assert picks == {EventKind.COP_CHECK}

    def test_nothing_eligible_returns_none(self, state, make_scheduler):
        """No eligible kind defers instead of failing."""
        state.add_confidence(-20)
        scheduler = make_scheduler(event_weights={EventKind.COP_CHECK: 1.0})
        assert scheduler.pick_event_type() is None

    def test_roll_uses_injected_random(self, state, make_scheduler, scripted_rng):
        """A low roll picks the first kind, a high roll the last."""
        self._all_eligible(state)
        scheduler = make_scheduler(rng=scripted_rng([0.1, 0.95]))

        assert scheduler.pick_event_type() == EventKind.COP_CHECK
        assert scheduler.pick_event_type() == EventKind.KARMA


class TestEligibility:
    """Per-kind eligibility rules."""

    def test_cop_check_needs_confidence(self, state, make_scheduler):
        """Cop check needs at least 20 confidence."""
        scheduler = make_scheduler()
        state.add_confidence(-10)
        assert scheduler.can_trigger(EventKind.COP_CHECK)

        state.add_confidence(-1)
        assert not scheduler.can_trigger(EventKind.COP_CHECK)

    def test_weather_not_while_raining(self, weather, make_scheduler):
        """No weather event while it's already raining."""
        scheduler = make_scheduler()
        weather.start_rain()
        assert not scheduler.can_trigger(EventKind.WEATHER)

    def test_weather_once_per_session(self, weather, make_scheduler):
        """Weather runs at most once."""
        scheduler = make_scheduler()
        scheduler.force_trigger(EventKind.WEATHER)
        weather.stop_rain()
        assert not scheduler.can_trigger(EventKind.WEATHER)

    def test_karma_needs_time_and_runs_once(self, state, make_scheduler):
        """Karma waits for 60s and runs once."""
        scheduler = make_scheduler()
        assert not scheduler.can_trigger(EventKind.KARMA)

        state.update_time(60)
        assert scheduler.can_trigger(EventKind.KARMA)

        scheduler.force_trigger(EventKind.KARMA)
        assert not scheduler.can_trigger(EventKind.KARMA)


class TestForceTrigger:
    """Manual triggering."""

    def test_bypasses_eligibility(self, state, make_scheduler):
        """Forced events skip eligibility checks."""
        scheduler = make_scheduler()
        state.add_confidence(-25)

        assert scheduler.force_trigger(EventKind.COP_CHECK) is True
        assert scheduler.state == SchedulerState.COP_CHECK

    def test_cuts_off_running_event(self, timers, recorder, make_scheduler):
        """A forced event ends the running one and drops its pending dismissal."""
        scheduler = make_scheduler()
        scheduler.force_trigger(EventKind.COP_CHECK)
        scheduler.select_option(0)
        assert timers.pending == 1

        scheduler.force_trigger(EventKind.KARMA)

        assert timers.pending == 0
        assert scheduler.state == SchedulerState.KARMA
        assert scheduler.events_triggered == [EventKind.COP_CHECK, EventKind.KARMA]
        assert recorder.of(EventType.EVENT_ENDED)[-1].kind == EventKind.COP_CHECK

        timers.advance(10.0)
        assert scheduler.state == SchedulerState.KARMA

    def test_refused_after_session_end(self, state, make_scheduler):
        """Nothing starts once the session is over."""
        scheduler = make_scheduler()
        state.update_time(120)

        assert scheduler.force_trigger(EventKind.KARMA) is False
        assert scheduler.events_triggered == []

    def test_weather_event_is_fire_and_forget(self, state, weather, recorder, make_scheduler):
        """Weather starts rain, shows a banner and ends at once."""
        scheduler = make_scheduler()
        scheduler.force_trigger(EventKind.WEATHER)

        assert weather.is_raining()
        assert scheduler.state == SchedulerState.IDLE
        assert recorder.of(EventType.EVENT_BANNER)[0].text == RAIN_BANNER_TEXT
        assert recorder.of(EventType.EVENT_STARTED)[0].kind == EventKind.WEATHER
        assert recorder.of(EventType.EVENT_ENDED)[0].kind == EventKind.WEATHER
        assert state.events_triggered == (EventKind.WEATHER,)


class TestSessionEnd:
    """Scheduler stops with the session."""

    def test_no_events_after_end(self, state, make_scheduler):
        """A certain roll does nothing once the session is over."""
        scheduler = make_scheduler(
            first_event_min_time=0, first_event_max_time=0,
            base_trigger_chance_per_second=2.0,
        )
        state.update_time(120)
        scheduler.update(1.0)

        assert scheduler.events_triggered == []

    def test_open_event_closed_at_end(self, state, timers, recorder, make_scheduler):
        """An event still running when time runs out ends with the session."""
        scheduler = make_scheduler()
        scheduler.force_trigger(EventKind.COP_CHECK)
        scheduler.select_option(0)

        state.update_time(120)

        assert scheduler.state == SchedulerState.IDLE
        assert scheduler.active_scenario is None
        assert timers.pending == 0
        assert recorder.of(EventType.EVENT_ENDED)[-1].kind == EventKind.COP_CHECK

    def test_destroy_stops_end_listener(self, state, recorder, make_scheduler):
        """A destroyed scheduler ignores the end of the session."""
        scheduler = make_scheduler()
        scheduler.force_trigger(EventKind.KARMA)
        scheduler.destroy()

        state.update_time(120)

        assert recorder.count(EventType.EVENT_ENDED) == 0

    def test_events_triggered_is_a_copy(self, make_scheduler):
        """Callers can't edit the history."""
        scheduler = make_scheduler()
        scheduler.force_trigger(EventKind.WEATHER)
        scheduler.events_triggered.clear()
        assert scheduler.events_triggered == [EventKind.WEATHER]


class TestDiagnostics:
    """Tuning warnings in development mode."""

    def _make(self, state, weather, timers, medium, dev_mode):
        return EventScheduler(
            state, weather, timers, medium,
            tuning=EventScheduleTuning(event_weights={
                EventKind.COP_CHECK: 1.0, EventKind.WEATHER: 1.0, EventKind.KARMA: 0.0,
            }),
            dev_mode=dev_mode,
        )

    def test_dev_mode_logs_warnings(self, state, weather, timers, medium, caplog):
        """Bad weights are reported in dev mode."""
        with caplog.at_level(logging.WARNING, logger="curbside.systems.scheduler"):
            self._make(state, weather, timers, medium, dev_mode=True)
        assert "weights sum to 2.00" in caplog.text

    def test_silent_outside_dev_mode(self, state, weather, timers, medium, caplog):
        """No warnings without dev mode."""
        with caplog.at_level(logging.WARNING, logger="curbside.systems.scheduler"):
            self._make(state, weather, timers, medium, dev_mode=False)
        assert "weights sum" not in caplog.text

    def test_env_var_enables_dev_mode(self, state, weather, timers, medium, caplog, monkeypatch):
        """CURBSIDE_DEV=1 turns diagnostics on."""
        monkeypatch.setenv("CURBSIDE_DEV", "1")
        with caplog.at_level(logging.WARNING, logger="curbside.systems.scheduler"):
            self._make(state, weather, timers, medium, dev_mode=None)
        assert "weights sum" in caplog.text
