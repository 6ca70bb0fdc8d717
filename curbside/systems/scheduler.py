"""
Event scheduler for Curbside.

Single authority deciding whether, when, and which mid-session event runs,
and driving the running one to its end.

Top-level state machine:
    IDLE → {COP_CHECK | WEATHER | KARMA} → IDLE

Only one event runs at a time. While one is active, update() delegates to
it and schedules nothing.

Scheduling rules, checked once per idle tick in this order:
1. Wait until elapsed ≥ next_event_min_time (randomized once per session)
2. If max_events_per_session is reached, only the guarantee rule (4) may
   still fire, with the tighter capped urgency window
3. Skip while less than min_event_spacing has passed since the last event
4. Guarantee: under guarantee_urgency_time remaining, force the first
   guaranteed kind that hasn't fired and is eligible
5. Probability: base chance × difficulty × dt, then a weighted pick among
   eligible kinds (weights are relative)

Randomness comes from an injected random.Random so every rule is testable.
"""

from __future__ import annotations

import logging
import os
import random

from ..state.event_bus import EventBanner, EventEnded, EventStarted, EventType, SessionEnded
from ..state.manager import SessionState
from ..state.schema import EventKind, SchedulerState
from ..state.timers import TimerRegistry
from ..state.tuning import (
    COP_CHECK_SCENARIOS,
    CopCheckScenario,
    Difficulty,
    EventScheduleTuning,
    KarmaTuning,
    check_tuning,
    default_karma,
)
from .cop_check import CopCheckEncounter, CopCheckPhase
from .karma import KarmaSequence
from .weather import WeatherSimulation

logger = logging.getLogger(__name__)

RAIN_BANNER_TEXT = "It's starting to rain..."
RAIN_BANNER_SECONDS = 3.0


def dev_mode_enabled() -> bool:
    """Development diagnostics are on when CURBSIDE_DEV=1."""
    return os.environ.get("CURBSIDE_DEV", "") == "1"


class EventScheduler:
    """
    Decides when events fire and owns the embedded event machines.

    Depends on SessionState and the weather collaborator. Knows nothing
    about rendering; presentation listens for bus notifications.
    """

    def __init__(
        self,
        state: SessionState,
        weather: WeatherSimulation,
        timers: TimerRegistry,
        difficulty: Difficulty,
        tuning: EventScheduleTuning | None = None,
        karma: KarmaTuning | None = None,
        cop_scenarios: list[CopCheckScenario] | None = None,
        rng: random.Random | None = None,
        dev_mode: bool | None = None,
    ):
        self._state = state
        self._weather = weather
        self._timers = timers
        self._difficulty = difficulty
        self.tuning = tuning or EventScheduleTuning()
        self.karma_tuning = karma or default_karma()
        self.cop_scenarios = list(cop_scenarios or COP_CHECK_SCENARIOS)
        self._rng = rng or random.Random()

        # Scheduling state
        self._events_triggered: list[EventKind] = []
        self._last_event_time: float | None = None
        self._next_event_min_time = self._rng.uniform(
            self.tuning.first_event_min_time,
            self.tuning.first_event_max_time,
        )
        self._current = SchedulerState.IDLE
        self._is_event_active = False

        # Embedded machines, present only while their event runs
        self._cop_check: CopCheckEncounter | None = None
        self._karma: KarmaSequence | None = None

        self._state.bus.on(EventType.SESSION_END, self._on_session_end)

        logger.info(
            "Event scheduler ready. First event window: %.1fs",
            self._next_event_min_time,
        )

        if dev_mode is None:
            dev_mode = dev_mode_enabled()
        if dev_mode:
            for issue in check_tuning(self.tuning, self._difficulty):
                logger.warning("Event tuning: %s", issue)

    # ─── Tick ────────────────────────────────────────────────────

    def update(self, dt: float) -> None:
        if not self._state.is_active:
            return

        if self._is_event_active:
            self._update_active_event(dt)
            return

        self._check_event_trigger(dt)

    def _check_event_trigger(self, dt: float) -> None:
        tuning = self.tuning
        elapsed = self._state.elapsed

        if elapsed < self._next_event_min_time:
            return

        if len(self._events_triggered) >= tuning.max_events_per_session:
            # Coverage is never sacrificed to the cap
            self._force_guaranteed_event(tuning.guarantee_capped_urgency_time)
            return

        if (
            self._last_event_time is not None
            and elapsed - self._last_event_time < tuning.min_event_spacing
        ):
            return

        if self._force_guaranteed_event(tuning.guarantee_urgency_time):
            return

        chance = (
            tuning.base_trigger_chance_per_second
            * self._difficulty.event_frequency_multiplier
            * dt
        )
        if self._rng.random() < chance:
            kind = self.pick_event_type()
            if kind is not None:
                self._trigger_event(kind)

    def _force_guaranteed_event(self, urgency_time: float) -> bool:
        """Fire a missing guaranteed event when time is running out."""
        if self._state.time_remaining >= urgency_time:
            return False

        for kind in self.tuning.guaranteed_events:
            if kind in self._events_triggered:
                continue
            if self.can_trigger(kind):
                logger.info("Forcing guaranteed event %s", kind.value)
                self._trigger_event(kind)
                return True
        return False

    def pick_event_type(self) -> EventKind | None:
        """
        Weighted random choice among currently eligible kinds.

        Weights are relative; they are not normalized and need not sum to 1.
        Returns None when nothing is eligible, and the caller simply tries
        again on a later tick.
        """
        eligible = [
            (kind, weight)
            for kind, weight in self.tuning.event_weights.items()
            if weight > 0 and self.can_trigger(kind)
        ]
        if not eligible:
            return None

        total = sum(weight for _, weight in eligible)
        roll = self._rng.random() * total
        for kind, weight in eligible:
            roll -= weight
            if roll <= 0:
                return kind
        return eligible[-1][0]

    def can_trigger(self, kind: EventKind) -> bool:
        """
        Per-kind eligibility, evaluated fresh on every check.

        - COP_CHECK: confidence at or above cop_check_min_confidence
        - WEATHER: once per session, and not while it is already raining
        - KARMA: once per session, after karma_min_time
        """
        if kind == EventKind.COP_CHECK:
            return self._state.confidence >= self.tuning.cop_check_min_confidence
        elif kind == EventKind.WEATHER:
            return (
                EventKind.WEATHER not in self._events_triggered
                and not self._weather.is_raining()
            )
        elif kind == EventKind.KARMA:
            return (
                self._state.elapsed >= self.tuning.karma_min_time
                and EventKind.KARMA not in self._events_triggered
            )
        return True

    # ─── Triggering ──────────────────────────────────────────────

    def force_trigger(self, kind: EventKind) -> bool:
        """
        Start an event now, bypassing eligibility and pacing.

        Any running event is cut off first without its normal ending
        (no dismissal, no final boost). Used by dev controls and tests.
        Returns False once the session has ended.
        """
        if not self._state.is_active:
            logger.warning("Force-trigger %s ignored: session has ended", kind.value)
            return False

        logger.info("Force-triggered event: %s", kind.value)
        if self._is_event_active:
            self._end_event()
        self._trigger_event(kind)
        return True

    def _trigger_event(self, kind: EventKind) -> None:
        self._events_triggered.append(kind)
        self._state.record_event(kind)
        self._last_event_time = self._state.elapsed
        self._is_event_active = True
        self._current = SchedulerState.for_event(kind)

        logger.info("Event triggered: %s at %.1fs", kind.value, self._last_event_time)
        self._state.bus.emit(EventStarted(kind=kind))

        if kind == EventKind.COP_CHECK:
            self._start_cop_check()
        elif kind == EventKind.WEATHER:
            self._start_weather_event()
        elif kind == EventKind.KARMA:
            self._start_karma_event()
        else:
            self._end_event()

    def _update_active_event(self, dt: float) -> None:
        if self._current == SchedulerState.COP_CHECK and self._cop_check:
            self._cop_check.update(dt)
        elif self._current == SchedulerState.KARMA and self._karma:
            self._karma.update(dt)
        else:
            self._end_event()

    def _end_event(self) -> None:
        """Clear ephemeral state and return to IDLE."""
        if not self._is_event_active:
            return

        kind = EventKind(self._current.value)
        if self._cop_check is not None:
            self._cop_check.cancel()
            self._cop_check = None
        self._karma = None
        self._is_event_active = False
        self._current = SchedulerState.IDLE

        logger.info("Event ended: %s", kind.value)
        self._state.bus.emit(EventEnded(kind=kind))

    # ─── Cop check ───────────────────────────────────────────────

    def _start_cop_check(self) -> None:
        scenario = self._rng.choice(self.cop_scenarios)
        self._cop_check = CopCheckEncounter(
            scenario, self._state, self._timers, on_done=self._finish_cop_check,
        )
        self._cop_check.start()

    def _finish_cop_check(self, encounter: CopCheckEncounter) -> None:
        # A stale encounter must not end whatever replaced it
        if encounter is self._cop_check:
            self._end_event()

    def select_option(self, index: int) -> bool:
        """Player answers the officer. False if no dialogue is awaiting a choice."""
        if self._cop_check is None:
            logger.warning("Cop check option %d ignored: no cop check running", index)
            return False
        return self._cop_check.select(index)

    # ─── Weather ─────────────────────────────────────────────────

    def _start_weather_event(self) -> None:
        # Fire and forget: the episode runs on the weather system's own clock
        self._weather.start_rain()
        self._state.bus.emit(EventBanner(text=RAIN_BANNER_TEXT, duration=RAIN_BANNER_SECONDS))
        self._end_event()

    # ─── Karma ───────────────────────────────────────────────────

    def _start_karma_event(self) -> None:
        self._karma = KarmaSequence(
            self.karma_tuning, self._state, on_done=self._finish_karma,
        )
        self._karma.start()

    def _finish_karma(self, sequence: KarmaSequence) -> None:
        if sequence is self._karma:
            self._end_event()

    # ─── Getters ─────────────────────────────────────────────────

    @property
    def state(self) -> SchedulerState:
        return self._current

    @property
    def is_event_in_progress(self) -> bool:
        return self._is_event_active

    @property
    def events_triggered(self) -> list[EventKind]:
        return list(self._events_triggered)

    @property
    def next_event_min_time(self) -> float:
        return self._next_event_min_time

    @property
    def last_event_time(self) -> float | None:
        return self._last_event_time

    @property
    def active_scenario(self) -> CopCheckScenario | None:
        return self._cop_check.scenario if self._cop_check else None

    @property
    def cop_phase(self) -> CopCheckPhase | None:
        return self._cop_check.phase if self._cop_check else None

    @property
    def cop_time_remaining(self) -> float | None:
        return self._cop_check.time_remaining if self._cop_check else None

    @property
    def karma_phase_index(self) -> int | None:
        return self._karma.phase_index if self._karma else None

    def _on_session_end(self, event: SessionEnded) -> None:
        # Nothing ticks after the end, so an open event would never close
        self._end_event()

    def destroy(self) -> None:
        self._state.bus.off(EventType.SESSION_END, self._on_session_end)
        if self._cop_check is not None:
            self._cop_check.cancel()
        self._cop_check = None
        self._karma = None
