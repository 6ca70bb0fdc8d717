"""
Session host for Curbside.

Owns everything a running session needs and drives the fixed per-tick order:

    timers → SessionState.update_time → Confidence → Fatigue → Weather → Scheduler

Everything is constructed here and handed its collaborators explicitly.
There is no global registry.

Usage:
    session = Session(duration=120, difficulty="medium", material="posterboard")
    session.bus.on(EventType.SESSION_END, show_results)

    while session.state.is_active:
        session.tick(1 / 60)

    session.teardown()
"""

import logging
import random

from ..state.event_bus import EventBus, EventType, SessionEnded, StateReset
from ..state.manager import SessionState
from ..state.results import SessionResults
from ..state.timers import TimerRegistry
from ..state.tuning import (
    Difficulty,
    SessionTuning,
    SignMaterial,
    get_difficulty,
    get_material,
)
from ..systems import (
    ConfidenceSimulation,
    EventScheduler,
    FatigueSimulation,
    WeatherSimulation,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 120.0

# Dev time-scale presets
SPEED_VALUES = (0.25, 0.5, 1.0, 2.0)


class Session:
    """One protest session: state, systems, timers and the tick loop."""

    def __init__(
        self,
        duration: float = DEFAULT_DURATION,
        difficulty: Difficulty | str = "medium",
        material: SignMaterial | str = "posterboard",
        tuning: SessionTuning | None = None,
        rng: random.Random | None = None,
        dev_mode: bool | None = None,
    ):
        self.duration = duration
        self.difficulty = get_difficulty(difficulty) if isinstance(difficulty, str) else difficulty
        self.material = get_material(material) if isinstance(material, str) else material
        self.tuning = tuning or SessionTuning()
        self.rng = rng or random.Random()
        self._dev_mode = dev_mode

        self.time_scale = 1.0
        self.paused = False

        self.bus = EventBus()
        self.timers = TimerRegistry()
        self._build()

    def _build(self) -> None:
        self.state = SessionState(self.duration, self.bus, self.tuning.confidence)
        self.confidence = ConfidenceSimulation(self.state)
        self.fatigue = FatigueSimulation(
            self.state, self.material, self.difficulty, self.tuning.fatigue,
        )
        self.weather = WeatherSimulation(
            self.state, self.material, self.difficulty, self.tuning.weather, rng=self.rng,
        )
        self.scheduler = EventScheduler(
            self.state,
            self.weather,
            self.timers,
            self.difficulty,
            tuning=self.tuning.events,
            karma=self.tuning.karma,
            cop_scenarios=self.tuning.cop_scenarios,
            rng=self.rng,
            dev_mode=self._dev_mode,
        )
        self.bus.on(EventType.SESSION_END, self._on_session_end)
        logger.info(
            "Session built: %.0fs, %s, %s",
            self.duration, self.difficulty.label, self.material.label,
        )

    # ─── Tick ────────────────────────────────────────────────────

    def tick(self, dt: float) -> None:
        """Host frame. Scaled by time_scale; skipped while paused."""
        if self.paused:
            return
        self._advance(dt * self.time_scale)

    def step(self, dt: float) -> None:
        """Advance one frame even while paused."""
        self._advance(dt * self.time_scale)

    def _advance(self, dt: float) -> None:
        if dt <= 0 or not self.state.is_active:
            return
        self.timers.advance(dt)
        self.state.update_time(dt)
        self.confidence.update(dt)
        self.fatigue.update(dt)
        self.weather.update(dt)
        self.scheduler.update(dt)

    # ─── Dev controls ────────────────────────────────────────────

    def cycle_speed(self, direction: int) -> float:
        """Step time_scale through SPEED_VALUES, clamped at the ends."""
        if self.time_scale not in SPEED_VALUES:
            self.time_scale = 1.0
            return self.time_scale
        index = SPEED_VALUES.index(self.time_scale) + direction
        if 0 <= index < len(SPEED_VALUES):
            self.time_scale = SPEED_VALUES[index]
            logger.debug("Speed: %sx", self.time_scale)
        return self.time_scale

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    # ─── Lifecycle ───────────────────────────────────────────────

    def results(self) -> SessionResults:
        return SessionResults.from_snapshot(self.state.snapshot())

    def _on_session_end(self, event: SessionEnded) -> None:
        cancelled = self.timers.cancel_all()
        logger.info(
            "Session ended (%s), %d pending timers cancelled",
            event.reason.value, cancelled,
        )

    def _release_systems(self) -> int:
        self.bus.off(EventType.SESSION_END, self._on_session_end)
        cancelled = self.timers.cancel_all()
        self.scheduler.destroy()
        self.confidence.destroy()
        return cancelled

    def reset(self) -> None:
        """Throw away this run and start a fresh one with the same settings."""
        cancelled = self._release_systems()
        logger.info("Session reset (%d pending timers cancelled)", cancelled)
        self._build()
        self.bus.emit(StateReset())

    def teardown(self) -> None:
        """Cancel every pending timer and drop all listeners."""
        cancelled = self._release_systems()
        self.bus.clear()
        logger.debug("Session torn down (%d pending timers cancelled)", cancelled)
