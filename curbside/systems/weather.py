"""
Weather system for Curbside.

One rain episode at a time. While it rains:
- The sign degrades, slower for durable materials and easier difficulties
- Confidence drains at a constant rate
- Fellow protesters may give up and leave, down to a minimum group

The episode runs on its own timeline. The scheduler only starts it.
"""

import logging
import random

from ..state.event_bus import NpcLeft, RainStarted
from ..state.manager import SessionState
from ..state.schema import WeatherState
from ..state.tuning import Difficulty, SignMaterial, WeatherTuning

logger = logging.getLogger(__name__)

# Floor on effective durability so the drain rate stays finite
MIN_EFFECTIVE_DURABILITY = 0.1


class WeatherSimulation:
    """
    Rain timer plus its per-tick effects.

    Collaborator contract used by the scheduler:
    start_rain(), is_raining(), rain_time_remaining()
    """

    def __init__(
        self,
        state: SessionState,
        material: SignMaterial,
        difficulty: Difficulty,
        tuning: WeatherTuning | None = None,
        rng: random.Random | None = None,
    ):
        self._state = state
        self._material = material
        self._difficulty = difficulty
        self.tuning = tuning or WeatherTuning()
        self._rng = rng or random.Random()

        self._rain_remaining = 0.0
        self._npc_leave_cooldown = 0.0

    # ─── Contract ────────────────────────────────────────────────

    def start_rain(self) -> None:
        """Begin a rain episode. No-op if already raining."""
        if self.is_raining():
            return

        duration = float(self._rng.randint(
            self.tuning.rain_duration_min,
            max(self.tuning.rain_duration_min, self.tuning.rain_duration_max),
        ))
        self._rain_remaining = duration
        self._state.set_weather_state(WeatherState.RAIN)
        self._state.bus.emit(RainStarted(duration=duration))
        logger.info("Rain started. Duration: %.0fs", duration)

    def is_raining(self) -> bool:
        return self._state.weather_state == WeatherState.RAIN

    def rain_time_remaining(self) -> float:
        return self._rain_remaining

    def stop_rain(self) -> None:
        if not self.is_raining():
            return
        self._rain_remaining = 0.0
        self._state.set_weather_state(WeatherState.CLEAR)
        logger.info("Rain stopped.")

    def rain_negative_shift(self) -> float:
        """How much rain tilts passerby reactions toward negative."""
        return self.tuning.rain_negative_shift if self.is_raining() else 0.0

    # ─── Tick ────────────────────────────────────────────────────

    def update(self, dt: float) -> None:
        if not self.is_raining() or not self._state.is_active:
            return

        # Only the part of this tick that falls inside the episode counts
        rain_dt = min(dt, self._rain_remaining)
        self._rain_remaining -= dt

        if rain_dt > 0:
            self._degrade_sign(rain_dt)
            self._state.add_confidence(-self.tuning.rain_confidence_drain * rain_dt)
            self._maybe_lose_npc(rain_dt)

        if self._rain_remaining <= 0:
            self.stop_rain()

    def _degrade_sign(self, dt: float) -> None:
        tuning = self.tuning
        effective = self._material.durability * self._difficulty.weather_durability_multiplier
        drain_rate = tuning.rain_sign_drain_rate / max(effective, MIN_EFFECTIVE_DURABILITY)

        current = self._state.sign_degradation
        if current >= tuning.max_sign_degradation:
            return
        self._state.set_sign_degradation(
            min(tuning.max_sign_degradation, current + (drain_rate / 100) * dt)
        )

    def _maybe_lose_npc(self, dt: float) -> None:
        self._npc_leave_cooldown -= dt
        if self._npc_leave_cooldown > 0:
            return

        group = self._state.group_size
        if group <= self.tuning.min_npc_count:
            return

        # Per-second chance scaled by dt, so departures don't depend on frame rate
        if self._rng.random() < self.tuning.npc_leave_chance_per_second * dt:
            self._state.set_group_size(group - 1)
            self._npc_leave_cooldown = self.tuning.npc_leave_cooldown
            self._state.bus.emit(NpcLeft(group_size=group - 1))
            logger.debug("Protester left in the rain. Group size: %d", group - 1)
