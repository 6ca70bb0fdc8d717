"""
Arm fatigue system for Curbside.

Fatigue drains while the sign is held and recovers while resting. Each tick
applies exactly one rule:

- Resting: recover at rest_recovery_rate
- Raised: drain at (base + raise) × material weight × difficulty
- Holding: drain at base × material weight × difficulty

Switching arms is an instant partial recovery followed by a cooldown.

Two values are derived from fatigue for the presentation layer: the
visibility cone width and the rest visibility factor.
"""

from ..state.manager import SessionState
from ..state.tuning import Difficulty, FatigueTuning, SignMaterial


class FatigueSimulation:
    """Per-tick fatigue drain and recovery. Reads hot fields via getters."""

    def __init__(
        self,
        state: SessionState,
        material: SignMaterial,
        difficulty: Difficulty,
        tuning: FatigueTuning | None = None,
    ):
        self._state = state
        self._material = material
        self._difficulty = difficulty
        self.tuning = tuning or FatigueTuning()
        self._switch_cooldown = 0.0

    def update(self, dt: float) -> None:
        state = self._state
        if not state.is_active:
            return

        if self._switch_cooldown > 0:
            self._switch_cooldown -= dt

        tuning = self.tuning
        if state.is_resting:
            state.set_arm_fatigue(state.arm_fatigue - tuning.rest_recovery_rate * dt)
            return

        rate = tuning.base_drain_rate
        if state.is_raised:
            rate += tuning.raise_drain_rate
        drain = (
            rate
            * self._material.fatigue_multiplier
            * self._difficulty.fatigue_drain_multiplier
            * dt
        )
        state.set_arm_fatigue(state.arm_fatigue + drain)

    # ─── Player actions ──────────────────────────────────────────

    def try_switch_arm(self) -> bool:
        """Switch arms for a partial recovery. False while on cooldown."""
        if self._switch_cooldown > 0 or not self._state.is_active:
            return False

        self._state.switch_arm()
        self._state.set_arm_fatigue(
            max(0.0, self._state.arm_fatigue - self.tuning.switch_arm_recovery)
        )
        self._switch_cooldown = self.tuning.switch_arm_cooldown
        return True

    def toggle_rest(self) -> None:
        self._state.set_resting(not self._state.is_resting)

    def set_raised(self, raised: bool) -> None:
        self._state.set_raised(raised)

    @property
    def can_switch_arm(self) -> bool:
        return self._switch_cooldown <= 0

    @property
    def switch_cooldown_remaining(self) -> float:
        return max(0.0, self._switch_cooldown)

    # ─── Derived outputs ─────────────────────────────────────────

    def cone_width(self) -> float:
        """
        Visibility cone width in degrees.

        Constant up to cone_shrink_threshold, then interpolates linearly
        toward cone_width_exhausted as fatigue approaches 100.
        """
        fatigue = self._state.arm_fatigue
        tuning = self.tuning
        if fatigue <= tuning.cone_shrink_threshold:
            return tuning.cone_width_fresh

        t = (fatigue - tuning.cone_shrink_threshold) / (100 - tuning.cone_shrink_threshold)
        return tuning.cone_width_fresh + (tuning.cone_width_exhausted - tuning.cone_width_fresh) * t

    def visibility_factor(self) -> float:
        """1.0 = full visibility. Reduced while resting."""
        return self.tuning.rest_visibility_factor if self._state.is_resting else 1.0
