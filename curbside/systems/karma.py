"""
Karma sequence for Curbside.

A scripted payback moment played as a fixed list of phases. Entering a
phase applies its deltas and publishes its banner; the phase countdown
then moves to the next one. After the last phase a one-time boost is
applied on top of the per-phase deltas.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..state.event_bus import KarmaPhaseStarted
from ..state.manager import SessionState
from ..state.tuning import KarmaPhase, KarmaTuning

logger = logging.getLogger(__name__)


class KarmaSequence:
    """Ordered phase player. Phase list is fixed when the sequence starts."""

    def __init__(
        self,
        tuning: KarmaTuning,
        state: SessionState,
        on_done: Callable[["KarmaSequence"], None],
    ):
        self._phases: list[KarmaPhase] = list(tuning.phases)
        self._boost = tuning.total_confidence_boost
        self._state = state
        self._on_done = on_done
        self.phase_index = -1
        self.phase_time_remaining = 0.0
        self.finished = False

    @property
    def phases(self) -> list[KarmaPhase]:
        return list(self._phases)

    def start(self) -> None:
        self._enter(0)

    def update(self, dt: float) -> None:
        if self.finished:
            return
        self.phase_time_remaining -= dt
        if self.phase_time_remaining <= 0:
            self._enter(self.phase_index + 1)

    def _enter(self, index: int) -> None:
        if index >= len(self._phases):
            self._finish()
            return

        phase = self._phases[index]
        self.phase_index = index
        self.phase_time_remaining = phase.duration_seconds
        logger.debug("Karma phase %d: %s", index, phase.banner_text)

        self._state.add_confidence(phase.confidence_delta)
        self._state.add_score(phase.score_delta)
        self._state.bus.emit(KarmaPhaseStarted(index=index, phase=phase))

    def _finish(self) -> None:
        self.finished = True
        self.phase_index = len(self._phases)
        self._state.add_confidence(self._boost)
        self._on_done(self)
