"""
Confidence system for Curbside.

Maps passerby reactions to confidence changes and drains confidence when
nothing has happened for a while. The protest group props the player up:
passive drain never pushes confidence below group_size × floor bonus.
"""

from ..state.event_bus import EventType, ReactionRecorded
from ..state.manager import SessionState


class ConfidenceSimulation:
    """Listens for reactions; drains on quiet stretches."""

    def __init__(self, state: SessionState):
        self._state = state
        self._state.bus.on(EventType.REACTION, self._on_reaction)

    @property
    def tuning(self):
        return self._state.confidence_tuning

    def update(self, dt: float) -> None:
        state = self._state
        if not state.is_active:
            return

        if state.time_since_last_reaction() <= self.tuning.no_drain_grace_period:
            return

        floor = state.confidence_floor()
        if state.confidence <= floor:
            return

        target = max(floor, state.confidence - self.tuning.no_reaction_drain_rate * dt)
        change = target - state.confidence
        if change != 0:
            state.add_confidence(change)

    def _on_reaction(self, event: ReactionRecorded) -> None:
        # Neutral reactions don't move confidence
        if event.score_value == 0:
            return
        self._state.add_confidence(
            event.score_value * self.tuning.reaction_to_confidence_multiplier
        )

    def destroy(self) -> None:
        self._state.bus.off(EventType.REACTION, self._on_reaction)
