"""Autopilot player for headless sessions."""

import random

from ..systems.cop_check import CopCheckPhase
from .personas import PERSONAS, get_persona
from .session import Session


class AutopilotPlayer:
    """Plays a session by persona rules instead of input events."""

    def __init__(self, persona: str = "savvy", rng: random.Random | None = None):
        """
        Initialize autopilot player.

        Args:
            persona: One of: savvy, timid, frozen, random
            rng: Randomness for the random persona (seed it for replays)
        """
        self.persona_name = persona if persona in PERSONAS else "savvy"
        self.persona = get_persona(persona)
        self._rng = rng or random.Random()
        self._waiting = 0.0
        self.decisions: list[str] = []  # Track key decisions made

    def act(self, session: Session, dt: float) -> None:
        """Called once per host frame, before the session ticks."""
        if not session.state.is_active:
            return
        self._answer_officer(session, dt)
        self._manage_arm(session)

    def _answer_officer(self, session: Session, dt: float) -> None:
        scheduler = session.scheduler
        if scheduler.cop_phase != CopCheckPhase.AWAITING_CHOICE:
            self._waiting = 0.0
            return

        delay = self.persona["answer_delay"]
        if delay is None:
            return
        self._waiting += dt
        if self._waiting < delay:
            return

        index = self.choose_option(scheduler.active_scenario.options)
        if scheduler.select_option(index):
            option = scheduler.active_scenario.options[index]
            self.decisions.append("answered_correctly" if option.is_correct else "answered_wrong")
        self._waiting = 0.0

    def choose_option(self, options) -> int:
        strategy = self.persona["cop_choice"]
        if strategy == "correct":
            for i, option in enumerate(options):
                if option.is_correct:
                    return i
            return 0
        if strategy == "worst":
            return min(range(len(options)), key=lambda i: options[i].confidence_delta)
        return self._rng.randrange(len(options))

    def _manage_arm(self, session: Session) -> None:
        state = session.state
        fatigue = session.fatigue
        persona = self.persona
        level = state.arm_fatigue

        if state.is_resting:
            if persona["resume_at"] is not None and level <= persona["resume_at"]:
                fatigue.toggle_rest()
            return

        if persona["rest_at"] is not None and level >= persona["rest_at"]:
            fatigue.toggle_rest()
            self.decisions.append("rested")
            return

        if (
            persona["switch_at"] is not None
            and level >= persona["switch_at"]
            and fatigue.try_switch_arm()
        ):
            self.decisions.append("switched_arm")

        if persona["raise_below"] is not None:
            fatigue.set_raised(state.arm_fatigue < persona["raise_below"])

    def get_stats(self) -> dict:
        """Summary statistics about player decisions."""
        return {
            "total_decisions": len(self.decisions),
            "answered_correctly": self.decisions.count("answered_correctly"),
            "answered_wrong": self.decisions.count("answered_wrong"),
            "rests": self.decisions.count("rested"),
            "arm_switches": self.decisions.count("switched_arm"),
        }
