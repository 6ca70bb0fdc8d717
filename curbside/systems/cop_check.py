"""
Cop check encounter for Curbside.

An officer walks up and the player has to answer. Two ways out:

    AWAITING_CHOICE ──select()──▶ REPLYING ──dismiss timer──▶ done
          │
          └──countdown hits 0──▶ REPLYING ("froze") ──dismiss timer──▶ done

The countdown guarantees the encounter ends even if the player never
answers. Once a reply is showing the countdown stops; only the dismiss
timer is left.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from ..state.event_bus import CopCheckStarted, CopReplyShown
from ..state.manager import SessionState
from ..state.timers import TimerHandle, TimerRegistry
from ..state.tuning import (
    FROZE_DISMISS_SECONDS,
    FROZE_OPTION_TEXT,
    FROZE_REPLY_TEXT,
    CopCheckScenario,
)

logger = logging.getLogger(__name__)


class CopCheckPhase(str, Enum):
    AWAITING_CHOICE = "awaiting_choice"
    REPLYING = "replying"


class CopCheckEncounter:
    """
    One cop check, from opening line to dismissal.

    Exists only while the event runs. on_done is called once, from the
    dismiss timer.
    """

    def __init__(
        self,
        scenario: CopCheckScenario,
        state: SessionState,
        timers: TimerRegistry,
        on_done: Callable[["CopCheckEncounter"], None],
    ):
        self.scenario = scenario
        self._state = state
        self._timers = timers
        self._on_done = on_done
        self.phase = CopCheckPhase.AWAITING_CHOICE
        self.time_remaining = scenario.auto_resolve_seconds
        self.timed_out = False
        self._dismiss: TimerHandle | None = None

    def start(self) -> None:
        self._state.bus.emit(CopCheckStarted(scenario=self.scenario))

    def update(self, dt: float) -> None:
        if self.phase != CopCheckPhase.AWAITING_CHOICE:
            return
        self.time_remaining -= dt
        if self.time_remaining <= 0:
            self.time_remaining = 0.0
            self._time_out()

    def select(self, index: int) -> bool:
        """Player picks an option. False if not awaiting a choice or bad index."""
        if self.phase != CopCheckPhase.AWAITING_CHOICE:
            logger.warning("Cop check option %d ignored: already resolved", index)
            return False
        if not 0 <= index < len(self.scenario.options):
            logger.warning("Cop check option %d out of range", index)
            return False

        option = self.scenario.options[index]
        self._state.add_confidence(option.confidence_delta)
        self._state.add_score(option.score_delta)
        self._reply(
            option_text=option.text,
            reply_text=option.reply_text,
            is_correct=option.is_correct,
            dismiss_delay=option.dismiss_delay_seconds,
        )
        return True

    def cancel(self) -> None:
        """Drop the pending dismissal without finishing."""
        self._timers.cancel(self._dismiss)
        self._dismiss = None

    def _time_out(self) -> None:
        # Player froze up
        self.timed_out = True
        self._state.add_confidence(self.scenario.auto_resolve_penalty)
        self._reply(
            option_text=FROZE_OPTION_TEXT,
            reply_text=FROZE_REPLY_TEXT,
            is_correct=False,
            dismiss_delay=FROZE_DISMISS_SECONDS,
        )

    def _reply(
        self,
        option_text: str,
        reply_text: str,
        is_correct: bool,
        dismiss_delay: float,
    ) -> None:
        self.phase = CopCheckPhase.REPLYING
        self._state.bus.emit(CopReplyShown(
            option_text=option_text,
            reply_text=reply_text,
            is_correct=is_correct,
            dismiss_delay=dismiss_delay,
            timed_out=self.timed_out,
        ))
        self._dismiss = self._timers.schedule(
            dismiss_delay, self._dismiss_now, label="cop_check.dismiss",
        )

    def _dismiss_now(self) -> None:
        self._dismiss = None
        self._on_done(self)
