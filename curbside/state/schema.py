"""
Pydantic models for Curbside session state.

The record is a plain data holder. Only SessionState (manager.py) writes to it;
everything else reads snapshots or targeted getters.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Arm(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> "Arm":
        return Arm.RIGHT if self is Arm.LEFT else Arm.LEFT


class WeatherState(str, Enum):
    CLEAR = "clear"
    RAIN = "rain"


class EndReason(str, Enum):
    """Why the session stopped. Set exactly once."""
    TIME = "time"
    CONFIDENCE = "confidence"


class EventKind(str, Enum):
    """Mid-session interruptions the scheduler can run."""
    COP_CHECK = "cop_check"    # Interactive police dialogue
    WEATHER = "weather"        # One-shot rain episode
    KARMA = "karma"            # Scripted payback sequence


class SchedulerState(str, Enum):
    """Top-level scheduler state. IDLE or the kind of the running event."""
    IDLE = "idle"
    COP_CHECK = "cop_check"
    WEATHER = "weather"
    KARMA = "karma"

    @classmethod
    def for_event(cls, kind: EventKind) -> "SchedulerState":
        return cls(kind.value)


# Passerby reactions the tally tracks. Fixed by configuration; anything else
# reported by the reaction roller is ignored.
REACTION_IDS: tuple[str, ...] = (
    # Positive
    "wave", "honk", "bananas", "peace",
    # Neutral
    "nothing", "stare",
    # Negative
    "thumbsdown", "finger", "yell", "coalroller",
)


def empty_reaction_tally() -> dict[str, int]:
    return {reaction_id: 0 for reaction_id in REACTION_IDS}


# -----------------------------------------------------------------------------
# Session record
# -----------------------------------------------------------------------------

class SessionRecord(BaseModel):
    """Canonical mutable record of the running session."""
    score: int = 0
    time_remaining: float
    session_duration: float
    elapsed: float = 0.0

    cars_reached: int = 0
    cars_missed: int = 0
    reactions: dict[str, int] = Field(default_factory=empty_reaction_tally)
    last_reaction_time: float = 0.0

    confidence: float = 30.0  # 0-100
    group_size: int = 3

    arm_fatigue: float = 0.0  # 0-100
    active_arm: Arm = Arm.RIGHT
    is_resting: bool = False
    is_raised: bool = False

    weather_state: WeatherState = WeatherState.CLEAR
    sign_degradation: float = 0.0  # 0 = pristine, 1 = destroyed

    events_triggered: list[EventKind] = Field(default_factory=list)

    is_session_active: bool = True
    end_reason: EndReason | None = None


class SessionSnapshot(BaseModel):
    """
    Read-only copy of the session record.

    Handed to consumers that need several fields at once and to the
    results display at session end.
    """
    model_config = ConfigDict(frozen=True)

    score: int
    time_remaining: float
    session_duration: float
    elapsed: float
    cars_reached: int
    cars_missed: int
    reactions: Mapping[str, int]
    last_reaction_time: float
    confidence: float
    group_size: int
    arm_fatigue: float
    active_arm: Arm
    is_resting: bool
    is_raised: bool
    weather_state: WeatherState
    sign_degradation: float
    events_triggered: tuple[EventKind, ...]
    is_session_active: bool
    end_reason: EndReason | None

    @classmethod
    def of(cls, record: SessionRecord) -> "SessionSnapshot":
        data = record.model_dump()
        data["reactions"] = dict(record.reactions)
        data["events_triggered"] = tuple(record.events_triggered)
        return cls(**data)

    @field_validator("reactions", mode="after")
    @classmethod
    def _freeze_reactions(cls, v: Mapping[str, int]) -> Mapping[str, int]:
        # frozen=True blocks attribute assignment, not item writes
        return MappingProxyType(dict(v))

    @field_serializer("reactions")
    def _dump_reactions(self, v: Mapping[str, int]) -> dict[str, int]:
        return dict(v)
