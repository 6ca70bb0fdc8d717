"""Session state for Curbside."""

from .schema import (
    Arm,
    WeatherState,
    EndReason,
    EventKind,
    SchedulerState,
    REACTION_IDS,
    SessionRecord,
    SessionSnapshot,
)
from .tuning import (
    Difficulty,
    SignMaterial,
    ConfidenceTuning,
    FatigueTuning,
    WeatherTuning,
    EventScheduleTuning,
    CopDialogueOption,
    CopCheckScenario,
    KarmaPhase,
    KarmaTuning,
    SessionTuning,
    get_difficulty,
    get_material,
    check_tuning,
)
from .event_bus import EventBus, EventType, StateEvent
from .manager import SessionState
from .timers import TimerRegistry, TimerHandle
from .results import SessionResults, get_score_grade, format_time

__all__ = [
    # Schema
    "Arm",
    "WeatherState",
    "EndReason",
    "EventKind",
    "SchedulerState",
    "REACTION_IDS",
    "SessionRecord",
    "SessionSnapshot",
    # Tuning
    "Difficulty",
    "SignMaterial",
    "ConfidenceTuning",
    "FatigueTuning",
    "WeatherTuning",
    "EventScheduleTuning",
    "CopDialogueOption",
    "CopCheckScenario",
    "KarmaPhase",
    "KarmaTuning",
    "SessionTuning",
    "get_difficulty",
    "get_material",
    "check_tuning",
    # Event Bus
    "EventBus",
    "EventType",
    "StateEvent",
    # Manager
    "SessionState",
    # Timers
    "TimerRegistry",
    "TimerHandle",
    # Results
    "SessionResults",
    "get_score_grade",
    "format_time",
]
