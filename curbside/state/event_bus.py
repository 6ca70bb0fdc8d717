"""
Event bus for Curbside state changes.

Provides decoupled communication between the session engine and the
presentation layer (rendering, audio, HUD). Presentation subscribes and
reacts; it never mutates state.

Every notification is a small frozen dataclass tagged with its EventType,
so handlers can match on the payload class instead of string names.

Usage:
    from .event_bus import EventBus, EventType, ConfidenceChanged

    bus = EventBus()
    bus.on(EventType.CONFIDENCE_CHANGED, my_handler)

    # Emit (in SessionState when confidence moves)
    bus.emit(ConfidenceChanged(value=42.0, delta=-3.0))

    # Handler receives the payload
    def my_handler(event: ConfidenceChanged):
        print(f"Confidence now {event.value}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, ClassVar, Union

from .schema import Arm, EndReason, EventKind, WeatherState

if TYPE_CHECKING:
    from .schema import SessionSnapshot
    from .tuning import CopCheckScenario, KarmaPhase

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Notifications that can be published."""

    # Score and time
    SCORE_CHANGED = "score.changed"
    TIME_CHANGED = "time.changed"

    # Confidence
    CONFIDENCE_CHANGED = "confidence.changed"
    CONFIDENCE_ZERO = "confidence.zero"
    GROUP_SIZE_CHANGED = "group.size_changed"

    # Reactions
    REACTION = "reaction.recorded"
    CAR_MISSED = "reaction.car_missed"

    # Arm fatigue
    FATIGUE_CHANGED = "fatigue.changed"
    FATIGUE_MAXED = "fatigue.maxed"
    ARM_SWITCHED = "arm.switched"
    REST_STARTED = "rest.started"
    REST_ENDED = "rest.ended"
    SIGN_RAISED = "sign.raised"
    SIGN_LOWERED = "sign.lowered"

    # Weather
    WEATHER_STATE_CHANGED = "weather.changed"
    SIGN_DEGRADATION_CHANGED = "sign.degraded"
    RAIN_STARTED = "weather.rain_started"
    NPC_LEFT = "weather.npc_left"

    # Scheduler lifecycle
    EVENT_RECORDED = "event.recorded"
    EVENT_STARTED = "event.started"
    EVENT_ENDED = "event.ended"
    EVENT_BANNER = "event.banner"
    COP_CHECK_STARTED = "cop_check.started"
    COP_REPLY = "cop_check.reply"
    KARMA_PHASE = "karma.phase"

    # Session
    SESSION_END = "session.ended"
    STATE_RESET = "session.reset"


# -----------------------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreChanged:
    type: ClassVar[EventType] = EventType.SCORE_CHANGED
    value: int
    delta: int


@dataclass(frozen=True)
class TimeChanged:
    type: ClassVar[EventType] = EventType.TIME_CHANGED
    value: float
    delta: float


@dataclass(frozen=True)
class ConfidenceChanged:
    type: ClassVar[EventType] = EventType.CONFIDENCE_CHANGED
    value: float
    delta: float


@dataclass(frozen=True)
class ConfidenceZero:
    type: ClassVar[EventType] = EventType.CONFIDENCE_ZERO


@dataclass(frozen=True)
class GroupSizeChanged:
    type: ClassVar[EventType] = EventType.GROUP_SIZE_CHANGED
    value: int
    delta: int


@dataclass(frozen=True)
class ReactionRecorded:
    type: ClassVar[EventType] = EventType.REACTION
    reaction_id: str
    score_value: int


@dataclass(frozen=True)
class CarMissed:
    type: ClassVar[EventType] = EventType.CAR_MISSED
    total: int


@dataclass(frozen=True)
class FatigueChanged:
    type: ClassVar[EventType] = EventType.FATIGUE_CHANGED
    value: float
    delta: float


@dataclass(frozen=True)
class FatigueMaxed:
    type: ClassVar[EventType] = EventType.FATIGUE_MAXED


@dataclass(frozen=True)
class ArmSwitched:
    type: ClassVar[EventType] = EventType.ARM_SWITCHED
    arm: Arm


@dataclass(frozen=True)
class RestStarted:
    type: ClassVar[EventType] = EventType.REST_STARTED


@dataclass(frozen=True)
class RestEnded:
    type: ClassVar[EventType] = EventType.REST_ENDED


@dataclass(frozen=True)
class SignRaised:
    type: ClassVar[EventType] = EventType.SIGN_RAISED


@dataclass(frozen=True)
class SignLowered:
    type: ClassVar[EventType] = EventType.SIGN_LOWERED


@dataclass(frozen=True)
class WeatherStateChanged:
    type: ClassVar[EventType] = EventType.WEATHER_STATE_CHANGED
    weather: WeatherState


@dataclass(frozen=True)
class SignDegradationChanged:
    type: ClassVar[EventType] = EventType.SIGN_DEGRADATION_CHANGED
    value: float
    delta: float


@dataclass(frozen=True)
class RainStarted:
    type: ClassVar[EventType] = EventType.RAIN_STARTED
    duration: float


@dataclass(frozen=True)
class NpcLeft:
    type: ClassVar[EventType] = EventType.NPC_LEFT
    group_size: int


@dataclass(frozen=True)
class EventRecorded:
    type: ClassVar[EventType] = EventType.EVENT_RECORDED
    kind: EventKind


@dataclass(frozen=True)
class EventStarted:
    type: ClassVar[EventType] = EventType.EVENT_STARTED
    kind: EventKind


@dataclass(frozen=True)
class EventEnded:
    type: ClassVar[EventType] = EventType.EVENT_ENDED
    kind: EventKind


@dataclass(frozen=True)
class EventBanner:
    type: ClassVar[EventType] = EventType.EVENT_BANNER
    text: str
    duration: float


@dataclass(frozen=True)
class CopCheckStarted:
    type: ClassVar[EventType] = EventType.COP_CHECK_STARTED
    scenario: "CopCheckScenario"


@dataclass(frozen=True)
class CopReplyShown:
    type: ClassVar[EventType] = EventType.COP_REPLY
    option_text: str
    reply_text: str
    is_correct: bool
    dismiss_delay: float
    timed_out: bool = False


@dataclass(frozen=True)
class KarmaPhaseStarted:
    type: ClassVar[EventType] = EventType.KARMA_PHASE
    index: int
    phase: "KarmaPhase"


@dataclass(frozen=True)
class SessionEnded:
    type: ClassVar[EventType] = EventType.SESSION_END
    reason: EndReason
    snapshot: "SessionSnapshot"


@dataclass(frozen=True)
class StateReset:
    type: ClassVar[EventType] = EventType.STATE_RESET


StateEvent = Union[
    ScoreChanged, TimeChanged,
    ConfidenceChanged, ConfidenceZero, GroupSizeChanged,
    ReactionRecorded, CarMissed,
    FatigueChanged, FatigueMaxed, ArmSwitched,
    RestStarted, RestEnded, SignRaised, SignLowered,
    WeatherStateChanged, SignDegradationChanged, RainStarted, NpcLeft,
    EventRecorded, EventStarted, EventEnded, EventBanner,
    CopCheckStarted, CopReplyShown, KarmaPhaseStarted,
    SessionEnded, StateReset,
]

# Type alias for event handlers
EventHandler = Callable[[StateEvent], None]


class EventBus:
    """
    Synchronous event bus for one session.

    Listeners are called immediately on emit(), in subscription order.

    Design decisions:
    - Synchronous: matches the single-threaded frame tick
    - Type-safe: EventType enum plus one payload class per type
    - Owned: each Session builds its own bus and hands it to subsystems
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[StateEvent] = []
        self._history_limit = history_limit  # Keep last N events for debugging

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The type of event to listen for
            handler: Callback that receives the payload
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def on_all(self, handler: EventHandler) -> None:
        """Subscribe one handler to every event type."""
        for event_type in EventType:
            self.on(event_type, handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Unsubscribe from an event type.

        Args:
            event_type: The event type to unsubscribe from
            handler: The handler to remove
        """
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(self, event: StateEvent) -> StateEvent:
        """
        Emit an event to all subscribers.

        Returns:
            The emitted payload (for chaining/testing)
        """
        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        # Copy so a handler may unsubscribe itself mid-delivery
        for handler in list(self._listeners.get(event.type, [])):
            try:
                handler(event)
            except Exception:
                # One bad listener shouldn't break the others
                logger.exception("Error in handler for %s", event.type.value)

        return event

    def clear(self) -> None:
        """Clear all listeners. Used on teardown and in tests."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[StateEvent]:
        """
        Get recent event history.

        Args:
            event_type: Filter by type, or None for all events
        """
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        """Get number of listeners for an event type."""
        return len(self._listeners.get(event_type, []))
