"""
Session state manager for Curbside.

Single source of truth for the running session. Every system reads from and
writes to the same SessionState, and only through its guarded mutators:

- Each mutator clamps its target to the valid range
- A write that leaves the value unchanged emits nothing
- A write that changes the value emits one typed notification on the bus
- Once the session has ended, gameplay values are frozen

Two ways to read:
- snapshot(): immutable copy of the whole record, for consumers that need
  several fields at once
- properties (confidence, arm_fatigue, ...): one hot field, for per-tick loops
"""

import logging

from .event_bus import (
    ArmSwitched,
    CarMissed,
    ConfidenceChanged,
    ConfidenceZero,
    EventBus,
    EventRecorded,
    FatigueChanged,
    FatigueMaxed,
    GroupSizeChanged,
    ReactionRecorded,
    RestEnded,
    RestStarted,
    ScoreChanged,
    SessionEnded,
    SignDegradationChanged,
    SignLowered,
    SignRaised,
    TimeChanged,
    WeatherStateChanged,
)
from .schema import (
    Arm,
    EndReason,
    EventKind,
    SessionRecord,
    SessionSnapshot,
    WeatherState,
)
from .tuning import ConfidenceTuning

logger = logging.getLogger(__name__)

# Fatigue is a fixed 0-100 scale, not a tuning knob
FATIGUE_MIN = 0.0
FATIGUE_MAX = 100.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class SessionState:
    """
    Guarded store for one session's record.

    Owned by the session and passed explicitly to every subsystem.
    Purely synchronous; the only side effect of a mutator is emission.
    """

    def __init__(
        self,
        session_duration: float,
        bus: EventBus,
        confidence_tuning: ConfidenceTuning | None = None,
    ):
        self._bus = bus
        self._confidence = confidence_tuning or ConfidenceTuning()
        self._record = SessionRecord(
            time_remaining=session_duration,
            session_duration=session_duration,
            confidence=self._confidence.starting_confidence,
            group_size=self._confidence.default_group_size,
        )

    # ─── Reads ───────────────────────────────────────────────────

    def snapshot(self) -> SessionSnapshot:
        """Immutable copy of the full record."""
        return SessionSnapshot.of(self._record)

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def confidence_tuning(self) -> ConfidenceTuning:
        return self._confidence

    @property
    def is_active(self) -> bool:
        return self._record.is_session_active

    @property
    def end_reason(self) -> EndReason | None:
        return self._record.end_reason

    @property
    def score(self) -> int:
        return self._record.score

    @property
    def elapsed(self) -> float:
        return self._record.elapsed

    @property
    def time_remaining(self) -> float:
        return self._record.time_remaining

    @property
    def session_duration(self) -> float:
        return self._record.session_duration

    @property
    def confidence(self) -> float:
        return self._record.confidence

    @property
    def group_size(self) -> int:
        return self._record.group_size

    @property
    def arm_fatigue(self) -> float:
        return self._record.arm_fatigue

    @property
    def active_arm(self) -> Arm:
        return self._record.active_arm

    @property
    def is_resting(self) -> bool:
        return self._record.is_resting

    @property
    def is_raised(self) -> bool:
        return self._record.is_raised

    @property
    def weather_state(self) -> WeatherState:
        return self._record.weather_state

    @property
    def sign_degradation(self) -> float:
        return self._record.sign_degradation

    @property
    def events_triggered(self) -> tuple[EventKind, ...]:
        return tuple(self._record.events_triggered)

    def reaction_count(self, reaction_id: str) -> int:
        return self._record.reactions.get(reaction_id, 0)

    def time_since_last_reaction(self) -> float:
        return self._record.elapsed - self._record.last_reaction_time

    def confidence_floor(self) -> float:
        """Passive drain never pushes confidence below this."""
        return self._record.group_size * self._confidence.group_size_floor_bonus

    # ─── Score & reactions ───────────────────────────────────────

    def add_score(self, value: int) -> None:
        if value == 0 or not self.is_active:
            return
        self._record.score += value
        self._bus.emit(ScoreChanged(value=self._record.score, delta=value))

    def record_reaction(self, reaction_id: str, score_value: int) -> None:
        """
        Record a passerby reaction.

        Unknown reaction ids still count as a reached car and still score,
        but are not tallied.
        """
        if not self.is_active:
            return
        if reaction_id in self._record.reactions:
            self._record.reactions[reaction_id] += 1
        self._record.cars_reached += 1
        self.add_score(score_value)
        self._record.last_reaction_time = self._record.elapsed
        self._bus.emit(ReactionRecorded(reaction_id=reaction_id, score_value=score_value))

    def record_missed_car(self) -> None:
        if not self.is_active:
            return
        self._record.cars_missed += 1
        self._bus.emit(CarMissed(total=self._record.cars_missed))

    # ─── Time ────────────────────────────────────────────────────

    def update_time(self, dt: float) -> None:
        """Count the session clock down. Ends the session at zero."""
        if not self.is_active or dt <= 0:
            return

        self._record.elapsed += dt
        prev = self._record.time_remaining
        self._record.time_remaining = max(0.0, prev - dt)
        self._bus.emit(TimeChanged(
            value=self._record.time_remaining,
            delta=self._record.time_remaining - prev,
        ))

        if self._record.time_remaining <= 0:
            self._end_session(EndReason.TIME)

    # ─── Confidence ──────────────────────────────────────────────

    def add_confidence(self, value: float) -> None:
        """Shift confidence. Reaching the floor ends the session."""
        if not self.is_active:
            return

        tuning = self._confidence
        prev = self._record.confidence
        new = clamp(prev + value, tuning.min, tuning.max)
        if new == prev:
            return

        self._record.confidence = new
        self._bus.emit(ConfidenceChanged(value=new, delta=new - prev))

        if new <= tuning.min:
            self._bus.emit(ConfidenceZero())
            self._end_session(EndReason.CONFIDENCE)

    def set_group_size(self, size: int) -> None:
        if not self.is_active:
            return
        new = max(0, size)
        prev = self._record.group_size
        if new == prev:
            return
        self._record.group_size = new
        self._bus.emit(GroupSizeChanged(value=new, delta=new - prev))

    # ─── Weather ─────────────────────────────────────────────────

    def set_weather_state(self, weather: WeatherState) -> None:
        if self._record.weather_state == weather:
            return
        self._record.weather_state = weather
        self._bus.emit(WeatherStateChanged(weather=weather))

    def set_sign_degradation(self, value: float) -> None:
        if not self.is_active:
            return
        prev = self._record.sign_degradation
        new = clamp(value, 0.0, 1.0)
        if new == prev:
            return
        self._record.sign_degradation = new
        self._bus.emit(SignDegradationChanged(value=new, delta=new - prev))

    def record_event(self, kind: EventKind) -> None:
        """Append to the session's event history. Never removes."""
        self._record.events_triggered.append(kind)
        self._bus.emit(EventRecorded(kind=kind))

    # ─── Arm fatigue ─────────────────────────────────────────────

    def set_arm_fatigue(self, value: float) -> None:
        if not self.is_active:
            return
        prev = self._record.arm_fatigue
        new = clamp(value, FATIGUE_MIN, FATIGUE_MAX)
        if new == prev:
            return
        self._record.arm_fatigue = new
        self._bus.emit(FatigueChanged(value=new, delta=new - prev))
        if new >= FATIGUE_MAX and prev < FATIGUE_MAX:
            self._bus.emit(FatigueMaxed())

    def switch_arm(self) -> None:
        self._record.active_arm = self._record.active_arm.other
        self._bus.emit(ArmSwitched(arm=self._record.active_arm))

    def set_resting(self, resting: bool) -> None:
        if self._record.is_resting == resting:
            return
        self._record.is_resting = resting
        # Can't be raised while resting
        if resting and self._record.is_raised:
            self._record.is_raised = False
            self._bus.emit(SignLowered())
        self._bus.emit(RestStarted() if resting else RestEnded())

    def set_raised(self, raised: bool) -> None:
        if self._record.is_raised == raised:
            return
        # Can't raise while resting
        if raised and self._record.is_resting:
            return
        self._record.is_raised = raised
        self._bus.emit(SignRaised() if raised else SignLowered())

    # ─── Lifecycle ───────────────────────────────────────────────

    def _end_session(self, reason: EndReason) -> None:
        if not self._record.is_session_active:
            return
        self._record.is_session_active = False
        self._record.end_reason = reason
        logger.info(
            "Session ended (%s) at %.1fs, score %d",
            reason.value, self._record.elapsed, self._record.score,
        )
        self._bus.emit(SessionEnded(reason=reason, snapshot=self.snapshot()))
