"""
Tuning values for Curbside systems.

Every subsystem reads its tuning at use time, so a live tuning tool may
assign new values between ticks. Assignments are validated.

Defaults match the shipped game balance.
"""

from pydantic import BaseModel, ConfigDict, Field

from .schema import EventKind


class Tuning(BaseModel):
    """Base for live-tunable config blocks."""
    model_config = ConfigDict(validate_assignment=True, extra="forbid")


# -----------------------------------------------------------------------------
# Difficulty and sign material
# -----------------------------------------------------------------------------

class Difficulty(Tuning):
    """Multipliers applied on top of base tuning. Systems never branch on tier."""
    label: str
    vibe: str = ""
    event_frequency_multiplier: float = Field(1.0, ge=0)
    fatigue_drain_multiplier: float = Field(1.0, ge=0)
    weather_durability_multiplier: float = Field(1.0, gt=0)


DIFFICULTY_EASY = Difficulty(
    label="First Time Out",
    vibe="Your first protest. Manageable.",
    event_frequency_multiplier=0.5,
    fatigue_drain_multiplier=0.6,
    weather_durability_multiplier=1.4,
)

DIFFICULTY_MEDIUM = Difficulty(
    label="Regular",
    vibe="The real experience. Balanced.",
    event_frequency_multiplier=1.0,
    fatigue_drain_multiplier=1.0,
    weather_durability_multiplier=1.0,
)

DIFFICULTY_HARD = Difficulty(
    label="Rush Hour",
    vibe="Sunday 4-6 PM on the overpass. Chaos.",
    event_frequency_multiplier=1.5,
    fatigue_drain_multiplier=1.5,
    weather_durability_multiplier=0.7,
)

DIFFICULTIES: dict[str, Difficulty] = {
    "easy": DIFFICULTY_EASY,
    "medium": DIFFICULTY_MEDIUM,
    "hard": DIFFICULTY_HARD,
}


def get_difficulty(tier: str) -> Difficulty:
    """Fresh copy of a difficulty preset, safe to tune live."""
    return DIFFICULTIES[tier].model_copy()


class SignMaterial(Tuning):
    """What the sign is made of. Weight drives fatigue, durability resists rain."""
    id: str
    label: str
    fatigue_multiplier: float = Field(1.0, ge=0)
    durability: float = Field(1.0, gt=0)


SIGN_MATERIALS: dict[str, SignMaterial] = {
    "cardboard": SignMaterial(
        id="cardboard", label="Cardboard", fatigue_multiplier=0.8, durability=0.6,
    ),
    "posterboard": SignMaterial(
        id="posterboard", label="Posterboard", fatigue_multiplier=1.0, durability=1.0,
    ),
    "foamboard": SignMaterial(
        id="foamboard", label="Foam Board", fatigue_multiplier=1.4, durability=1.6,
    ),
}


def get_material(material_id: str) -> SignMaterial:
    return SIGN_MATERIALS[material_id].model_copy()


# -----------------------------------------------------------------------------
# Per-system tuning
# -----------------------------------------------------------------------------

class ConfidenceTuning(Tuning):
    starting_confidence: float = Field(30.0, ge=0, le=100)
    min: float = 0.0
    max: float = 100.0
    reaction_to_confidence_multiplier: float = 0.8
    no_drain_grace_period: float = Field(5.0, ge=0)
    no_reaction_drain_rate: float = Field(1.5, ge=0)
    group_size_floor_bonus: float = Field(3.0, ge=0)
    default_group_size: int = Field(3, ge=0)


class FatigueTuning(Tuning):
    base_drain_rate: float = Field(2.0, ge=0)
    switch_arm_recovery: float = Field(25.0, ge=0)
    switch_arm_cooldown: float = Field(3.0, ge=0)
    rest_recovery_rate: float = Field(8.0, ge=0)
    rest_visibility_factor: float = Field(0.3, ge=0, le=1)
    raise_drain_rate: float = Field(6.0, ge=0)
    cone_width_fresh: float = 60.0
    cone_width_exhausted: float = 30.0
    cone_shrink_threshold: float = Field(40.0, ge=0, lt=100)


class WeatherTuning(Tuning):
    rain_sign_drain_rate: float = Field(3.0, ge=0)
    max_sign_degradation: float = Field(0.8, ge=0, le=1)
    rain_negative_shift: float = 0.1
    npc_leave_chance_per_second: float = Field(0.08, ge=0, le=1)
    npc_leave_cooldown: float = Field(3.0, ge=0)
    min_npc_count: int = Field(1, ge=0)
    rain_duration_min: int = Field(20, ge=0)
    rain_duration_max: int = Field(40, ge=0)
    rain_confidence_drain: float = Field(0.5, ge=0)


class EventScheduleTuning(Tuning):
    first_event_min_time: float = 25.0
    first_event_max_time: float = 50.0
    min_event_spacing: float = 25.0
    max_events_per_session: int = 4
    base_trigger_chance_per_second: float = Field(0.04, ge=0)
    # Relative weights, not required to sum to 1
    event_weights: dict[EventKind, float] = Field(default_factory=lambda: {
        EventKind.COP_CHECK: 0.4,
        EventKind.WEATHER: 0.35,
        EventKind.KARMA: 0.25,
    })
    guaranteed_events: list[EventKind] = Field(
        default_factory=lambda: [EventKind.COP_CHECK],
    )
    # Remaining seconds under which a missing guaranteed event is forced
    guarantee_urgency_time: float = 30.0
    # Same, once max_events_per_session has been reached
    guarantee_capped_urgency_time: float = 20.0
    cop_check_min_confidence: float = 20.0
    karma_min_time: float = 60.0


# -----------------------------------------------------------------------------
# Cop check scenarios
# -----------------------------------------------------------------------------

class CopDialogueOption(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    is_correct: bool
    confidence_delta: float
    score_delta: int
    reply_text: str
    dismiss_delay_seconds: float = Field(ge=0)


class CopCheckScenario(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str
    opening_line: str
    options: list[CopDialogueOption] = Field(min_length=1)
    auto_resolve_seconds: float = Field(15.0, gt=0)
    auto_resolve_penalty: float = -10.0


# Reply shown when the player never answers
FROZE_OPTION_TEXT = "(You froze up)"
FROZE_REPLY_TEXT = "\"...I'll be back.\" The officer walks away."
FROZE_DISMISS_SECONDS = 3.0


COP_CHECK_SCENARIOS: list[CopCheckScenario] = [
    CopCheckScenario(
        description="A police officer approaches you.",
        opening_line="\"Excuse me. You need a permit to be out here.\"",
        options=[
            CopDialogueOption(
                text="\"The First Amendment protects my right to protest in public spaces without a permit.\"",
                is_correct=True,
                confidence_delta=15,
                score_delta=50,
                reply_text="\"...Alright. Just keep the sidewalk clear.\"",
                dismiss_delay_seconds=3,
            ),
            CopDialogueOption(
                text="\"Oh, sorry officer. I'll pack up.\"",
                is_correct=False,
                confidence_delta=-20,
                score_delta=-10,
                reply_text="\"Appreciate the cooperation.\"",
                dismiss_delay_seconds=8,
            ),
            CopDialogueOption(
                text="\"Am I being detained? I'd like your badge number.\"",
                is_correct=False,
                confidence_delta=5,
                score_delta=10,
                reply_text="\"Nobody's being detained. Just checking in.\"",
                dismiss_delay_seconds=6,
            ),
        ],
    ),
    CopCheckScenario(
        description="A police officer walks over, arms crossed.",
        opening_line="\"We've gotten some complaints about you blocking traffic.\"",
        options=[
            CopDialogueOption(
                text="\"I'm on the sidewalk, which is a traditional public forum. I have a constitutional right to be here.\"",
                is_correct=True,
                confidence_delta=15,
                score_delta=50,
                reply_text="\"...Fair enough. Stay on the sidewalk.\"",
                dismiss_delay_seconds=3,
            ),
            CopDialogueOption(
                text="\"I didn't mean to cause trouble. I'll move.\"",
                is_correct=False,
                confidence_delta=-15,
                score_delta=-10,
                reply_text="\"Probably for the best.\"",
                dismiss_delay_seconds=8,
            ),
            CopDialogueOption(
                text="\"I'm not blocking anything. People just don't like my sign.\"",
                is_correct=False,
                confidence_delta=0,
                score_delta=5,
                reply_text="\"Well... keep it peaceful.\"",
                dismiss_delay_seconds=5,
            ),
        ],
    ),
    CopCheckScenario(
        description="An officer pulls up in a cruiser.",
        opening_line="\"I need to see some ID. What organization are you with?\"",
        options=[
            CopDialogueOption(
                text="\"I'm not required to show ID for exercising my First Amendment rights. I'm an individual citizen.\"",
                is_correct=True,
                confidence_delta=15,
                score_delta=50,
                reply_text="\"...Okay. Carry on.\"",
                dismiss_delay_seconds=3,
            ),
            CopDialogueOption(
                text="\"Sure, here you go...\" *hands over ID*",
                is_correct=False,
                confidence_delta=-10,
                score_delta=0,
                reply_text="\"Alright, everything checks out. Have a good one.\"",
                dismiss_delay_seconds=10,
            ),
            CopDialogueOption(
                text="\"I'm with the Constitution of the United States.\"",
                is_correct=False,
                confidence_delta=10,
                score_delta=15,
                reply_text="*sighs* \"...Just stay out of the road.\"",
                dismiss_delay_seconds=4,
            ),
        ],
    ),
]


# -----------------------------------------------------------------------------
# Karma sequence
# -----------------------------------------------------------------------------

class KarmaPhase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str = ""
    duration_seconds: float = Field(ge=0)
    banner_text: str
    confidence_delta: float = 0.0
    score_delta: int = 0


class KarmaTuning(Tuning):
    phases: list[KarmaPhase]
    # Applied once after the last phase, on top of the per-phase deltas
    total_confidence_boost: float = 20.0


def default_karma() -> KarmaTuning:
    return KarmaTuning(
        phases=[
            KarmaPhase(
                description="A lifted truck with flags peels around the corner",
                duration_seconds=3,
                banner_text="*SCREEEECH* A lifted truck with flags tears around the corner...",
                confidence_delta=-5,
                score_delta=0,
            ),
            KarmaPhase(
                description="The truck does a burnout in the intersection, honking aggressively",
                duration_seconds=3,
                banner_text="The truck does a BURNOUT in the intersection! Smoke everywhere!",
                confidence_delta=-10,
                score_delta=-20,
            ),
            KarmaPhase(
                description="A police cruiser lights up behind the truck",
                duration_seconds=2,
                banner_text="...Wait. Red and blue lights behind them.",
                confidence_delta=5,
                score_delta=0,
            ),
            KarmaPhase(
                description="The cop pulls the truck over. The crowd erupts in cheers.",
                duration_seconds=4,
                banner_text="COP PULLS THEM OVER! The crowd goes WILD!",
                confidence_delta=30,
                score_delta=100,
            ),
        ],
        total_confidence_boost=20,
    )


# -----------------------------------------------------------------------------
# Bundle
# -----------------------------------------------------------------------------

class SessionTuning(BaseModel):
    """Every tuning block a session needs, as loaded from a tuning file."""
    model_config = ConfigDict(extra="forbid")

    confidence: ConfidenceTuning = Field(default_factory=ConfidenceTuning)
    fatigue: FatigueTuning = Field(default_factory=FatigueTuning)
    weather: WeatherTuning = Field(default_factory=WeatherTuning)
    events: EventScheduleTuning = Field(default_factory=EventScheduleTuning)
    karma: KarmaTuning = Field(default_factory=default_karma)
    cop_scenarios: list[CopCheckScenario] = Field(
        default_factory=lambda: [s.model_copy(deep=True) for s in COP_CHECK_SCENARIOS],
    )


def check_tuning(events: EventScheduleTuning, difficulty: Difficulty) -> list[str]:
    """
    Sanity-check scheduling tuning.

    Returns human-readable diagnostics. Never raises; callers decide whether
    to surface them (development builds log them as warnings).
    """
    issues: list[str] = []

    total = sum(events.event_weights.values())
    if abs(total - 1.0) > 0.01:
        issues.append(
            f"event weights sum to {total:.2f}, expected ~1.0 "
            "(weights are used as relative weights)"
        )
    if events.min_event_spacing <= 0:
        issues.append("min_event_spacing should be positive")
    if events.max_events_per_session < 1:
        issues.append("max_events_per_session should be >= 1")
    if events.first_event_min_time > events.first_event_max_time:
        issues.append("first_event_min_time is greater than first_event_max_time")

    freq = difficulty.event_frequency_multiplier
    if freq < 0.1 or freq > 5.0:
        issues.append(
            f"event_frequency_multiplier {freq} outside sane range (0.1-5.0)"
        )

    return issues
