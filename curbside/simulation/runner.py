"""Headless session runner and transcript management."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ..state.event_bus import (
    ArmSwitched,
    CopCheckStarted,
    CopReplyShown,
    EventBanner,
    EventEnded,
    EventStarted,
    EventType,
    KarmaPhaseStarted,
    NpcLeft,
    RainStarted,
    ScoreChanged,
    SessionEnded,
    StateEvent,
    WeatherStateChanged,
)
from ..state.results import SessionResults, format_time
from .player import AutopilotPlayer
from .session import Session

DEFAULT_STEP = 1 / 30

# Per-frame value changes; too chatty for a transcript
NOISY_EVENTS = {
    EventType.TIME_CHANGED,
    EventType.CONFIDENCE_CHANGED,
    EventType.FATIGUE_CHANGED,
    EventType.SIGN_DEGRADATION_CHANGED,
    EventType.EVENT_RECORDED,
}


@dataclass
class TranscriptEntry:
    """A single notable moment in the session."""

    elapsed: float
    event_type: EventType
    summary: str


@dataclass
class SessionTranscript:
    """Complete record of a headless run."""

    persona: str = "savvy"
    difficulty: str = "Regular"
    material: str = "Posterboard"
    started_at: datetime = field(default_factory=datetime.now)
    entries: list[TranscriptEntry] = field(default_factory=list)
    results: SessionResults | None = None
    player_stats: dict = field(default_factory=dict)

    def add(self, elapsed: float, event: StateEvent) -> None:
        if event.type in NOISY_EVENTS:
            return
        self.entries.append(TranscriptEntry(
            elapsed=elapsed,
            event_type=event.type,
            summary=summarize(event),
        ))

    def to_markdown(self) -> str:
        """Convert transcript to markdown format."""
        lines = [
            "# Session Transcript",
            "",
            f"- **Date:** {self.started_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"- **Persona:** {self.persona}",
            f"- **Difficulty:** {self.difficulty}",
            f"- **Sign:** {self.material}",
            "",
            "---",
            "",
            "## Timeline",
            "",
        ]

        for entry in self.entries:
            lines.append(f"- `{format_time(entry.elapsed)}` {entry.summary}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        if self.results:
            snap = self.results.snapshot
            lines.append(f"- **Grade:** {self.results.grade}")
            lines.append(f"- **Score:** {snap.score}")
            lines.append(f"- **Ended by:** {snap.end_reason.value if snap.end_reason else 'n/a'}")
            lines.append(f"- **Time survived:** {format_time(self.results.time_survived)}")
            lines.append(f"- **Confidence:** {snap.confidence:.0f}%")
            lines.append(f"- **Events:** {', '.join(k.value for k in snap.events_triggered) or 'none'}")
        if self.player_stats:
            lines.append(f"- **Cop answers (right/wrong):** "
                         f"{self.player_stats.get('answered_correctly', 0)}/"
                         f"{self.player_stats.get('answered_wrong', 0)}")
            lines.append(f"- **Rests:** {self.player_stats.get('rests', 0)}")
            lines.append(f"- **Arm switches:** {self.player_stats.get('arm_switches', 0)}")
        lines.append("")

        return "\n".join(lines)

    def save(self, transcripts_dir: Path) -> Path:
        """Save transcript to file. Returns the file path."""
        transcripts_dir.mkdir(parents=True, exist_ok=True)

        timestamp = self.started_at.strftime("%Y-%m-%d_%H%M%S")
        filepath = transcripts_dir / f"session_{timestamp}_{self.persona}.md"

        filepath.write_text(self.to_markdown(), encoding="utf-8")
        return filepath


def summarize(event: StateEvent) -> str:
    """One-line, human-readable description of a notification."""
    if isinstance(event, EventStarted):
        return f"Event started: {event.kind.value}"
    if isinstance(event, EventEnded):
        return f"Event ended: {event.kind.value}"
    if isinstance(event, CopCheckStarted):
        return f"{event.scenario.description} {event.scenario.opening_line}"
    if isinstance(event, CopReplyShown):
        return f"You: {event.option_text} / Officer: {event.reply_text}"
    if isinstance(event, KarmaPhaseStarted):
        return event.phase.banner_text
    if isinstance(event, EventBanner):
        return event.text
    if isinstance(event, RainStarted):
        return f"Rain for {event.duration:.0f}s"
    if isinstance(event, WeatherStateChanged):
        return f"Weather: {event.weather.value}"
    if isinstance(event, NpcLeft):
        return f"A protester gave up. Group size {event.group_size}"
    if isinstance(event, ScoreChanged):
        return f"Score {event.delta:+d} → {event.value}"
    if isinstance(event, ArmSwitched):
        return f"Switched to {event.arm.value} arm"
    if isinstance(event, SessionEnded):
        return f"Session over ({event.reason.value})"
    return event.type.value


def run_session(
    session: Session,
    player: AutopilotPlayer | None = None,
    step: float = DEFAULT_STEP,
) -> SessionTranscript:
    """
    Run a session to its end at a fixed step.

    Args:
        session: A freshly built session
        player: Autopilot that answers events; None plays hands-off
        step: Simulated seconds per frame

    Returns:
        SessionTranscript with the notable moments and final results
    """
    if step <= 0:
        raise ValueError("step must be positive")

    transcript = SessionTranscript(
        persona=player.persona_name if player else "none",
        difficulty=session.difficulty.label,
        material=session.material.label,
    )

    def record(event: StateEvent) -> None:
        transcript.add(session.state.elapsed, event)

    session.bus.on_all(record)
    try:
        while session.state.is_active:
            if player:
                player.act(session, step)
            session.tick(step)
    finally:
        for event_type in EventType:
            session.bus.off(event_type, record)

    transcript.results = session.results()
    if player:
        transcript.player_stats = player.get_stats()
    return transcript
