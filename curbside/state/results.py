"""End-of-session results handed to the score display."""

from dataclasses import dataclass

from pydantic import BaseModel

from .schema import SessionSnapshot


@dataclass(frozen=True)
class ScoreGrade:
    label: str
    min_score: int
    color: str


# Highest first
SCORE_GRADES: list[ScoreGrade] = [
    ScoreGrade("S", 2000, "#fbbf24"),
    ScoreGrade("A", 1200, "#22c55e"),
    ScoreGrade("B", 700, "#3b82f6"),
    ScoreGrade("C", 400, "#8b5cf6"),
    ScoreGrade("D", 200, "#f97316"),
    ScoreGrade("F", 0, "#ef4444"),
]


def get_score_grade(score: int) -> ScoreGrade:
    for grade in SCORE_GRADES:
        if score >= grade.min_score:
            return grade
    return SCORE_GRADES[-1]


def format_time(seconds: float) -> str:
    """Format seconds as m:ss."""
    seconds = max(0.0, seconds)
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


class SessionResults(BaseModel):
    """Final snapshot plus derived display values. Read-only by convention."""
    snapshot: SessionSnapshot
    grade: str
    grade_color: str
    time_survived: float

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionResults":
        grade = get_score_grade(snapshot.score)
        return cls(
            snapshot=snapshot,
            grade=grade.label,
            grade_color=grade.color,
            time_survived=snapshot.session_duration - snapshot.time_remaining,
        )

    @property
    def survived_full_session(self) -> bool:
        return self.snapshot.time_remaining <= 0
