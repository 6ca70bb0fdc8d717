"""
Session host and headless play for Curbside.

Session wires state, systems and timers together and drives the tick.
The runner and autopilot let a whole session play out without a renderer.
"""

from .session import Session, SPEED_VALUES
from .personas import PERSONAS, get_persona
from .player import AutopilotPlayer
from .runner import SessionTranscript, TranscriptEntry, run_session, summarize

__all__ = [
    "Session",
    "SPEED_VALUES",
    "PERSONAS",
    "get_persona",
    "AutopilotPlayer",
    "SessionTranscript",
    "TranscriptEntry",
    "run_session",
    "summarize",
]
