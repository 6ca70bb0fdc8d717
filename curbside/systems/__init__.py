"""
Simulation systems for Curbside.

Each system receives the session's SessionState at construction and mutates
it only through its guarded methods.
"""

from .confidence import ConfidenceSimulation
from .fatigue import FatigueSimulation
from .weather import WeatherSimulation
from .cop_check import CopCheckEncounter, CopCheckPhase
from .karma import KarmaSequence
from .scheduler import EventScheduler

__all__ = [
    "ConfidenceSimulation",
    "FatigueSimulation",
    "WeatherSimulation",
    "CopCheckEncounter",
    "CopCheckPhase",
    "KarmaSequence",
    "EventScheduler",
]
