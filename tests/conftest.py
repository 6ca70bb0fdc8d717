"""
Pytest fixtures for Curbside tests.

Everything runs on simulated time: tests drive update(dt) directly and
inject seeded random.Random instances.
"""

import random
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from curbside.state import (
    EventBus,
    EventType,
    SessionState,
    TimerRegistry,
    get_difficulty,
    get_material,
)
from curbside.state.tuning import (
    CopCheckScenario,
    CopDialogueOption,
    EventScheduleTuning,
)
from curbside.systems import EventScheduler, WeatherSimulation


def scripted_random(values, seed: int = 0) -> Mock:
    """
    Random source whose random() returns scripted values first.

    Everything else (randint, choice, uniform) goes to a seeded generator.
    """
    real = random.Random(seed)
    queue = list(values)
    rng = Mock(wraps=real)
    rng.random.side_effect = lambda: queue.pop(0) if queue else real.random()
    return rng


class Recorder:
    """Collects every payload emitted on a bus."""

    def __init__(self, bus: EventBus):
        self.events = []
        bus.on_all(self.events.append)

    def of(self, event_type: EventType) -> list:
        return [e for e in self.events if e.type == event_type]

    def count(self, event_type: EventType) -> int:
        return len(self.of(event_type))


@pytest.fixture
def bus():
    """Fresh event bus."""
    return EventBus()


@pytest.fixture
def recorder(bus):
    """Records everything emitted on the bus fixture."""
    return Recorder(bus)


@pytest.fixture
def state(bus):
    """Two-minute session state on the bus fixture."""
    return SessionState(120.0, bus)


@pytest.fixture
def timers():
    return TimerRegistry()


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def medium():
    return get_difficulty("medium")


@pytest.fixture
def posterboard():
    return get_material("posterboard")


@pytest.fixture
def weather(state, posterboard, medium, rng):
    return WeatherSimulation(state, posterboard, medium, rng=rng)


@pytest.fixture
def plus_ten_scenario():
    """Cop check with one +10 confidence answer and one wrong answer."""
    return CopCheckScenario(
        description="An officer approaches.",
        opening_line="\"Got a permit?\"",
        options=[
            CopDialogueOption(
                text="\"I don't need one.\"",
                is_correct=True,
                confidence_delta=10,
                score_delta=0,
                reply_text="\"Carry on.\"",
                dismiss_delay_seconds=3,
            ),
            CopDialogueOption(
                text="\"Sorry.\"",
                is_correct=False,
                confidence_delta=-20,
                score_delta=-10,
                reply_text="\"Thanks.\"",
                dismiss_delay_seconds=8,
            ),
        ],
        auto_resolve_seconds=15,
        auto_resolve_penalty=-10,
    )


@pytest.fixture
def make_scheduler(state, weather, timers, medium, plus_ten_scenario):
    """Factory for schedulers on the shared state. Keyword args override tuning."""
    def _make(rng=None, cop_scenarios=None, **tuning_overrides):
        tuning = EventScheduleTuning(**tuning_overrides)
        return EventScheduler(
            state,
            weather,
            timers,
            medium,
            tuning=tuning,
            cop_scenarios=cop_scenarios or [plus_ten_scenario],
            rng=rng or random.Random(99),
            dev_mode=False,
        )
    return _make


@pytest.fixture
def scripted_rng():
    """Factory: scripted_rng([0.1, 0.9]) returns those from random() first."""
    return scripted_random
