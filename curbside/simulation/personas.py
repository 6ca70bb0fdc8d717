"""Scripted player personas for headless sessions."""

PERSONAS = {
    "savvy": {
        "name": "Savvy",
        "style": "Knows their rights. Answers fast, manages their arms.",
        "cop_choice": "correct",
        "answer_delay": 4.0,
        "switch_at": 60.0,   # Switch arms at this fatigue
        "rest_at": 85.0,     # Rest at this fatigue...
        "resume_at": 25.0,   # ...until it drops to this
        "raise_below": 35.0,  # Raise the sign while fatigue is under this
    },
    "timid": {
        "name": "Timid",
        "style": "Apologizes to the officer. Holds on until the arm gives out.",
        "cop_choice": "worst",
        "answer_delay": 8.0,
        "switch_at": None,
        "rest_at": 95.0,
        "resume_at": 50.0,
        "raise_below": None,
    },
    "frozen": {
        "name": "Frozen",
        "style": "Never answers. Never rests.",
        "cop_choice": None,
        "answer_delay": None,
        "switch_at": None,
        "rest_at": None,
        "resume_at": None,
        "raise_below": None,
    },
    "random": {
        "name": "Random",
        "style": "Picks any answer. Switches arms whenever it can.",
        "cop_choice": "random",
        "answer_delay": 6.0,
        "switch_at": 30.0,
        "rest_at": 90.0,
        "resume_at": 40.0,
        "raise_below": None,
    },
}


def get_persona(name: str) -> dict:
    """Persona settings. Unknown names fall back to savvy."""
    return PERSONAS.get(name, PERSONAS["savvy"])
