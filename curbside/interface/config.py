"""
Tuning file loading.

A tuning file is YAML whose top-level keys override the built-in defaults:

    confidence:
      no_reaction_drain_rate: 2.0
    events:
      min_event_spacing: 20
      event_weights: {cop_check: 0.5, weather: 0.3, karma: 0.2}

Keys left out keep their default values. Misspelled keys inside a block are
rejected rather than silently ignored.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..errors import TuningError
from ..state.tuning import SessionTuning

logger = logging.getLogger(__name__)

TUNING_KEYS = ("confidence", "fatigue", "weather", "events", "karma", "cop_scenarios")


def load_tuning(path: Path | str | None, strict: bool = False) -> SessionTuning:
    """
    Load session tuning from a YAML file.

    Args:
        path: Tuning file, or None for defaults
        strict: Raise TuningError instead of falling back to defaults

    Returns:
        SessionTuning with file overrides applied
    """
    if path is None:
        return SessionTuning()

    path = Path(path)
    if not path.exists():
        if strict:
            raise TuningError(path, "file not found")
        logger.debug("No tuning file at %s, using defaults", path)
        return SessionTuning()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise TuningError(path, "top level must be a mapping")

        unknown = set(data) - set(TUNING_KEYS)
        if unknown:
            logger.warning("Ignoring unknown tuning keys in %s: %s", path, ", ".join(sorted(unknown)))

        overrides = {key: data[key] for key in TUNING_KEYS if data.get(key) is not None}
        tuning = SessionTuning.model_validate(overrides)
    except (OSError, yaml.YAMLError, ValidationError, TuningError) as e:
        if strict:
            if isinstance(e, TuningError):
                raise
            raise TuningError(path, str(e)) from e
        logger.warning("Could not load tuning from %s, using defaults: %s", path, e)
        return SessionTuning()

    logger.info("Loaded tuning from %s", path)
    return tuning


def dump_tuning(tuning: SessionTuning, path: Path | str) -> Path:
    """Write tuning to a YAML file that load_tuning reads back."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(
            tuning.model_dump(mode="json"),
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    return path
