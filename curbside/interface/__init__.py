"""Command line and tuning file loading."""

from .config import load_tuning, dump_tuning

__all__ = ["load_tuning", "dump_tuning"]
