"""Curbside: session rules engine for a timed street-corner protest."""

__version__ = "0.1.0"
