"""Library-level exceptions. Normal session play never raises these."""


class CurbsideError(Exception):
    """Base class for Curbside errors."""
    pass


class TuningError(CurbsideError):
    """A tuning file could not be read or did not validate."""
    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Bad tuning file {path}: {reason}")
