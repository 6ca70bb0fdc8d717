"""
Cancellable one-shot timers for a session.

Deferred work ("dismiss this dialogue in 3 seconds") is scheduled here
instead of on a UI host's clock. The Session advances the registry once per
tick and cancels everything on teardown, so no callback can fire into a
state object that no longer exists.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class TimerHandle:
    """A scheduled callback. Keep it to cancel later."""
    id: int
    due: float
    callback: Callable[[], None] = field(repr=False)
    label: str = ""
    cancelled: bool = False
    fired: bool = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class TimerRegistry:
    """
    Session-owned registry of deferred one-shot callbacks.

    Time only moves when advance() is called; there is no wall clock.
    """

    def __init__(self):
        self._now = 0.0
        self._timers: list[TimerHandle] = []
        self._ids = itertools.count(1)

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if t.active)

    def schedule(
        self,
        delay: float,
        callback: Callable[[], None],
        label: str = "",
    ) -> TimerHandle:
        """Run callback once, delay seconds from now."""
        handle = TimerHandle(
            id=next(self._ids),
            due=self._now + max(0.0, delay),
            callback=callback,
            label=label,
        )
        self._timers.append(handle)
        logger.debug("Timer %d scheduled: %s in %.2fs", handle.id, label, delay)
        return handle

    def cancel(self, handle: TimerHandle | None) -> bool:
        """Cancel a pending timer. Returns True if it was still pending."""
        if handle is None or not handle.active:
            return False
        handle.cancelled = True
        self._timers = [t for t in self._timers if t is not handle]
        return True

    def cancel_all(self) -> int:
        """Cancel every pending timer. Returns how many were cancelled."""
        count = 0
        for handle in self._timers:
            if handle.active:
                handle.cancelled = True
                count += 1
        self._timers = []
        return count

    def advance(self, dt: float) -> int:
        """
        Move time forward and fire every timer that came due.

        Timers fire in due order. A timer scheduled by a callback during this
        call waits for the next advance even if its delay is zero.

        Returns:
            Number of callbacks fired
        """
        self._now += dt
        due = sorted(
            (t for t in self._timers if t.active and t.due <= self._now),
            key=lambda t: (t.due, t.id),
        )
        fired = 0
        for handle in due:
            # An earlier callback may have cancelled this one
            if not handle.active:
                continue
            handle.fired = True
            self._timers = [t for t in self._timers if t is not handle]
            handle.callback()
            fired += 1
        return fired
