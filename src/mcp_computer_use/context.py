"""
Activity tracking shared between browser actions and the idle monitor.

Thread Safety:
    The clock is two independent attributes, not a locked pair. A reader may
    see `in_progress` updated before `last_activity`; the idle monitor only
    acts when `in_progress` is False, so a stale read can delay an idle close
    by one tick but never close a session that is in use.
"""

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ActivityClock:
    """
    Attributes:
        last_activity: time.monotonic() of the last action start or finish
        in_progress: True while an action (or the idle close) is running
    """

    last_activity: float = field(default_factory=time.monotonic)
    in_progress: bool = False

    def touch(self) -> None:
        """Mark an action as started."""
        self.in_progress = True
        self.last_activity = time.monotonic()

    def operation_complete(self) -> None:
        """Mark an action as finished; idle time counts from here."""
        self.last_activity = time.monotonic()
        self.in_progress = False

    def idle_seconds(self, now: Optional[float] = None) -> float:
        return (time.monotonic() if now is None else now) - self.last_activity


__all__ = [
    "ActivityClock",
]
