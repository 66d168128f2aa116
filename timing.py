# =========  timing.py  =========
"""
Wall-clock helpers for the timeline.

`SystemClock` is the process-wide clock source; its `skew` can be nudged
at runtime (remote "offset" command) to rehearse live mode outside the
actual night.  `Debouncer` is the single pending-timer used to settle
video swaps.
"""

from __future__ import annotations

import time
from typing import Generic, Optional, Protocol, Tuple, TypeVar

T = TypeVar("T")


class ClockSource(Protocol):
    def now(self) -> float: ...


class SystemClock:
    """Epoch seconds, shifted by a mutable skew."""

    def __init__(self, skew: float = 0.0) -> None:
        self.skew = float(skew)

    def now(self) -> float:
        return time.time() + self.skew

    def adjust(self, delta: float) -> None:
        self.skew += delta


class Debouncer(Generic[T]):
    """
    Trailing-edge debounce driven by explicit timestamps.

    Every `schedule()` cancels the pending value and restarts the window;
    `poll()` hands back the last scheduled value exactly once, after
    *window* seconds with no further `schedule()` calls.
    """

    def __init__(self, window: float) -> None:
        self.window = float(window)
        self._value: Optional[T] = None
        self._deadline: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def schedule(self, value: T, now: float) -> None:
        self._value = value
        self._deadline = now + self.window

    def cancel(self) -> None:
        self._value = None
        self._deadline = None

    def poll(self, now: float) -> Tuple[bool, Optional[T]]:
        if self._deadline is None or now < self._deadline:
            return False, None
        value = self._value
        self.cancel()
        return True, value
