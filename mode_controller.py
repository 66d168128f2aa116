"""
mode_controller.py

Live / Recap state machine.

  Recap  – the user owns the scroll offset; the clock is ignored.
  Live   – every clock tick snaps the offset to where "now" falls on the
           axis.  User input still moves the strip but the next tick wins.

`toggle()` never touches the offset itself; entering Live only stops any
coasting so the next tick is the sole writer.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, List, Optional

import config
from axis import AxisMapper
from scroll_controller import ScrollController
from timing import ClockSource

log = logging.getLogger(__name__)


class Mode(str, enum.Enum):
    LIVE  = "live"
    RECAP = "recap"


class ModeController:
    def __init__(
        self,
        scroller: ScrollController,
        mapper: AxisMapper,
        clock: ClockSource,
        initial: Mode | str | None = None,
    ) -> None:
        self.scroller = scroller
        self.mapper = mapper
        self.clock = clock
        self.mode = Mode(initial or config.START_MODE)
        self._listeners: List[Callable[[Mode], None]] = []

    # ── state ──────────────────────────────────────────────────────────────
    @property
    def is_live(self) -> bool:
        return self.mode is Mode.LIVE

    @property
    def is_recap(self) -> bool:
        return self.mode is Mode.RECAP

    def subscribe(self, fn: Callable[[Mode], None]) -> None:
        self._listeners.append(fn)

    def toggle(self) -> Mode:
        self.mode = Mode.RECAP if self.is_live else Mode.LIVE
        if self.is_live:
            self.scroller.cancel_momentum()
        log.info("mode → %s", self.mode.value)
        for fn in self._listeners:
            fn(self.mode)
        return self.mode

    # ── clock ──────────────────────────────────────────────────────────────
    def live_coordinate(self, now: float) -> float:
        """Axis coordinate of *now*, measured from the first city's midnight."""
        first = self.mapper.registry.first
        start = first.midnight_utc(self.mapper.registry.event_year)
        return self.mapper.coordinate_at((now - start) / 60.0)

    def live_scroll(self, now: float) -> float:
        return self.mapper.scroll_for(self.live_coordinate(now))

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Clock tick.  In Live mode, write the clock-derived offset and return
        True; in Recap mode do nothing.
        """
        if not self.is_live:
            return False
        now = self.clock.now() if now is None else now
        self.scroller.seek(self.live_scroll(now))
        return True
