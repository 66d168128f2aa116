"""
timeline.py – headless core of the NYE timeline

Wires registry → axis → scroll → needle → sync, owns the Live/Recap
controller and the clock tick, and consumes the same action dicts that
`events.EventManager` produces.  No pygame in here: the window in app.py
and the web remote both drive this object.

Per frame (`frame(now)`):
    1. clock tick, if due (Live mode writes the scroll offset)
    2. scroll controller step (momentum + one coalesced notification)
    3. debounced video swap, if the window elapsed
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import config
from axis import AxisMapper
from cards import CardBoard
from city_registry import CityRegistry
from mode_controller import Mode, ModeController
from needle import NeedleResolver
from scroll_controller import ScrollController
from sync import CardSink, SyncOrchestrator, VideoSink
from timing import ClockSource, SystemClock

log = logging.getLogger(__name__)

_MAX_FRAME_DT = 0.1     # longer stalls are not replayed as momentum


class TimelineEngine:
    def __init__(
        self,
        registry: CityRegistry,
        player: VideoSink,
        *,
        viewport_width: float,
        clock: Optional[ClockSource] = None,
        cards: Optional[CardSink] = None,
        initial_mode: Mode | str | None = None,
        tick_interval: float | None = None,
        debounce: float | None = None,
        axis_opts: Optional[Dict[str, float]] = None,
        scroll_opts: Optional[Dict[str, float]] = None,
    ) -> None:
        self.registry = registry
        self.player = player
        self.clock = clock or SystemClock()
        self.cards = cards if cards is not None else CardBoard(registry)
        self.tick_interval = float(config.CLOCK_TICK_SEC if tick_interval is None else tick_interval)
        self._axis_opts = dict(axis_opts or {})

        self.mapper = AxisMapper(registry, viewport_width, **self._axis_opts)
        start = self.mapper.scroll_for(self.mapper.position_of(registry.first))
        self.scroller = ScrollController(self.mapper.new_state(start), **(scroll_opts or {}))
        self.resolver = NeedleResolver(self.mapper)
        self.mode = ModeController(self.scroller, self.mapper, self.clock, initial_mode)
        self.sync = SyncOrchestrator(registry, self.resolver, player, self.cards, debounce=debounce)

        self._frame_now: Optional[float] = None
        self._last_frame: Optional[float] = None
        self._next_tick = 0.0

        self.scroller.subscribe(self._on_position)
        self.mode.subscribe(self._on_mode)
        self.sync.prime(self.scroller.offset)
        log.info("timeline ready: %d cities on %d markers, mode %s",
                 len(registry), len(self.mapper.markers), self.mode.mode.value)

    @classmethod
    def boot(cls, source, player: VideoSink, **kw: Any) -> "TimelineEngine":
        """Load the schedule once and build the engine.  BootFailure propagates."""
        cities = source.load()
        registry = CityRegistry(cities, getattr(source, "event_year", None))
        return cls(registry, player, **kw)

    # ── wiring callbacks ───────────────────────────────────────────────────
    def _on_position(self, scroll: float) -> None:
        self.sync.on_position(scroll, self._frame_now)

    def _on_mode(self, mode: Mode) -> None:
        if mode is Mode.LIVE:
            self._next_tick = 0.0       # re-centre on the very next frame

    # ── per frame ──────────────────────────────────────────────────────────
    def frame(self, now: float) -> None:
        """One cooperative step; *now* is a monotonic timestamp in seconds."""
        dt = 0.0 if self._last_frame is None else min(max(0.0, now - self._last_frame), _MAX_FRAME_DT)
        self._last_frame = now
        self._frame_now = now

        if now >= self._next_tick:
            self.mode.tick()
            self._next_tick = now + self.tick_interval

        self.scroller.frame(dt)
        self.sync.poll(now)

    # ── actions ────────────────────────────────────────────────────────────
    def handle(self, act: Dict[str, Any]) -> bool:
        """Apply one action dict.  Returns False for types it does not own."""
        t = act.get("type")
        if t == "wheel":
            self.scroller.wheel(float(act.get("steps", 0.0)))
        elif t == "drag_start":
            self.scroller.drag_start()
        elif t == "drag":
            self.scroller.drag(float(act.get("dx", 0.0)), act.get("t"))
        elif t == "drag_end":
            self.scroller.drag_release(act.get("t"))
            if self.mode.is_live:
                self.scroller.cancel_momentum()     # the clock owns the position in live mode
        elif t == "toggle_mode":
            self.mode.toggle()
        elif t == "step":
            self.step(int(act.get("dir", 1)))
        elif t == "seek_city":
            self.seek_city(str(act.get("city", "")))
        elif t == "seek_fraction":
            self.seek_fraction(float(act.get("f", 0.0)))
        elif t == "adjust_offset":
            if hasattr(self.clock, "adjust"):
                self.clock.adjust(float(act.get("delta", 0.0)))
                self._next_tick = 0.0
        else:
            return False
        return True

    def step(self, direction: int) -> None:
        """Move the needle to the next (+1) or previous (-1) marker."""
        cur = self.sync.current
        slot = self.mapper.marker_for(cur.primary_id).slot if cur else 0
        slot = min(max(0, slot + (1 if direction > 0 else -1)), len(self.mapper.markers) - 1)
        self.scroller.seek(self.mapper.scroll_for(self.mapper.markers[slot].coordinate))

    def seek_city(self, city_id: str) -> bool:
        if city_id not in self.registry:
            return False
        self.scroller.seek(self.mapper.scroll_for(self.mapper.position_of(city_id)))
        return True

    def seek_fraction(self, f: float) -> None:
        f = min(max(0.0, f), 1.0)
        self.scroller.seek(f * self.scroller.state.max_scroll)

    def resize(self, viewport_width: float) -> None:
        """Rebuild the axis for a new viewport, keeping the current city centred."""
        if float(viewport_width) == self.mapper.viewport_width:
            return
        keep = self.sync.current.primary_id if self.sync.current else self.registry.first.id
        self.mapper = AxisMapper(self.registry, viewport_width, **self._axis_opts)
        self.resolver = NeedleResolver(self.mapper)
        self.scroller.rebind(self.mapper.new_state(self.mapper.scroll_for(self.mapper.position_of(keep))))
        self.mode.mapper = self.mapper
        self.sync.rebind(self.resolver)

    # ── read model ─────────────────────────────────────────────────────────
    @property
    def current(self):
        return self.sync.current

    def snapshot(self) -> Dict[str, Any]:
        cur = self.sync.current
        state = self.scroller.state
        return {
            "mode": self.mode.mode.value,
            "recap": self.mode.is_recap,
            "current": cur.primary_id if cur else None,
            "cluster": sorted(cur.city_ids) if cur else [],
            "video_title": cur.title if cur else "",
            "video_loaded": self.sync.loaded_id,
            "markers": [
                {"x": round(m.coordinate, 2), "cities": sorted(m.city_ids)}
                for m in self.mapper.markers
            ],
            "completed": [c.id for c in reversed(self.registry.completed())],
            "scroll": round(state.scroll, 2),
            "fraction": round(state.fraction, 4),
            "extent": round(state.extent, 2),
            "viewport": state.viewport_width,
            "video_errors": self.sync.error_count,
            "last_video_error": self.sync.last_error,
        }
