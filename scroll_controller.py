"""
scroll_controller.py

Turns wheel notches and pointer drags into the timeline's scroll offset.

• Every write is clamped to [0, max_scroll]; nothing here ever raises.
• After a drag release the strip coasts with exponential decay, one
  cooperative step per frame, until the speed drops below
  `MOMENTUM_MIN_VELOCITY`.
• Listeners hear about the new offset from `frame()` only, at most once
  per frame, no matter how many input events arrived in between.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

import config
from axis import AxisState

Listener = Callable[[float], None]

_VELOCITY_WINDOW = 0.10   # seconds of drag history used for release speed


class ScrollController:
    def __init__(
        self,
        state: AxisState,
        *,
        wheel_step: float | None = None,
        decay: float | None = None,
        min_velocity: float | None = None,
        max_velocity: float | None = None,
    ) -> None:
        self.state = state
        self.wheel_step = float(config.WHEEL_STEP_PX if wheel_step is None else wheel_step)
        self.decay = float(config.MOMENTUM_DECAY if decay is None else decay)
        self.min_velocity = float(config.MOMENTUM_MIN_VELOCITY if min_velocity is None else min_velocity)
        self.max_velocity = float(config.MOMENTUM_MAX_VELOCITY if max_velocity is None else max_velocity)

        self._listeners: List[Listener] = []
        self._dirty = False
        self._dragging = False
        self._samples: Deque[Tuple[float, float]] = deque()   # (t, dx)
        self.velocity = 0.0                                   # px/s, + = forward

    # ── subscription ───────────────────────────────────────────────────────
    def subscribe(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def invalidate(self) -> None:
        """Force a notification on the next frame even if nothing moved."""
        self._dirty = True

    # ── read side ──────────────────────────────────────────────────────────
    @property
    def offset(self) -> float:
        return self.state.scroll

    @property
    def fraction(self) -> float:
        return self.state.fraction

    @property
    def coasting(self) -> bool:
        return self.velocity != 0.0

    @property
    def dragging(self) -> bool:
        return self._dragging

    # ── input ──────────────────────────────────────────────────────────────
    def wheel(self, steps: float) -> None:
        """Positive steps move forward in time (to the right)."""
        self.cancel_momentum()
        self._move(steps * self.wheel_step)

    def drag_start(self) -> None:
        self.cancel_momentum()
        self._dragging = True
        self._samples.clear()

    def drag(self, dx: float, t: Optional[float] = None) -> None:
        """
        Pointer moved *dx* px.  Content follows the pointer, so dragging
        left (dx < 0) moves the needle forward in time.
        """
        t = time.monotonic() if t is None else t
        self._move(-dx)
        if self._dragging:
            self._samples.append((t, dx))
            while self._samples and t - self._samples[0][0] > _VELOCITY_WINDOW:
                self._samples.popleft()

    def drag_release(self, t: Optional[float] = None) -> None:
        t = time.monotonic() if t is None else t
        self._dragging = False
        recent = [(ts, dx) for ts, dx in self._samples if t - ts <= _VELOCITY_WINDOW]
        self._samples.clear()
        if len(recent) < 2:
            return

        span = max(t - recent[0][0], 1e-3)
        v = -sum(dx for _, dx in recent) / span
        v = max(-self.max_velocity, min(self.max_velocity, v))
        if abs(v) >= self.min_velocity:
            self.velocity = v

    def seek(self, offset: float) -> None:
        """Jump straight to *offset* (clamped); stops any coasting."""
        self.cancel_momentum()
        if self.state.set_scroll(offset):
            self._dirty = True

    def cancel_momentum(self) -> None:
        self.velocity = 0.0

    def rebind(self, state: AxisState) -> None:
        """Swap in a rebuilt axis state (e.g. after a viewport resize)."""
        self.cancel_momentum()
        self.state = state
        self._dirty = True

    # ── per-frame step ─────────────────────────────────────────────────────
    def frame(self, dt: float) -> bool:
        """
        Advance momentum by *dt* seconds, then notify listeners once if the
        offset moved since the last frame.  Returns True if it notified.
        """
        if self.velocity and not self._dragging and dt > 0:
            before = self.state.scroll
            self._move(self.velocity * dt)
            self.velocity *= self.decay ** (dt * 60.0)
            hit_edge = self.state.scroll == before or self.state.scroll in (0.0, self.state.max_scroll)
            if hit_edge or abs(self.velocity) < self.min_velocity:
                self.velocity = 0.0

        if not self._dirty:
            return False
        self._dirty = False
        pos = self.state.scroll
        for fn in self._listeners:
            fn(pos)
        return True

    # ── internals ──────────────────────────────────────────────────────────
    def _move(self, delta: float) -> None:
        if self.state.set_scroll(self.state.scroll + delta):
            self._dirty = True
