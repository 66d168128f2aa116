#!/usr/bin/env python3
"""
events.py  – central hub

• Translates raw Pygame events to high-level action dicts.
• Exposes a thread-safe queue so *any* external source can inject
  the same actions (web remote, scripted demo, HID, etc.).

Action types
------------
wheel {steps}          drag_start / drag {dx} / drag_end
step {dir}             seek_fraction {f}      seek_city {city}
toggle_mode            adjust_offset {delta}  resize {w, h}
toggle_fullscreen      quit
"""

from __future__ import annotations
import queue
from pygame.locals import *

Action = dict      # alias for readability


class EventManager:
    _fifo: "queue.Queue[Action]" = queue.Queue()      # global, thread-safe
    _dragging: bool = False

    # ── SDL / keyboard / mouse path ────────────────────────────────────
    @classmethod
    def handle(cls, event, timeline_rect=None) -> None:
        """Translate one Pygame event → action and enqueue it."""
        act = cls._translate_pygame(event, timeline_rect)
        if act:
            cls._fifo.put(act)

    # ── external / programmatic path ───────────────────────────────────
    @classmethod
    def post(cls, action: Action) -> None:
        """
        Any thread may call this to inject an already-formed action dict, e.g.:
            EventManager.post({"type":"seek_city","city":"london"})
        """
        cls._fifo.put(action)

    # ── main-loop consumer ─────────────────────────────────────────────
    @classmethod
    def poll(cls) -> Action | None:
        """Return next queued action or None (non-blocking)."""
        try:
            return cls._fifo.get_nowait()
        except queue.Empty:
            return None

    @classmethod
    def reset(cls) -> None:
        """Drop queued actions and any half-finished drag."""
        while cls.poll() is not None:
            pass
        cls._dragging = False

    # ── internal translator ───────────────────────────────────────────
    @classmethod
    def _translate_pygame(cls, event, timeline_rect) -> Action | None:
        if event.type == QUIT:
            return {"type": "quit"}

        if event.type == KEYDOWN:
            if event.key in (K_ESCAPE, K_q):
                return {"type": "quit"}
            if event.key == K_r:
                return {"type": "toggle_mode"}
            if event.key == K_f:
                return {"type": "toggle_fullscreen"}
            if event.key in (K_RIGHT, K_LEFT):
                return {"type": "step", "dir": 1 if event.key == K_RIGHT else -1}
            if event.key in (K_HOME, K_END):
                return {"type": "seek_fraction", "f": 0.0 if event.key == K_HOME else 1.0}

        if event.type == MOUSEWHEEL:
            # wheel down / right moves forward in time
            dx = getattr(event, "precise_x", event.x)
            dy = getattr(event, "precise_y", event.y)
            steps = dx - dy
            if steps:
                return {"type": "wheel", "steps": steps}

        if event.type == MOUSEBUTTONDOWN and event.button == 1:
            if timeline_rect is None or timeline_rect.collidepoint(event.pos):
                cls._dragging = True
                return {"type": "drag_start"}

        if event.type == MOUSEMOTION and cls._dragging:
            return {"type": "drag", "dx": event.rel[0]}

        if event.type == MOUSEBUTTONUP and event.button == 1 and cls._dragging:
            cls._dragging = False
            return {"type": "drag_end"}

        if event.type == VIDEORESIZE:
            return {"type": "resize", "w": event.w, "h": event.h}

        return None
