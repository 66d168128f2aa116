#!/usr/bin/env python3
"""
app.py – pygame window around the timeline engine

Layout, top to bottom: header (clock, date, LIVE/RECAP toggle), video
section with its title, timeline strip with the needle, completed cards.
Input is dispatched by events.py; everything the engine does not own
(quit, fullscreen, resize) is handled here.
"""
from __future__ import annotations

import logging
import time

import pygame

import config
from events import EventManager
from overlays import draw_overlay
from renderer import render_frame
from timeline import TimelineEngine

log = logging.getLogger(__name__)

_HEADER_H = 64
_CARDS_H  = 96


def compute_layout(size: tuple[int, int]) -> dict:
    w, h = size
    timeline_y = h - _CARDS_H - config.TIMELINE_HEIGHT
    return {
        "header":   pygame.Rect(0, 0, w, _HEADER_H),
        "video":    pygame.Rect(0, _HEADER_H, w, max(0, timeline_y - _HEADER_H)),
        "timeline": pygame.Rect(0, timeline_y, w, config.TIMELINE_HEIGHT),
        "cards":    pygame.Rect(0, h - _CARDS_H, w, _CARDS_H),
    }


# ── main application ───────────────────────────────────────────────────────
class TimelineApp:
    def __init__(self, engine: TimelineEngine, player):
        pygame.init()
        self.engine = engine
        self.player = player
        self.screen = self._set_mode()
        self.clock = pygame.time.Clock()
        self.layout = compute_layout(self.screen.get_size())
        self.engine.resize(self.layout["timeline"].w)
        pygame.display.set_caption(f"NYE {engine.registry.event_year} Global Fireworks Timeline")

    def _set_mode(self, size=None) -> pygame.Surface:
        if config.FULLSCREEN:
            return pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        return pygame.display.set_mode(size or config.WINDOWED_SIZE, pygame.RESIZABLE)

    def _relayout(self):
        self.layout = compute_layout(self.screen.get_size())
        self.engine.resize(self.layout["timeline"].w)

    # ── main loop ---------------------------------------------------------
    def run(self):
        running = True
        while running:
            for e in pygame.event.get():
                EventManager.handle(e, self.layout["timeline"])

            while (act := EventManager.poll()):
                t = act["type"]
                if t == "quit":
                    running = False
                elif t == "toggle_fullscreen":
                    config.FULLSCREEN ^= True
                    self.screen = self._set_mode()
                    self._relayout()
                elif t == "resize":
                    if not config.FULLSCREEN:
                        self.screen = self._set_mode((act["w"], act["h"]))
                        self._relayout()
                elif not self.engine.handle(act):
                    log.debug("ignored action %r", act)

            self.engine.frame(time.monotonic())

            # draw
            render_frame(self.screen, self.player.decode_frame(), self.player.sar,
                         self.layout["video"])
            draw_overlay(self.screen, self.layout, self.engine)

            pygame.display.flip()
            self.clock.tick(config.FPS)

        self.player.close()
        pygame.quit()
