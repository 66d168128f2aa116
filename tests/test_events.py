"""Tests for pygame event → action translation and the action queue."""

import pygame
import pytest

from events import EventManager


@pytest.fixture(autouse=True)
def clean_queue():
    EventManager.reset()
    yield
    EventManager.reset()


def feed(event, rect=None):
    EventManager.handle(event, rect)
    return EventManager.poll()


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k, mod=0, unicode="", scancode=0)


@pytest.mark.parametrize("k, action", [
    (pygame.K_r, {"type": "toggle_mode"}),
    (pygame.K_q, {"type": "quit"}),
    (pygame.K_ESCAPE, {"type": "quit"}),
    (pygame.K_f, {"type": "toggle_fullscreen"}),
    (pygame.K_RIGHT, {"type": "step", "dir": 1}),
    (pygame.K_LEFT, {"type": "step", "dir": -1}),
    (pygame.K_HOME, {"type": "seek_fraction", "f": 0.0}),
    (pygame.K_END, {"type": "seek_fraction", "f": 1.0}),
])
def test_keys(k, action):
    assert feed(key(k)) == action


def test_unmapped_key_is_dropped():
    assert feed(key(pygame.K_z)) is None


def test_wheel_down_scrolls_forward():
    act = feed(pygame.event.Event(pygame.MOUSEWHEEL, x=0, y=-1, flipped=False))
    assert act == {"type": "wheel", "steps": 1}
    act = feed(pygame.event.Event(pygame.MOUSEWHEEL, x=0, y=2, flipped=False))
    assert act == {"type": "wheel", "steps": -2}


def test_drag_inside_timeline():
    rect = pygame.Rect(0, 500, 800, 120)
    down = pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(400, 550))
    move = pygame.event.Event(pygame.MOUSEMOTION, pos=(390, 550), rel=(-10, 0), buttons=(1, 0, 0))
    up = pygame.event.Event(pygame.MOUSEBUTTONUP, button=1, pos=(390, 550))

    assert feed(down, rect) == {"type": "drag_start"}
    assert feed(move, rect) == {"type": "drag", "dx": -10}
    assert feed(up, rect) == {"type": "drag_end"}
    assert feed(move, rect) is None         # not dragging any more


def test_click_outside_timeline_does_not_drag():
    rect = pygame.Rect(0, 500, 800, 120)
    down = pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(400, 100))
    assert feed(down, rect) is None


def test_quit_event():
    assert feed(pygame.event.Event(pygame.QUIT)) == {"type": "quit"}


def test_posted_actions_come_out_in_order():
    EventManager.post({"type": "wheel", "steps": 1})
    EventManager.post({"type": "toggle_mode"})
    assert EventManager.poll() == {"type": "wheel", "steps": 1}
    assert EventManager.poll() == {"type": "toggle_mode"}
    assert EventManager.poll() is None
