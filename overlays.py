"""
overlays.py

Pygame renderer for everything around the video: header clock, recap
banner, timeline strip with needle, video title and the completed cards.
"""

from __future__ import annotations

import datetime
from functools import lru_cache

import pygame

from city_registry import CityStatus

# ── colours ────────────────────────────────────────────────────────────────
WHITE = (255, 255, 255)
GREEN = (0, 255, 0)
RED   = (255,  50, 50)
YEL   = (200, 200, 50)
GOLD  = (212, 175, 55)
DIM   = (120, 120, 120)
BG    = (0, 0, 0, 180)
STRIP = (18, 18, 28)


# ── helpers ────────────────────────────────────────────────────────────────
@lru_cache(maxsize=8)
def _fonts(h: int) -> tuple:
    if not pygame.font.get_init():
        pygame.font.init()
    tiny, small, large = max(12, h // 60), max(16, h // 45), max(24, h // 20)
    return (pygame.font.SysFont("monospace", tiny),
            pygame.font.SysFont("monospace", small),
            pygame.font.SysFont("monospace", large))


def _fmt_clock(ts: float, offset_min: float) -> tuple[str, str]:
    """("h:MM AM", "Thursday 1 January 2026") for *ts* at a fixed UTC offset."""
    tz = datetime.timezone(datetime.timedelta(minutes=offset_min))
    dt = datetime.datetime.fromtimestamp(ts, tz)
    hour = dt.hour % 12 or 12
    return (f"{hour}:{dt.minute:02d} {'AM' if dt.hour < 12 else 'PM'}",
            f"{dt:%A} {dt.day} {dt:%B %Y}")


def _badge(font, text, colour, active=True) -> pygame.Surface:
    txt = font.render(text, True, colour if active else DIM)
    pad = font.get_height() // 4
    bg = pygame.Surface((txt.get_width() + 2 * pad, txt.get_height() + pad), pygame.SRCALPHA)
    bg.fill(BG)
    bg.blit(txt, (pad, pad // 2))
    if active:
        pygame.draw.rect(bg, colour, bg.get_rect(), 2)
    return bg


# ── sections ───────────────────────────────────────────────────────────────
def draw_header(surface: pygame.Surface, rect: pygame.Rect, engine) -> None:
    FT, FS, FL = _fonts(surface.get_height())
    surface.fill((0, 0, 0), rect)

    cur = engine.current
    offset = engine.registry.get(cur.primary_id).utc_offset_min if cur else 0.0
    time_txt, date_txt = _fmt_clock(engine.clock.now(), offset)

    title = FL.render(f"NYE {engine.registry.event_year} · Global Fireworks", True, WHITE)
    surface.blit(title, (rect.x + 10, rect.y + (rect.h - title.get_height()) // 2))

    clock = FS.render(time_txt, True, YEL)
    date = FT.render(date_txt, True, WHITE)
    right = rect.right - 10
    surface.blit(clock, (right - clock.get_width(), rect.y + 6))
    surface.blit(date, (right - date.get_width(), rect.y + 8 + clock.get_height()))

    # mode toggle: RECAP badge is "active" in recap, LIVE badge in live
    x = right - max(clock.get_width(), date.get_width()) - 20
    live = _badge(FS, "LIVE", RED, engine.mode.is_live)
    recap = _badge(FS, "RECAP", GOLD, engine.mode.is_recap)
    x -= live.get_width()
    surface.blit(live, (x, rect.y + 10))
    surface.blit(recap, (x - recap.get_width() - 8, rect.y + 10))


def draw_recap_banner(surface: pygame.Surface, rect: pygame.Rect, engine) -> None:
    if not engine.mode.is_recap:
        return
    _, FS, _ = _fonts(surface.get_height())
    txt = FS.render("RECAP · relive every midnight", True, GOLD)
    bg = pygame.Surface((txt.get_width() + 20, txt.get_height() + 8), pygame.SRCALPHA)
    bg.fill(BG)
    bg.blit(txt, (10, 4))
    surface.blit(bg, (rect.x + 10, rect.y + 10))


def draw_video_title(surface: pygame.Surface, rect: pygame.Rect, engine) -> None:
    _, FS, _ = _fonts(surface.get_height())
    cur = engine.current
    title = cur.title if cur else ""
    txt = FS.render(title, True, WHITE)
    surface.blit(txt, (rect.x + 10, rect.bottom - txt.get_height() - 10))
    if engine.sync.loaded_id and cur and engine.sync.loaded_id != cur.primary_id:
        note = FS.render("…", True, DIM)
        surface.blit(note, (rect.x + 20 + txt.get_width(), rect.bottom - note.get_height() - 10))


def draw_timeline(surface: pygame.Surface, rect: pygame.Rect, engine) -> None:
    FT, FS, _ = _fonts(surface.get_height())
    surface.fill(STRIP, rect)

    state = engine.scroller.state
    cur = engine.current
    mid_y = rect.y + rect.h // 2

    pygame.draw.line(surface, DIM, (rect.x, mid_y), (rect.right, mid_y), 1)

    for m in engine.mapper.markers:
        x = int(rect.x + m.coordinate - state.scroll)
        if x < rect.x - engine.mapper.marker_width or x > rect.right + engine.mapper.marker_width:
            continue
        primary = engine.registry.get(m.primary_id)
        if cur and m.primary_id == cur.primary_id:
            colour = GREEN
        elif primary.status is CityStatus.COMPLETED:
            colour = GOLD
        else:
            colour = WHITE
        pygame.draw.line(surface, colour, (x, mid_y - 10), (x, mid_y + 10), 2)
        pygame.draw.circle(surface, colour, (x, mid_y), 5)

        names = [engine.registry.get(cid) for cid in m.city_ids]
        names.sort(key=lambda c: c.index)
        label = FT.render(" · ".join(c.name for c in names), True, colour)
        surface.blit(label, (x - label.get_width() // 2, mid_y - 16 - label.get_height()))
        off = FT.render(primary.offset_label, True, DIM)
        surface.blit(off, (x - off.get_width() // 2, mid_y + 14))

    # needle with ▼ / ▲ arrow heads
    nx = rect.x + rect.w // 2
    pygame.draw.line(surface, RED, (nx, rect.y + 8), (nx, rect.bottom - 14), 2)
    pygame.draw.polygon(surface, RED, [(nx - 7, rect.y), (nx + 7, rect.y), (nx, rect.y + 10)])
    pygame.draw.polygon(surface, RED, [(nx - 7, rect.bottom - 6), (nx + 7, rect.bottom - 6),
                                       (nx, rect.bottom - 16)])

    # progress
    bar = pygame.Rect(rect.x, rect.bottom - 4, int(rect.w * state.fraction), 4)
    surface.fill(GOLD if engine.mode.is_recap else RED, bar)

    if engine.mode.is_recap:
        hint = FT.render("DRAG TO RELIVE", True, GOLD)
        surface.blit(hint, (rect.right - hint.get_width() - 10, rect.bottom - hint.get_height() - 8))


def draw_cards(surface: pygame.Surface, rect: pygame.Rect, engine) -> list[str]:
    """Card row: completed group (gold) then upcoming (dim).  Returns drawn ids."""
    FT, FS, _ = _fonts(surface.get_height())
    surface.fill((0, 0, 0), rect)

    highlighted = engine.cards.highlighted
    x = rect.x + 10
    head_h = FT.get_height()
    y = rect.y + 8 + head_h
    card_h = rect.bottom - y - 6
    drawn: list[str] = []
    group = None
    for cid, status in engine.cards.cards():
        city = engine.registry.get(cid)
        done = status is CityStatus.COMPLETED
        if done != group:
            # group heading above the first card of each run
            head = FT.render("COMPLETED" if done else "UPCOMING", True, GOLD if done else DIM)
            if x + head.get_width() > rect.right:
                break
            if group is not None:
                pygame.draw.line(surface, DIM, (x - 5, y), (x - 5, y + card_h), 1)
            surface.blit(head, (x, rect.y + 4))
            group = done

        name = FS.render(city.name, True, WHITE if done else DIM)
        sub = FT.render(city.offset_label, True, DIM)
        w = max(name.get_width(), sub.get_width()) + 20
        if x + w > rect.right:
            break
        card = pygame.Rect(x, y, w, card_h)
        surface.fill((28, 28, 28) if done else (14, 14, 14), card)
        if city.id in highlighted:
            border = GREEN
        else:
            border = GOLD if done else DIM
        pygame.draw.rect(surface, border, card, 2)
        surface.blit(name, (x + 10, y + 4))
        surface.blit(sub, (x + 10, y + 6 + name.get_height()))
        drawn.append(city.id)
        x += w + 8
    return drawn


# ── main entry point ───────────────────────────────────────────────────────
def draw_overlay(surface: pygame.Surface, layout: dict, engine) -> None:
    draw_header(surface, layout["header"], engine)
    draw_recap_banner(surface, layout["video"], engine)
    draw_video_title(surface, layout["video"], engine)
    draw_timeline(surface, layout["timeline"], engine)
    draw_cards(surface, layout["cards"], engine)
