"""
sync.py

Sync orchestrator: the one place that reacts to "which city is under the
needle".

On every change of primary city
  1. statuses are recomputed from the new primary alone:
         COMPLETED  ⇔  index ≤ primary.index
     so fast jumps complete (or revert) every city skipped over;
  2. the card sink gets the status diffs and the new highlight set;
  3. a video swap is (re)scheduled on the debouncer.  Only the city that
     is still current once input has been quiet for the window is loaded.

A `VideoLoadFailure` is logged and counted; the previous video stays on.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import FrozenSet, Optional, Protocol

import config
from city_registry import CityRegistry, CityStatus
from errors import VideoLoadFailure
from needle import NeedleResolver, Resolution
from timing import Debouncer

log = logging.getLogger(__name__)


# ── collaborator contracts ─────────────────────────────────────────────────
class VideoSink(Protocol):
    def load_video(self, ref: str) -> None: ...


class CardSink(Protocol):
    def set_status(self, city_id: str, status: CityStatus) -> None: ...
    def set_highlighted(self, city_ids: FrozenSet[str]) -> None: ...


# ── read model ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class CurrentCity:
    primary_id: str
    city_ids: FrozenSet[str]
    name: str
    country: str
    video: str
    index: int

    @property
    def title(self) -> str:
        return f"{self.name}, {self.country}" if self.country else self.name


# ── orchestrator ───────────────────────────────────────────────────────────
class SyncOrchestrator:
    def __init__(
        self,
        registry: CityRegistry,
        resolver: NeedleResolver,
        player: VideoSink,
        cards: CardSink,
        *,
        debounce: float | None = None,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.player = player
        self.cards = cards
        self._debounce: Debouncer[str] = Debouncer(
            config.VIDEO_DEBOUNCE_SEC if debounce is None else debounce
        )

        self.current: Optional[CurrentCity] = None
        self.loaded_id: Optional[str] = None
        self.load_count = 0
        self.error_count = 0
        self.last_error = ""

    # ── entry points ───────────────────────────────────────────────────────
    def prime(self, scroll: float) -> CurrentCity:
        """Initial sync at boot: push every status and load immediately."""
        res = self.resolver.resolve(scroll)
        self._apply(res, force=True)
        self._debounce.cancel()
        self._load(res.primary_id)
        return self.current

    def on_position(self, scroll: float, now: Optional[float] = None) -> bool:
        """
        Coalesced scroll notification.  Returns True if the primary city
        changed; same-city jitter is a no-op.
        """
        res = self.resolver.resolve(scroll)
        if self.current is not None and res.primary_id == self.current.primary_id:
            return False
        self._apply(res)
        self._debounce.schedule(res.primary_id, time.monotonic() if now is None else now)
        return True

    def poll(self, now: Optional[float] = None) -> bool:
        """Fire the trailing video load if the window elapsed.  Per frame."""
        fired, city_id = self._debounce.poll(time.monotonic() if now is None else now)
        if not fired or city_id is None or city_id == self.loaded_id:
            return False
        return self._load(city_id)

    @property
    def pending(self) -> bool:
        return self._debounce.pending

    def rebind(self, resolver: NeedleResolver) -> None:
        self.resolver = resolver

    # ── internals ──────────────────────────────────────────────────────────
    def _apply(self, res: Resolution, force: bool = False) -> None:
        primary = self.registry.get(res.primary_id)

        for city in self.registry:
            want = CityStatus.COMPLETED if city.index <= primary.index else CityStatus.UPCOMING
            if force or city.status is not want:
                city.status = want
                self.cards.set_status(city.id, want)

        self.cards.set_highlighted(res.city_ids)
        self.current = CurrentCity(
            primary_id=primary.id,
            city_ids=res.city_ids,
            name=primary.name,
            country=primary.country,
            video=primary.video,
            index=primary.index,
        )

    def _load(self, city_id: str) -> bool:
        city = self.registry.get(city_id)
        try:
            self.player.load_video(city.video)
        except VideoLoadFailure as exc:
            self.error_count += 1
            self.last_error = f"{city_id}: {exc}"
            log.warning("video for %s failed, keeping %s: %s",
                        city_id, self.loaded_id or "nothing", exc)
            return False
        self.loaded_id = city_id
        self.load_count += 1
        log.info("video → %s (%s)", city_id, city.video)
        return True
