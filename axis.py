"""
axis.py

Maps cities onto the 1-D pixel axis of the timeline strip.

Layout
------
    coordinate(marker k) = pad + minutes_k * PIXELS_PER_MINUTE + k * MARKER_WIDTH

* `minutes_k` is how long after the first city's midnight the marker's
  midnight falls (first city = 0).
* `pad` is half the viewport, on both ends, so scroll offset 0 puts the
  first marker under the needle and max scroll puts the last one there.
* Offsets within `CLUSTER_EPSILON_MIN` of a marker's first member join
  that marker instead of opening a new one.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Tuple

import config
from city_registry import City, CityRegistry


# ── Data structures ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Marker:
    coordinate: float
    city_ids: FrozenSet[str]
    primary_id: str             # member with the lowest registry index
    minutes: float              # event minutes after the first midnight
    slot: int                   # marker ordinal along the axis


class AxisState:
    """The single mutable scroll value plus the geometry that bounds it."""

    def __init__(self, extent: float, viewport_width: float, scroll: float = 0.0) -> None:
        self.extent = float(extent)
        self.viewport_width = float(viewport_width)
        self.scroll = 0.0
        self.set_scroll(scroll)

    @property
    def max_scroll(self) -> float:
        return max(0.0, self.extent - self.viewport_width)

    @property
    def fraction(self) -> float:
        ms = self.max_scroll
        return self.scroll / ms if ms else 0.0

    @property
    def needle(self) -> float:
        """Axis coordinate currently under the needle."""
        return self.scroll + self.viewport_width / 2.0

    def clamp(self, value: float) -> float:
        return min(max(0.0, float(value)), self.max_scroll)

    def set_scroll(self, value: float) -> bool:
        """Clamp and store *value*; True if the stored offset changed."""
        new = self.clamp(value)
        changed = new != self.scroll
        self.scroll = new
        return changed


# ── Axis mapper ─────────────────────────────────────────────────────────────
class AxisMapper:
    """Builds the marker list once per (registry, viewport) configuration."""

    def __init__(
        self,
        registry: CityRegistry,
        viewport_width: float,
        *,
        pixels_per_minute: float | None = None,
        marker_width: float | None = None,
        cluster_epsilon: float | None = None,
    ) -> None:
        self.registry = registry
        self.viewport_width = float(viewport_width)
        self.ppm = float(config.PIXELS_PER_MINUTE if pixels_per_minute is None else pixels_per_minute)
        self.marker_width = float(config.MARKER_WIDTH if marker_width is None else marker_width)
        self.epsilon = float(config.CLUSTER_EPSILON_MIN if cluster_epsilon is None else cluster_epsilon)

        self.markers: List[Marker] = []
        self._by_city: Dict[str, Marker] = {}
        self._coords: List[float] = []
        self._build()

    # ----------------------------------------------------------- layout
    @property
    def pad(self) -> float:
        return self.viewport_width / 2.0

    @property
    def extent(self) -> float:
        return self.markers[-1].coordinate + self.pad

    def minutes_of(self, city: City) -> float:
        return self.registry.first.utc_offset_min - city.utc_offset_min

    def _build(self) -> None:
        groups: List[List[City]] = []
        for city in self.registry:
            if groups and abs(groups[-1][0].utc_offset_min - city.utc_offset_min) <= self.epsilon:
                groups[-1].append(city)
            else:
                groups.append([city])

        for slot, members in enumerate(groups):
            anchor = members[0]                      # lowest index in the group
            minutes = self.minutes_of(anchor)
            marker = Marker(
                coordinate=self.pad + minutes * self.ppm + slot * self.marker_width,
                city_ids=frozenset(c.id for c in members),
                primary_id=anchor.id,
                minutes=minutes,
                slot=slot,
            )
            self.markers.append(marker)
            for c in members:
                self._by_city[c.id] = marker
        self._coords = [m.coordinate for m in self.markers]

    def new_state(self, scroll: float = 0.0) -> AxisState:
        return AxisState(self.extent, self.viewport_width, scroll)

    # ----------------------------------------------------------- queries
    @property
    def coordinates(self) -> List[float]:
        return self._coords

    def position_of(self, city: City | str) -> float:
        city_id = city if isinstance(city, str) else city.id
        return self._by_city[city_id].coordinate

    def marker_for(self, city_id: str) -> Marker:
        return self._by_city[city_id]

    def scroll_for(self, coordinate: float) -> float:
        """Scroll offset that puts *coordinate* under the needle."""
        return coordinate - self.pad

    def coordinate_at(self, minutes: float) -> float:
        """
        Interpolate an axis coordinate for a point *minutes* after the first
        midnight, linearly between the two markers around it.  Clamped to
        the first/last marker.
        """
        mins = [m.minutes for m in self.markers]
        if minutes <= mins[0]:
            return self._coords[0]
        if minutes >= mins[-1]:
            return self._coords[-1]

        hi = bisect.bisect_right(mins, minutes)
        lo = hi - 1
        span = mins[hi] - mins[lo]
        frac = (minutes - mins[lo]) / span if span else 0.0
        return self._coords[lo] + frac * (self._coords[hi] - self._coords[lo])

    def bounds(self) -> Tuple[float, float]:
        return self._coords[0], self._coords[-1]
