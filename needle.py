"""
needle.py

Resolves a scroll offset to the marker sitting under the fixed needle
(viewport centre).  Lookup is O(log n) via `bisect`.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import FrozenSet

from axis import AxisMapper, Marker


@dataclass(frozen=True)
class Resolution:
    city_ids: FrozenSet[str]
    marker_coordinate: float
    primary_id: str
    marker: Marker


class NeedleResolver:
    def __init__(self, mapper: AxisMapper) -> None:
        self.mapper = mapper

    def resolve(self, scroll: float) -> Resolution:
        """
        Return the marker closest to ``scroll + viewport_width / 2``.

        Equidistant neighbours resolve to the one with the smaller
        coordinate (the earlier midnight).
        """
        needle = scroll + self.mapper.viewport_width / 2.0
        coords = self.mapper.coordinates
        markers = self.mapper.markers

        hi = bisect.bisect_left(coords, needle)
        if hi <= 0:
            best = 0
        elif hi >= len(coords):
            best = len(coords) - 1
        else:
            lo = hi - 1
            best = lo if needle - coords[lo] <= coords[hi] - needle else hi

        m = markers[best]
        return Resolution(
            city_ids=m.city_ids,
            marker_coordinate=m.coordinate,
            primary_id=m.primary_id,
            marker=m,
        )
