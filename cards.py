"""
cards.py

In-memory card sink.  The orchestrator pushes status and highlight
changes here; the pygame overlay reads them back.  Every city has a
card: the completed group leads, most recent midnight first, followed
by the upcoming cities in the order their midnights arrive.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Tuple

from city_registry import CityRegistry, CityStatus


class CardBoard:
    def __init__(self, registry: CityRegistry) -> None:
        self.registry = registry
        self.statuses: Dict[str, CityStatus] = {c.id: c.status for c in registry}
        self.highlighted: FrozenSet[str] = frozenset()

    def set_status(self, city_id: str, status: CityStatus) -> None:
        self.statuses[city_id] = status

    def set_highlighted(self, city_ids: Iterable[str]) -> None:
        self.highlighted = frozenset(city_ids)

    def completed(self) -> List[str]:
        """Completed city ids, most recent midnight first."""
        return [c.id for c in reversed(list(self.registry))
                if self.statuses.get(c.id) is CityStatus.COMPLETED]

    def cards(self) -> List[Tuple[str, CityStatus]]:
        """(city id, status) for every city, completed group first."""
        done = self.completed()
        seen = set(done)
        rest = [c.id for c in self.registry if c.id not in seen]
        return [(cid, self.statuses[cid]) for cid in done + rest]
