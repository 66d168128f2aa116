"""
city_registry.py

City records and the immutable registry the whole timeline is built on.

Key points
----------
* Cities are ordered by the UTC instant of their local midnight, so the
  +13/+14 zones come first and the far-west zones last.
* Each city gets a stable `index` (0 … n-1) in that order; ties between
  identical offsets keep the order the schedule listed them in.
* Schedule sources (`JsonScheduleSource`, `StaticScheduleSource`) are
  queried exactly once at boot.  Any problem there is a `BootFailure`.
"""

from __future__ import annotations

import datetime
import enum
import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import config
from errors import BootFailure

log = logging.getLogger(__name__)

# ── Regex helpers ───────────────────────────────────────────────────────────
_OFFSET_RE = re.compile(r"^(?:UTC|GMT)?\s*([+-])(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)


# ── Default schedule ────────────────────────────────────────────────────────
# (id, name, country, utc offset at local midnight)
DEFAULT_CITIES: List[tuple] = [
    ("auckland",       "Auckland",       "New Zealand",    "+13:00"),
    ("sydney",         "Sydney",         "Australia",      "+11:00"),
    ("tokyo",          "Tokyo",          "Japan",          "+09:00"),
    ("hong_kong",      "Hong Kong",      "China",          "+08:00"),
    ("singapore",      "Singapore",      "Singapore",      "+08:00"),
    ("bangkok",        "Bangkok",        "Thailand",       "+07:00"),
    ("mumbai",         "Mumbai",         "India",          "+05:30"),
    ("dubai",          "Dubai",          "UAE",            "+04:00"),
    ("moscow",         "Moscow",         "Russia",         "+03:00"),
    ("istanbul",       "Istanbul",       "Türkiye",        "+03:00"),
    ("cairo",          "Cairo",          "Egypt",          "+02:00"),
    ("athens",         "Athens",         "Greece",         "+02:00"),
    ("paris",          "Paris",          "France",         "+01:00"),
    ("berlin",         "Berlin",         "Germany",        "+01:00"),
    ("london",         "London",         "United Kingdom", "+00:00"),
    ("rio_de_janeiro", "Rio de Janeiro", "Brazil",         "-03:00"),
    ("new_york",       "New York",       "USA",            "-05:00"),
    ("toronto",        "Toronto",        "Canada",         "-05:00"),
    ("chicago",        "Chicago",        "USA",            "-06:00"),
    ("denver",         "Denver",         "USA",            "-07:00"),
    ("los_angeles",    "Los Angeles",    "USA",            "-08:00"),
    ("honolulu",       "Honolulu",       "USA",            "-10:00"),
]


# ── Data structures ─────────────────────────────────────────────────────────
class CityStatus(str, enum.Enum):
    UPCOMING  = "upcoming"
    LIVE      = "live"
    COMPLETED = "completed"


@dataclass
class City:
    id: str
    name: str
    utc_offset_min: float
    video: str = ""
    country: str = ""
    video_duration: float = 0.0
    index: int = -1                       # assigned by CityRegistry
    status: CityStatus = CityStatus.UPCOMING

    def midnight_utc(self, year: int) -> float:
        """Epoch seconds of local midnight, 1 January *year*, for this city."""
        base = datetime.datetime(year, 1, 1, tzinfo=datetime.timezone.utc).timestamp()
        return base - self.utc_offset_min * 60.0

    @property
    def offset_label(self) -> str:
        sign = "+" if self.utc_offset_min >= 0 else "-"
        h, m = divmod(int(round(abs(self.utc_offset_min))), 60)
        return f"UTC{sign}{h:02d}:{m:02d}"


# ── Offset parsing ──────────────────────────────────────────────────────────
def parse_offset(value) -> float:
    """
    Return a UTC offset in minutes from either a number of minutes or a
    string like ``"+05:30"``, ``"-3"`` or ``"UTC+13:00"``.
    """
    if isinstance(value, bool):
        raise ValueError(f"bad utc offset: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    m = _OFFSET_RE.match(str(value).strip())
    if not m:
        raise ValueError(f"bad utc offset: {value!r}")
    sign, hh, mm = m.groups()
    minutes = int(hh) * 60 + int(mm or 0)
    return float(-minutes if sign == "-" else minutes)


def zone_offset(tz_name: str, year: int) -> float:
    """UTC offset (minutes) in force at local midnight, 1 January *year*."""
    try:
        zi = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown time zone: {tz_name!r}") from exc
    delta = datetime.datetime(year, 1, 1, tzinfo=zi).utcoffset()
    return delta.total_seconds() / 60.0 if delta is not None else 0.0


def city_from_record(rec: dict, year: int) -> City:
    if "utc_offset" in rec:
        offset = parse_offset(rec["utc_offset"])
    elif "timezone" in rec:
        offset = zone_offset(rec["timezone"], year)
    else:
        raise ValueError(f"city {rec.get('id')!r} has neither utc_offset nor timezone")

    city_id = str(rec["id"]).strip()
    if not city_id:
        raise ValueError("city with empty id")
    return City(
        id=city_id,
        name=rec.get("name") or city_id.replace("_", " ").title(),
        utc_offset_min=offset,
        video=rec.get("video", "") or "",
        country=rec.get("country", "") or "",
        video_duration=float(rec.get("video_duration", 0.0) or 0.0),
    )


def default_records(videos_path: Optional[str] = None) -> List[dict]:
    """The built-in table as schedule records, pointing at *videos_path*."""
    videos_path = videos_path or config.VIDEOS_PATH
    return [
        {
            "id": cid,
            "name": name,
            "country": country,
            "utc_offset": off,
            "video": os.path.join(videos_path, f"{cid}.mp4"),
        }
        for cid, name, country, off in DEFAULT_CITIES
    ]


# ── Registry ────────────────────────────────────────────────────────────────
class CityRegistry:
    """Immutable, chronologically ordered list of cities (status aside)."""

    def __init__(self, cities: Sequence[City], event_year: int | None = None) -> None:
        if not cities:
            raise BootFailure("schedule contains no cities")

        seen: set[str] = set()
        for c in cities:
            if c.id in seen:
                raise BootFailure(f"duplicate city id {c.id!r}")
            seen.add(c.id)

        self.event_year = event_year or config.EVENT_YEAR
        # sorted() is stable, so equal offsets keep schedule order
        ordered = sorted(cities, key=lambda c: -c.utc_offset_min)
        for i, c in enumerate(ordered):
            c.index = i
        self._cities = tuple(ordered)
        self._by_id: Dict[str, City] = {c.id: c for c in ordered}

    def __len__(self) -> int:
        return len(self._cities)

    def __iter__(self) -> Iterator[City]:
        return iter(self._cities)

    def __getitem__(self, index: int) -> City:
        return self._cities[index]

    def __contains__(self, city_id: object) -> bool:
        return city_id in self._by_id

    def get(self, city_id: str) -> City:
        return self._by_id[city_id]

    @property
    def first(self) -> City:
        return self._cities[0]

    @property
    def last(self) -> City:
        return self._cities[-1]

    def completed(self) -> List[City]:
        return [c for c in self._cities if c.status is CityStatus.COMPLETED]


# ── Schedule sources ────────────────────────────────────────────────────────
class JsonScheduleSource:
    """Reads the schedule cache written by `schedule_builder.py`."""

    def __init__(self, path: str | None = None) -> None:
        self.path = os.path.abspath(path or config.SCHEDULE_PATH)
        self.event_year = config.EVENT_YEAR

    def load(self) -> List[City]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as exc:
            raise BootFailure(f"schedule not found: {self.path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise BootFailure(f"schedule unreadable: {self.path}: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("cities"), list):
            raise BootFailure(f"schedule has no city list: {self.path}")

        self.event_year = int(data.get("event_year", config.EVENT_YEAR))
        try:
            cities = [city_from_record(rec, self.event_year) for rec in data["cities"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise BootFailure(f"bad city record in {self.path}: {exc}") from exc

        if not cities:
            raise BootFailure(f"schedule is empty: {self.path}")
        log.info("loaded %d cities from %s", len(cities), self.path)
        return cities


class StaticScheduleSource:
    """Serves an in-memory record list (the built-in table by default)."""

    def __init__(self, records: Sequence[dict] | None = None,
                 event_year: int | None = None) -> None:
        self.records = list(records) if records is not None else default_records()
        self.event_year = event_year or config.EVENT_YEAR

    def load(self) -> List[City]:
        if not self.records:
            raise BootFailure("static schedule is empty")
        try:
            return [city_from_record(rec, self.event_year) for rec in self.records]
        except (KeyError, TypeError, ValueError) as exc:
            raise BootFailure(f"bad city record: {exc}") from exc
