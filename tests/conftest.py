"""Shared test fixtures for the timeline core."""

import pytest

from city_registry import City, CityRegistry, CityStatus
from errors import VideoLoadFailure
from timeline import TimelineEngine

VIEWPORT = 800.0

AXIS_OPTS = {"pixels_per_minute": 1.0, "marker_width": 120.0, "cluster_epsilon": 0.0}
SCROLL_OPTS = {"wheel_step": 120.0, "decay": 0.92, "min_velocity": 20.0, "max_velocity": 6000.0}


def make_cities():
    """Auckland(+13), Dubai(+4), London(0), New York(-5), deliberately unsorted."""
    return [
        City(id="london", name="London", utc_offset_min=0, country="United Kingdom",
             video="videos/london.mp4"),
        City(id="new_york", name="New York", utc_offset_min=-300, country="USA",
             video="videos/new_york.mp4"),
        City(id="auckland", name="Auckland", utc_offset_min=780, country="New Zealand",
             video="videos/auckland.mp4"),
        City(id="dubai", name="Dubai", utc_offset_min=240, country="UAE",
             video="videos/dubai.mp4"),
    ]


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.t = now

    def now(self) -> float:
        return self.t

    def adjust(self, delta: float) -> None:
        self.t += delta


class RecordingPlayer:
    """Records every load; refs listed in `failing` raise VideoLoadFailure."""

    def __init__(self, failing=()):
        self.loads = []
        self.failing = set(failing)

    def load_video(self, ref: str) -> None:
        if ref in self.failing:
            raise VideoLoadFailure(ref, "missing asset")
        self.loads.append(ref)


class RecordingCards:
    def __init__(self):
        self.status_calls = []
        self.highlight_calls = []

    def set_status(self, city_id, status):
        self.status_calls.append((city_id, status))

    def set_highlighted(self, city_ids):
        self.highlight_calls.append(frozenset(city_ids))

    def reset(self):
        self.status_calls.clear()
        self.highlight_calls.clear()


def assert_monotone_boundary(registry, primary_id):
    """COMPLETED exactly up to and including the primary city."""
    p = registry.get(primary_id).index
    for c in registry:
        want = CityStatus.COMPLETED if c.index <= p else CityStatus.UPCOMING
        assert c.status is want, f"{c.id}: {c.status} (primary {primary_id})"


@pytest.fixture()
def registry():
    return CityRegistry(make_cities(), event_year=2026)


@pytest.fixture()
def clock():
    return FakeClock(1_700_000_000.0)


@pytest.fixture()
def player():
    return RecordingPlayer()


@pytest.fixture()
def cards():
    return RecordingCards()


@pytest.fixture()
def engine(registry, player, cards, clock):
    return TimelineEngine(
        registry, player,
        viewport_width=VIEWPORT,
        clock=clock,
        cards=cards,
        initial_mode="recap",
        tick_interval=1.0,
        debounce=0.35,
        axis_opts=AXIS_OPTS,
        scroll_opts=SCROLL_OPTS,
    )
