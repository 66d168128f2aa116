"""Tests for the axis mapper and axis state."""

import pytest

from axis import AxisMapper, AxisState
from city_registry import City, CityRegistry, StaticScheduleSource
from tests.conftest import AXIS_OPTS, VIEWPORT


@pytest.fixture()
def mapper(registry):
    return AxisMapper(registry, VIEWPORT, **AXIS_OPTS)


def test_scenario_coordinates(mapper):
    # pad 400, 1 px/min, 120 px per marker slot
    assert [m.coordinate for m in mapper.markers] == [400.0, 1060.0, 1420.0, 1840.0]
    assert mapper.extent == 2240.0
    assert mapper.position_of("auckland") == 400.0
    assert mapper.scroll_for(mapper.position_of("auckland")) == 0.0


def test_coordinates_follow_chronology(mapper, registry):
    coords = [mapper.position_of(c) for c in registry]
    assert coords == sorted(coords)
    by_offset = sorted(registry, key=lambda c: c.utc_offset_min, reverse=True)
    assert [mapper.position_of(c) for c in by_offset] == sorted(coords)


def test_default_table_is_monotone_and_clustered():
    reg = CityRegistry(StaticScheduleSource().load())
    m = AxisMapper(reg, 1280, **AXIS_OPTS)
    coords = [m.position_of(c) for c in reg]
    assert all(a <= b for a, b in zip(coords, coords[1:]))
    assert len(m.markers) >= 10
    assert m.marker_for("hong_kong") is m.marker_for("singapore")
    assert m.marker_for("new_york").city_ids == frozenset({"new_york", "toronto"})


def test_output_is_stable(registry, mapper):
    again = AxisMapper(registry, VIEWPORT, **AXIS_OPTS)
    assert [m.coordinate for m in again.markers] == [m.coordinate for m in mapper.markers]
    assert mapper.position_of("dubai") == mapper.position_of("dubai")


def test_cluster_primary_is_lowest_index():
    reg = CityRegistry([
        City(id="toronto", name="Toronto", utc_offset_min=-300),
        City(id="new_york", name="New York", utc_offset_min=-300),
        City(id="london", name="London", utc_offset_min=0),
    ])
    m = AxisMapper(reg, VIEWPORT, **AXIS_OPTS)
    assert len(m.markers) == 2
    cluster = m.marker_for("new_york")
    assert cluster.city_ids == frozenset({"toronto", "new_york"})
    assert cluster.primary_id == "toronto"      # listed first in the schedule
    assert m.position_of("toronto") == m.position_of("new_york")


def test_cluster_epsilon_merges_near_offsets():
    reg = CityRegistry([
        City(id="mumbai", name="Mumbai", utc_offset_min=330),
        City(id="kathmandu", name="Kathmandu", utc_offset_min=345),
        City(id="dubai", name="Dubai", utc_offset_min=240),
    ])
    tight = AxisMapper(reg, VIEWPORT, pixels_per_minute=1.0, marker_width=120.0, cluster_epsilon=0.0)
    loose = AxisMapper(reg, VIEWPORT, pixels_per_minute=1.0, marker_width=120.0, cluster_epsilon=15.0)
    assert len(tight.markers) == 3
    assert len(loose.markers) == 2
    assert loose.marker_for("mumbai").city_ids == frozenset({"kathmandu", "mumbai"})
    assert loose.marker_for("mumbai").primary_id == "kathmandu"


def test_coordinate_at_interpolates_and_clamps(mapper):
    assert mapper.coordinate_at(-60) == 400.0
    assert mapper.coordinate_at(0) == 400.0
    assert mapper.coordinate_at(540) == 1060.0           # Dubai midnight
    assert mapper.coordinate_at(270) == pytest.approx(730.0)
    assert mapper.coordinate_at(5000) == 1840.0


def test_single_city_axis():
    reg = CityRegistry([City(id="london", name="London", utc_offset_min=0)])
    m = AxisMapper(reg, VIEWPORT, **AXIS_OPTS)
    state = m.new_state()
    assert state.max_scroll == 0.0
    assert state.fraction == 0.0


def test_axis_state_clamps():
    st = AxisState(extent=2000, viewport_width=800)
    assert st.max_scroll == 1200
    assert st.set_scroll(-50) is False
    assert st.scroll == 0.0
    assert st.set_scroll(5000) is True
    assert st.scroll == 1200
    assert st.fraction == 1.0
    st.set_scroll(600)
    assert st.fraction == 0.5
    assert st.needle == 1000
