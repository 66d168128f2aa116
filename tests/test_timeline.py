"""End-to-end scenarios through the headless engine."""

import pytest

from city_registry import CityRegistry, CityStatus, StaticScheduleSource
from errors import BootFailure
from mode_controller import Mode
from tests.conftest import (
    AXIS_OPTS,
    SCROLL_OPTS,
    VIEWPORT,
    RecordingPlayer,
    assert_monotone_boundary,
)
from timeline import TimelineEngine
from timing import SystemClock


def run_frames(engine, start, seconds, step=0.05):
    t = start
    end = start + seconds
    while t < end:
        t += step
        engine.frame(t)
    return t


def midnight(registry, city_id):
    return registry.get(city_id).midnight_utc(registry.event_year)


def test_boot_state(engine, player):
    assert engine.mode.mode is Mode.RECAP
    assert engine.scroller.offset == 0.0
    assert engine.resolver.resolve(0).city_ids == frozenset({"auckland"})
    assert engine.current.primary_id == "auckland"
    assert player.loads == ["videos/auckland.mp4"]


def test_rapid_wheel_completes_path_and_loads_once(engine, player, registry):
    t = 100.0
    engine.frame(t)
    for _ in range(10):
        engine.handle({"type": "wheel", "steps": 1})
        t += 0.05
        engine.frame(t)
    run_frames(engine, t, 0.5)

    cur = engine.current.primary_id
    assert registry.get(cur).index >= registry.get("london").index
    for cid in ("auckland", "dubai", "london"):
        assert registry.get(cid).status is CityStatus.COMPLETED
    assert_monotone_boundary(registry, cur)
    assert player.loads == ["videos/auckland.mp4", f"videos/{cur}.mp4"]


def test_toggle_to_live_jumps_to_clock_city(engine, registry, clock):
    engine.handle({"type": "seek_city", "city": "new_york"})
    t = run_frames(engine, 100.0, 0.2)
    assert engine.current.primary_id == "new_york"

    clock.t = midnight(registry, "dubai")
    engine.handle({"type": "toggle_mode"})
    assert engine.mode.is_live
    engine.frame(t + 0.05)
    assert engine.current.primary_id == "dubai"
    assert_monotone_boundary(registry, "dubai")


def test_live_mode_snaps_back_after_user_scroll(engine, registry, clock):
    clock.t = midnight(registry, "dubai")
    engine.handle({"type": "toggle_mode"})
    t = run_frames(engine, 100.0, 0.1)
    assert engine.current.primary_id == "dubai"

    engine.handle({"type": "wheel", "steps": 4})
    t += 0.05
    engine.frame(t)
    assert engine.current.primary_id != "dubai"

    run_frames(engine, t, 1.1)          # next clock tick wins
    assert engine.current.primary_id == "dubai"


def test_recap_round_trip_keeps_scroll(engine):
    engine.handle({"type": "wheel", "steps": 3})
    engine.frame(1.0)
    before = engine.scroller.offset
    engine.mode.toggle()
    engine.mode.toggle()
    engine.frame(1.05)
    assert engine.mode.is_recap
    assert engine.scroller.offset == before


def test_live_round_trip_returns_to_clock_position(registry, player, clock):
    clock.t = midnight(registry, "dubai")
    eng = TimelineEngine(registry, player, viewport_width=VIEWPORT, clock=clock,
                         initial_mode="live", tick_interval=1.0, debounce=0.35,
                         axis_opts=AXIS_OPTS, scroll_opts=SCROLL_OPTS)
    eng.frame(100.0)
    assert eng.scroller.offset == 660.0

    eng.handle({"type": "wheel", "steps": 5})
    eng.frame(100.05)
    assert eng.scroller.offset != 660.0

    eng.mode.toggle()
    eng.mode.toggle()
    eng.frame(100.1)
    assert eng.mode.is_live
    assert eng.scroller.offset == eng.mode.live_scroll(clock.now()) == 660.0


def _flick_actions(engine):
    engine.handle({"type": "drag_start"})
    for i in range(3):
        engine.handle({"type": "drag", "dx": -10.0, "t": i * 0.01})
    engine.handle({"type": "drag_end", "t": 0.02})


def test_release_coasts_only_in_recap(engine, registry, clock):
    _flick_actions(engine)
    assert engine.scroller.coasting

    clock.t = midnight(registry, "dubai")
    engine.handle({"type": "toggle_mode"})
    engine.frame(100.0)
    _flick_actions(engine)
    assert engine.mode.is_live
    assert not engine.scroller.coasting
    moved = engine.scroller.offset
    engine.frame(100.05)
    assert engine.scroller.offset == moved


def test_step_and_seek(engine):
    engine.handle({"type": "step", "dir": 1})
    engine.frame(1.0)
    assert engine.current.primary_id == "dubai"
    engine.handle({"type": "step", "dir": -1})
    engine.handle({"type": "step", "dir": -1})
    engine.frame(1.05)
    assert engine.current.primary_id == "auckland"

    engine.handle({"type": "seek_fraction", "f": 1.0})
    engine.frame(1.1)
    assert engine.current.primary_id == "new_york"
    assert engine.handle({"type": "seek_city", "city": "atlantis"}) is True
    assert engine.seek_city("atlantis") is False


def test_unknown_actions_are_declined(engine):
    assert engine.handle({"type": "quit"}) is False
    assert engine.handle({"type": "toggle_fullscreen"}) is False


def test_resize_keeps_current_city_centred(engine):
    engine.seek_city("london")
    engine.frame(1.0)
    engine.resize(1200)
    engine.frame(1.05)
    assert engine.current.primary_id == "london"
    assert engine.scroller.state.viewport_width == 1200
    assert engine.scroller.offset == engine.mapper.position_of("london") - 600


def test_adjust_offset_moves_the_clock():
    reg = CityRegistry(StaticScheduleSource().load())
    clock = SystemClock()
    eng = TimelineEngine(reg, RecordingPlayer(), viewport_width=VIEWPORT, clock=clock)
    eng.handle({"type": "adjust_offset", "delta": 3600.0})
    assert clock.skew == 3600.0


def test_snapshot_reports_black_box_state(engine):
    snap = engine.snapshot()
    assert snap["mode"] == "recap"
    assert snap["recap"] is True
    assert snap["current"] == "auckland"
    assert snap["video_title"] == "Auckland, New Zealand"
    assert snap["video_loaded"] == "auckland"
    assert [m["cities"] for m in snap["markers"]] == [["auckland"], ["dubai"], ["london"], ["new_york"]]
    assert snap["completed"] == ["auckland"]
    assert snap["scroll"] == 0.0


def test_boot_failure_propagates():
    class Broken:
        def load(self):
            raise BootFailure("schedule unreachable")

    with pytest.raises(BootFailure):
        TimelineEngine.boot(Broken(), RecordingPlayer(), viewport_width=VIEWPORT)


def test_boot_from_static_source():
    eng = TimelineEngine.boot(StaticScheduleSource(event_year=2026), RecordingPlayer(),
                              viewport_width=1280)
    assert eng.registry.event_year == 2026
    assert eng.current.primary_id == "auckland"
    assert len(eng.mapper.markers) >= 10
