"""Tests for the schedule cache builder (no real recordings needed)."""

import json

from city_registry import CityRegistry, JsonScheduleSource
from schedule_builder import build_schedule, main


def test_builds_full_table_without_recordings(tmp_path):
    videos = tmp_path / "videos"
    videos.mkdir()
    (videos / "notes.txt").write_text("not a video")
    out = tmp_path / "schedule.json"

    data = build_schedule(str(videos), str(out), 2026)

    assert data["event_year"] == 2026
    assert json.loads(out.read_text())["cities"] == data["cities"]
    assert all(c["video"] == "" for c in data["cities"])

    src = JsonScheduleSource(str(out))
    reg = CityRegistry(src.load(), src.event_year)
    assert reg.first.id == "auckland"
    assert reg.last.id == "honolulu"


def test_unreadable_recording_is_dropped(tmp_path):
    videos = tmp_path / "videos"
    videos.mkdir()
    (videos / "london.mp4").write_bytes(b"definitely not an mp4")
    out = tmp_path / "schedule.json"

    data = build_schedule(str(videos), str(out), 2026)
    london = next(c for c in data["cities"] if c["id"] == "london")
    assert london["video"] == ""
    assert london["video_duration"] == 0.0


def test_missing_video_folder_still_writes_schedule(tmp_path):
    out = tmp_path / "schedule.json"
    data = build_schedule(str(tmp_path / "absent"), str(out), 2026)
    assert out.exists()
    assert len(data["cities"]) >= 20


def test_command_line_entry_point(tmp_path):
    videos = tmp_path / "videos"
    videos.mkdir()
    out = tmp_path / "cache.json"

    data = main([str(videos), "-o", str(out), "-y", "2027"])

    assert data["event_year"] == 2027
    assert json.loads(out.read_text())["event_year"] == 2027
