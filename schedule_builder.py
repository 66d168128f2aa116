"""
schedule_builder.py  – one-shot schedule cache creator

Merges the built-in city table with the recordings found in VIDEOS_PATH
(`<city_id>.mp4|mkv|mov|webm`) and writes the JSON the app boots from.
Each recording is probed once with PyAV so the overlay can show its
length; cities without a recording keep an empty video reference.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import pathlib
import time

import av

import config
from city_registry import DEFAULT_CITIES

log = logging.getLogger(__name__)

_VIDEO_EXTS = (".mp4", ".mkv", ".mov", ".webm", ".m4v")


# ---------- probe ---------------------------------------------------------
def _probe_seconds(fp: str) -> float:
    """Clip length in seconds; 0.0 if the file cannot be read."""
    try:
        with av.open(fp) as c:
            vs = next((s for s in c.streams if s.type == "video"), None)
            if vs is None:
                return 0.0
            if vs.duration and vs.time_base:
                return float(vs.duration * vs.time_base)
            if c.duration:
                return c.duration / av.time_base
            if vs.frames and vs.average_rate:
                return vs.frames / float(vs.average_rate)
    except (av.error.FFmpegError, OSError) as exc:
        log.warning("cannot probe %s: %s", fp, exc)
    return 0.0


def _find_recordings(videos_path: str) -> dict[str, str]:
    found: dict[str, str] = {}
    if not os.path.isdir(videos_path):
        log.warning("no video folder at %s", videos_path)
        return found
    for name in sorted(os.listdir(videos_path)):
        stem, ext = os.path.splitext(name)
        if ext.lower() in _VIDEO_EXTS and stem.lower() not in found:
            found[stem.lower()] = os.path.join(videos_path, name)
    return found


# ---------- builder -------------------------------------------------------
def build_schedule(videos_path: str | None = None,
                   out_path: str | None = None,
                   event_year: int | None = None) -> dict:
    videos_path = videos_path or config.VIDEOS_PATH
    out_path = out_path or config.SCHEDULE_PATH
    event_year = event_year or config.EVENT_YEAR

    log.info("scanning %s for city recordings …", videos_path)
    recordings = _find_recordings(videos_path)

    cities = []
    for cid, name, country, offset in DEFAULT_CITIES:
        fp = recordings.pop(cid, "")
        dur = _probe_seconds(fp) if fp else 0.0
        if fp and not dur:
            log.warning("skipping unreadable recording: %s", fp)
            fp = ""
        cities.append({
            "id": cid,
            "name": name,
            "country": country,
            "utc_offset": offset,
            "video": fp,
            "video_duration": round(dur, 3),
        })

    for stem, fp in recordings.items():
        log.warning("recording %s matches no known city id", fp)

    data = {"generated": time.time(), "event_year": event_year, "cities": cities}
    pathlib.Path(out_path).write_text(json.dumps(data, indent=2))
    log.info("schedule written → %s (%d cities, %d with video)",
             out_path, len(cities), sum(1 for c in cities if c["video"]))
    return data



# -------------------------------------------------------------------------
def main(argv=None) -> dict:
    ap = argparse.ArgumentParser(description="Rebuild the city schedule cache")
    ap.add_argument("videos", nargs="?", default=config.VIDEOS_PATH,
                    help=f"folder of <city_id>.mp4 recordings (default: {config.VIDEOS_PATH})")
    ap.add_argument("-o", "--out", default=config.SCHEDULE_PATH)
    ap.add_argument("-y", "--year", type=int, default=config.EVENT_YEAR)
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    return build_schedule(args.videos, args.out, args.year)


if __name__ == "__main__":
    main()
