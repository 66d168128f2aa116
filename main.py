import logging
import os
import sys

import config
import web_remote
from city_registry import JsonScheduleSource
from errors import BootFailure
from schedule_builder import build_schedule
from timeline import TimelineEngine

log = logging.getLogger("nye")


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        handlers=[logging.FileHandler(config.LOG_FILE, encoding="utf-8"),
                  logging.StreamHandler()],
    )


def main():
    setup_logging()
    if config.RUN_SCHEDULE_BUILDER or not os.path.isfile(config.SCHEDULE_PATH):
        build_schedule()

    # imported late: pulls in GStreamer
    from video_player import VideoPlayer
    from app import TimelineApp

    player = VideoPlayer()
    try:
        engine = TimelineEngine.boot(JsonScheduleSource(config.SCHEDULE_PATH), player,
                                     viewport_width=config.WINDOWED_SIZE[0])
    except BootFailure as exc:
        log.error("cannot start: %s", exc)
        player.close()
        sys.exit(1)

    web_remote.start(engine)
    TimelineApp(engine, player).run()

if __name__ == "__main__":
    main()
