# config.py
"""
Configuration settings for the NYE global timeline.
"""
FPS   = 60

# ── Basic Application Settings ──────────────────────────────────────────────

# Year whose 1 January local midnight is being celebrated
EVENT_YEAR = 2026

# Schedule cache written by schedule_builder.py and read at boot
SCHEDULE_PATH = "schedule.json"

# Directory holding one recording per city, named <city_id>.<ext>
VIDEOS_PATH = "videos"

RUN_SCHEDULE_BUILDER = True

# Display settings
FULLSCREEN = False
WINDOWED_SIZE = (1280, 720)
TIMELINE_HEIGHT = 120

# ── Axis layout ────────────────────────────────────────────────────────────

PIXELS_PER_MINUTE   = 1.0    # horizontal scale of the time axis
MARKER_WIDTH        = 120.0  # px reserved per marker for its label
CLUSTER_EPSILON_MIN = 0.0    # offsets this close (minutes) share one marker

# ── Scroll / drag ──────────────────────────────────────────────────────────

WHEEL_STEP_PX         = 120.0  # px per wheel notch
MOMENTUM_DECAY        = 0.92   # velocity kept per 1/60 s after drag release
MOMENTUM_MIN_VELOCITY = 20.0   # px/s, momentum stops below this
MOMENTUM_MAX_VELOCITY = 6000.0 # px/s, release velocity is capped here

# ── Mode ───────────────────────────────────────────────────────────────────

# "recap" (free scrubbing) or "live" (clock-driven)
START_MODE = "recap"

# Seconds between clock ticks in live mode / header refresh
CLOCK_TICK_SEC = 1.0

# ── Sync ───────────────────────────────────────────────────────────────────

# Quiet period (s) before a settled city actually swaps the video
VIDEO_DEBOUNCE_SEC = 0.35

# Seconds to wait for the video pipeline to preroll before giving up
VIDEO_PREROLL_TIMEOUT = 5.0

# Raspberry Pi v4l2 H.264 decode path; software appsink otherwise
VIDEO_HW_DECODE = False

# ── Ops ────────────────────────────────────────────────────────────────────

WEB_PORT = 8080
LOG_FILE = "runtime.log"
LOG_LEVEL = "INFO"
DIAG_REFRESH_INTERVAL = 1.0
