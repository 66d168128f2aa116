#!/usr/bin/env python3
"""
web_remote.py  –  web remote + diagnostics + black-box state

Endpoints
---------
/               → HTML page with buttons, live state, diagnostics, link to /log
/state          → JSON snapshot of the timeline (mode, current city, markers,
                  completed cards, scroll position)
/diag, /data    → JSON object of diagnostic metrics (incl. video errors)
/action?cmd=…   → inject control commands
                  toggle | next | prev | wheel&steps=N | seek&city=ID |
                  fraction&f=F | offset&ms=N | quit
/log            → contents of the runtime log (if present)
"""

from __future__ import annotations
import http.server
import json
import logging
import math
import os
import platform
import socketserver
import threading
import time
import urllib.parse
from typing import TYPE_CHECKING, Any

import psutil

from events import EventManager
import config

if TYPE_CHECKING:                       # avoid circular import at runtime
    from timeline import TimelineEngine

log = logging.getLogger(__name__)

# ── diagnostics refresh cadence ───────────────────────────────────────────
_last_diag_time = 0.0
_diag_interval  = config.DIAG_REFRESH_INTERVAL

# ── global diagnostic store ───────────────────────────────────────────────
monitor_data: dict[str, Any] = {
    "cpu_percent":       0.0,
    "mem_used":          "0 MB",
    "mem_total":         "0 MB",
    "script_uptime":     "0d 00:00:00",
    "machine_uptime":    "0d 00:00:00",
    "load_avg":          "",
    "video_loads":       0,
    "video_errors":      0,
    "last_video_error":  "",
    "last_http_crash":   "",
    "python_version":    platform.python_version(),
}

_script_start = time.monotonic()
_boot_time    = psutil.boot_time()


# ── helpers ────────────────────────────────────────────────────────────────
def _fmt_duration(secs: float) -> str:
    d, rem = divmod(int(secs), 86400)
    h, rem = divmod(rem, 3600)
    m, s   = divmod(rem, 60)
    return f"{d}d {h:02}:{m:02}:{s:02}"


def _maybe_update_diagnostics(engine: "TimelineEngine | None" = None) -> None:
    global _last_diag_time
    now = time.monotonic()
    if now - _last_diag_time >= _diag_interval:
        _last_diag_time = now
        _update_diagnostics()
    if engine is not None:
        monitor_data["video_loads"]      = engine.sync.load_count
        monitor_data["video_errors"]     = engine.sync.error_count
        monitor_data["last_video_error"] = engine.sync.last_error


def _update_diagnostics() -> None:
    """Refresh CPU, memory, uptime and load in `monitor_data`."""
    monitor_data["cpu_percent"] = psutil.cpu_percent()
    vm = psutil.virtual_memory()
    monitor_data["mem_used"]  = f"{vm.used // 1024**2} MB"
    monitor_data["mem_total"] = f"{vm.total // 1024**2} MB"
    now = time.monotonic()
    monitor_data["script_uptime"]  = _fmt_duration(now - _script_start)
    monitor_data["machine_uptime"] = _fmt_duration(time.time() - _boot_time)
    try:
        la = os.getloadavg()
        monitor_data["load_avg"] = ", ".join(f"{x:.2f}" for x in la)
    except OSError:
        monitor_data["load_avg"] = "N/A"


# ── action parsing ─────────────────────────────────────────────────────────
_MAX_WHEEL_STEPS = 100.0
_MAX_SKEW_MS     = 86_400_000.0     # one day per command


def _number(raw: str, name: str, limit: float | None = None) -> float:
    val = float(raw)
    if not math.isfinite(val):
        raise ValueError(f"{name} must be finite, got {raw!r}")
    if limit is not None and abs(val) > limit:
        raise ValueError(f"{name} out of range (+/-{limit:g}): {raw!r}")
    return val


def action_from_query(query: str) -> dict:
    """Map an /action query string to an EventManager action; ValueError if bad."""
    qs = urllib.parse.parse_qs(query)

    def arg(name: str, default: str = "") -> str:
        return qs.get(name, [default])[0]

    cmd = arg("cmd")
    if cmd == "toggle":
        return {"type": "toggle_mode"}
    if cmd in ("next", "prev"):
        return {"type": "step", "dir": 1 if cmd == "next" else -1}
    if cmd == "wheel":
        return {"type": "wheel", "steps": _number(arg("steps", "1"), "steps", _MAX_WHEEL_STEPS)}
    if cmd == "seek":
        city = arg("city")
        if not city:
            raise ValueError("seek needs city=")
        return {"type": "seek_city", "city": city}
    if cmd == "fraction":
        return {"type": "seek_fraction", "f": _number(arg("f", "0"), "f")}
    if cmd == "offset":
        # clock skew in *milliseconds* (can be ±)
        return {"type": "adjust_offset", "delta": _number(arg("ms", "0"), "ms", _MAX_SKEW_MS) / 1000.0}
    if cmd == "quit":
        return {"type": "quit"}
    raise ValueError(f"unknown cmd {cmd!r}")


# ── reusable threaded HTTP server ──────────────────────────────────────────
class ReusableTCPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
    daemon_threads      = True
    allow_reuse_address = True


# ── request handler ────────────────────────────────────────────────────────
class RemoteHandler(http.server.BaseHTTPRequestHandler):
    def log_message(self, fmt, *args):
        log.debug("http %s", fmt % args)

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        path, qs = parsed.path, parsed.query
        engine = self.server.engine   # type: ignore[attr-defined]

        if path == "/":
            return self._serve_html()
        if path == "/state":
            return self._serve_json(engine.snapshot())
        if path in ("/diag", "/data"):
            _maybe_update_diagnostics(engine)
            return self._serve_json(monitor_data)
        if path == "/log":
            return self._serve_log()
        if path == "/action":
            return self._serve_action(qs)

        self.send_error(404, "Not found")

    # ── helpers for each route ───────────────────────────────────────────
    def _serve_html(self):
        body = HTML_PAGE.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _serve_json(self, obj: Any):
        b = json.dumps(obj).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        self.wfile.write(b)

    def _serve_log(self):
        try:
            with open(config.LOG_FILE, "rb") as f:
                data = f.read()
        except OSError:
            return self.send_error(404, "Log file not found")
        self.send_response(200)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _serve_action(self, query: str):
        try:
            act = action_from_query(query)
        except ValueError as exc:
            return self.send_error(400, str(exc))
        EventManager.post(act)
        self.send_response(204)
        self.end_headers()


# ── simple HTML UI ─────────────────────────────────────────────────────────
HTML_PAGE = """
<!doctype html><html><head><meta charset="utf-8">
<title>NYE Timeline Remote</title>
<style>
 body{background:#000;color:#d4af37;font-family:monospace;padding:1em;}
 a.button{display:inline-block;margin:4px;padding:6px 12px;border:1px solid #d4af37;
          text-decoration:none;color:#d4af37;}
 pre{margin:0.5em 0;font-family:monospace;}
</style></head><body>
<h2>NYE Timeline Remote</h2>
<a class="button" href="/action?cmd=prev">&#9664; City</a>
<a class="button" href="/action?cmd=next">City &#9654;</a>
<a class="button" href="/action?cmd=toggle">Live / Recap</a>
<a class="button" href="/action?cmd=fraction&f=0">First</a>
<a class="button" href="/action?cmd=fraction&f=1">Last</a>

<!-- clock skew for rehearsing live mode -->
<a class="button" href="/action?cmd=offset&ms=-3600000">&minus;1 h</a>
<a class="button" href="/action?cmd=offset&ms=3600000">+1 h</a>

<a class="button" href="/action?cmd=quit">Quit</a>
<a class="button" href="/log">View log</a>

<div><h3>State</h3><pre id="state"></pre></div>
<div><h3>Diagnostics</h3><pre id="diag"></pre></div>

<script>
 function table(obj){
   let txt = '';
   for (let [k,v] of Object.entries(obj)){
     if (k === 'markers') continue;
     txt += k.padEnd(20,' ') + JSON.stringify(v) + '\\n';
   }
   return txt;
 }
 async function refreshUI(){
   try {
     let s = await fetch('/state'); document.getElementById('state').textContent = table(await s.json());
     let d = await fetch('/diag');  document.getElementById('diag').textContent  = table(await d.json());
   } catch(e){
     console.error(e);
   }
 }
 setInterval(refreshUI, 500);
 refreshUI();
</script>
</body></html>
"""


# ── server bootstrap with auto-restart ────────────────────────────────────
def start(engine: "TimelineEngine", port: int = config.WEB_PORT):
    def _serve_loop():
        while True:
            try:
                with ReusableTCPServer(("", port), RemoteHandler) as httpd:
                    httpd.engine = engine
                    httpd.serve_forever()
            except OSError as exc:
                monitor_data["last_http_crash"] = str(exc)
                log.error("web remote crashed, restarting: %s", exc)
                time.sleep(1)

    threading.Thread(target=_serve_loop, daemon=True).start()
    log.info("web remote & diagnostics listening on port %d", port)
