# =========  video_player.py  =========
"""
GStreamer VideoPlayer for the city recordings.

Public API
----------
load_video(ref)     → swap to a new recording (file path or URI), looping;
                      raises VideoLoadFailure and keeps the current one
decode_frame()      → latest frame (HxWx3 uint8) or None before first load
set_volume(0.0-1.0)
close() / stop()
Properties
----------
.ref   → currently playing reference
.sar   → sample-aspect ratio
"""
import logging
import os
import queue
import threading

import gi
gi.require_version("Gst", "1.0")
from gi.repository import Gst, GLib

import numpy as np

import config
from errors import VideoLoadFailure

log = logging.getLogger(__name__)


def _to_uri(ref: str) -> str:
    if "://" in ref:
        return ref
    if not os.path.isfile(ref):
        raise VideoLoadFailure(ref, "file not found")
    return Gst.filename_to_uri(os.path.abspath(ref))


# ────────────────────────────────────────────────────────────────────────────
class _Pipeline:
    """One playbin plus its appsink queue; replaced wholesale per load."""

    def __init__(self, uri: str):
        self.q = queue.Queue(maxsize=1)
        self.w = self.h = 0
        self.sar = 1.0
        self._bus_handler = None

        self.bin = Gst.ElementFactory.make("playbin", None)
        self._vsink = None
        sink = self._build_hw_sink() if config.VIDEO_HW_DECODE else None
        self.bin.set_property("video-sink", sink or self._build_sw_sink())
        self.bin.set_property("audio-sink", Gst.ElementFactory.make("autoaudiosink", None))
        self.bin.set_property("uri", uri)

    # ── sink builders ───────────────────────────────────────────────────────
    def _build_hw_sink(self):
        """
        GPU decode → RGB565 appsink.  Returns a Gst.Bin or None if the
        hardware plugins are missing or cannot link.
        """
        desc = (
            "h264parse ! "
            "v4l2h264dec capture-io-mode=dmabuf-import ! "
            "video/x-raw(memory:DMABuf),format=NV12 ! "
            "videoconvert ! "
            "video/x-raw,format=RGB16_LE ! "
            "queue max-size-buffers=1 leaky=downstream ! "
            "appsink name=vsink emit-signals=true "
            "max-buffers=2 drop=true sync=true "
            "caps=video/x-raw,format=RGB16_LE"
        )
        try:
            bin_ = Gst.parse_bin_from_description(desc, True)
        except GLib.Error:
            return None
        self._vsink = bin_.get_by_name("vsink")
        self._vsink.connect("new-sample", self._on_sample)
        return bin_

    def _build_sw_sink(self):
        vs = Gst.ElementFactory.make("appsink", "vsink")
        vs.set_property("emit-signals", True)
        vs.set_property("max-buffers", 2)
        vs.set_property("drop", True)
        vs.set_property("sync", True)
        vs.set_property("caps", Gst.Caps.from_string("video/x-raw,format=RGB"))
        vs.connect("new-sample", self._on_sample)
        self._vsink = vs
        return vs

    # ── lifecycle ───────────────────────────────────────────────────────────
    def preroll(self, timeout: float) -> None:
        self.bin.set_state(Gst.State.PAUSED)
        msg = self.bin.get_bus().timed_pop_filtered(
            int(timeout * Gst.SECOND),
            Gst.MessageType.ASYNC_DONE | Gst.MessageType.ERROR,
        )
        if msg is None:
            raise RuntimeError("preroll timed out")
        if msg.type == Gst.MessageType.ERROR:
            raise RuntimeError(msg.parse_error()[0].message)

        caps = self._vsink.get_static_pad("sink").get_current_caps().get_structure(0)
        self.w, self.h = caps.get_int("width")[1], caps.get_int("height")[1]
        if caps.has_field("pixel-aspect-ratio"):
            num, den = caps.get_fraction("pixel-aspect-ratio")[-2:]
            self.sar = num / den if den else 1.0

    def play(self) -> None:
        self.bin.set_state(Gst.State.PLAYING)

    def rewind(self) -> None:
        self.bin.seek_simple(Gst.Format.TIME, Gst.SeekFlags.FLUSH, 0)

    def watch(self, callback) -> None:
        bus = self.bin.get_bus()
        bus.add_signal_watch()
        self._bus_handler = bus.connect("message", callback, self)

    def stop(self) -> None:
        self.bin.set_state(Gst.State.NULL)
        if self._bus_handler is not None:
            bus = self.bin.get_bus()
            bus.disconnect(self._bus_handler)
            bus.remove_signal_watch()
            self._bus_handler = None

    def _on_sample(self, sink):
        samp = sink.emit("pull-sample")
        if samp:
            buf = samp.get_buffer()
            ok, mi = buf.map(Gst.MapFlags.READ)
            if ok:
                try:
                    self.q.put_nowait(bytes(mi.data))
                except queue.Full:
                    pass
                buf.unmap(mi)
        return Gst.FlowReturn.OK


# ────────────────────────────────────────────────────────────────────────────
class VideoPlayer:
    def __init__(self):
        Gst.init(None)
        self._pipe = None
        self._last = None
        self._volume = 1.0
        self.ref = ""
        self._ml = GLib.MainLoop()
        self._ml_thread = threading.Thread(target=self._ml.run, daemon=True)
        self._ml_thread.start()

    @property
    def sar(self) -> float:
        return self._pipe.sar if self._pipe else 1.0

    # ── public API ──────────────────────────────────────────────────────────
    def load_video(self, ref: str) -> None:
        if not ref:
            raise VideoLoadFailure(ref, "no recording for this city")
        uri = _to_uri(ref)

        new = _Pipeline(uri)
        try:
            new.preroll(config.VIDEO_PREROLL_TIMEOUT)
        except RuntimeError as exc:
            new.stop()
            raise VideoLoadFailure(ref, str(exc)) from exc

        old, self._pipe = self._pipe, new
        if old:
            old.stop()

        new.watch(self._on_bus_msg)
        new.bin.set_property("volume", self._volume)
        new.play()
        self.ref = ref

    def decode_frame(self):
        if not self._pipe:
            return self._last
        data = None
        while True:
            try:
                data = self._pipe.q.get_nowait()
            except queue.Empty:
                break
        if data is not None:
            self._last = self._bytes_to_arr(data, self._pipe.w, self._pipe.h)
        return self._last

    def set_volume(self, vol: float):
        self._volume = max(0.0, min(1.0, vol))
        if self._pipe:
            self._pipe.bin.set_property("volume", self._volume)

    def close(self):
        if self._pipe:
            self._pipe.stop()
            self._pipe = None
        if self._ml.is_running():
            self._ml.quit()
            if threading.current_thread() is not self._ml_thread:
                self._ml_thread.join(timeout=0.5)
        self.ref = ""

    stop = close  # alias

    # ── internals ───────────────────────────────────────────────────────────
    @staticmethod
    def _bytes_to_arr(data: bytes, w: int, h: int):
        """
        Convert RGB16_LE (5-6-5) → RGB888 uint8.
        Fallback RGB888 data is handled transparently.
        """
        if len(data) == w * h * 2:     # RGB565
            px = np.frombuffer(data, np.uint16).reshape((h, w))
            r = ((px >> 11) & 0x1F).astype(np.uint8) << 3
            g = ((px >> 5) & 0x3F).astype(np.uint8) << 2
            b = (px & 0x1F).astype(np.uint8) << 3
            return np.stack((r, g, b), axis=-1)
        stride = len(data) // h
        rows   = np.frombuffer(data, np.uint8).reshape((h, stride))
        return np.ascontiguousarray(rows[:, : w * 3].reshape((h, w, 3)))

    def _on_bus_msg(self, bus, msg, pipe):
        if pipe is not self._pipe:
            return True
        if msg.type == Gst.MessageType.EOS:
            pipe.rewind()                       # recordings loop
        elif msg.type == Gst.MessageType.ERROR:
            err, dbg = msg.parse_error()
            log.warning("playback error on %s: %s (%s)", self.ref, err.message, dbg)
        return True
