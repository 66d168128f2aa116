"""Tests for the debouncer and the skewable clock."""

from timing import Debouncer, SystemClock


def test_fires_once_after_quiet_window():
    d = Debouncer(0.35)
    d.schedule("dubai", now=1.0)
    assert d.poll(1.2) == (False, None)
    assert d.poll(1.36) == (True, "dubai")
    assert d.poll(2.0) == (False, None)


def test_reschedule_restarts_window_and_keeps_last_value():
    d = Debouncer(0.35)
    d.schedule("dubai", now=1.0)
    d.schedule("london", now=1.3)
    assert d.poll(1.4) == (False, None)
    assert d.pending
    assert d.poll(1.66) == (True, "london")
    assert not d.pending


def test_cancel():
    d = Debouncer(0.1)
    d.schedule("x", now=0.0)
    d.cancel()
    assert d.poll(5.0) == (False, None)


def test_clock_skew():
    c = SystemClock(skew=10.0)
    base = c.now()
    c.adjust(-20.0)
    assert base - 25.0 < c.now() < base - 15.0
