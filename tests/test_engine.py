"""Tests for the Qt bridge: QtWatchdog timing and TapEngine signals."""

import pytest

pytest.importorskip("PyQt5")

from PyQt5.QtTest import QTest  # noqa: E402

from tapbpm.engine import QtWatchdog, TapEngine  # noqa: E402


class _Clock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


def test_qt_watchdog_fires_once(qapp):
    fired = []
    dog = QtWatchdog()
    dog.start(20, lambda: fired.append(True))
    assert dog.is_pending()
    QTest.qWait(150)
    assert fired == [True]
    assert not dog.is_pending()


def test_qt_watchdog_restart_replaces_pending(qapp):
    fired = []
    dog = QtWatchdog()
    dog.start(20, lambda: fired.append("old"))
    dog.start(40, lambda: fired.append("new"))
    QTest.qWait(200)
    assert fired == ["new"]


def test_qt_watchdog_cancel(qapp):
    fired = []
    dog = QtWatchdog()
    dog.start(20, lambda: fired.append(True))
    dog.cancel()
    QTest.qWait(100)
    assert fired == []


def test_engine_signals(qapp):
    clock = _Clock()
    engine = TapEngine(clock=clock)
    bpms, actives, states = [], [], []
    engine.bpmChanged.connect(bpms.append)
    engine.activeChanged.connect(actives.append)
    engine.stateChanged.connect(states.append)

    engine.tap()
    clock.now += 500
    engine.tap()
    clock.now += 500
    engine.tap()
    engine.reset()

    assert bpms == [120, None]
    assert actives == [True, False]
    assert len(states) == 4
    assert engine.bpm is None
    assert not engine.is_active
    engine.shutdown()


def test_engine_auto_reset(qapp):
    clock = _Clock()
    engine = TapEngine(clock=clock, reset_timeout_ms=30)
    actives = []
    engine.activeChanged.connect(actives.append)

    engine.tap()
    assert engine.is_active
    QTest.qWait(200)
    assert actives == [True, False]
    assert engine.timer.taps == ()
    engine.shutdown()


def test_engine_shutdown_stops_watchdog(qapp):
    engine = TapEngine(clock=_Clock(), reset_timeout_ms=30)
    actives = []
    engine.activeChanged.connect(actives.append)
    engine.tap()
    engine.shutdown()
    QTest.qWait(100)
    assert actives == [True]
