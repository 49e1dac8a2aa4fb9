import os

import pytest


class FakeScheduler:
    """Manual clock plus a watchdog that fires only when time is advanced."""

    def __init__(self, start: int = 0):
        self.now = start
        self.deadline = None
        self.callback = None
        self.started = []  # every callback ever scheduled, oldest first

    def clock(self) -> int:
        return self.now

    # Watchdog protocol
    def start(self, delay_ms, callback):
        self.deadline = self.now + delay_ms
        self.callback = callback
        self.started.append(callback)

    def cancel(self):
        self.deadline = None
        self.callback = None

    def is_pending(self):
        return self.callback is not None

    def advance(self, ms: int):
        self.now += ms
        if self.callback is not None and self.now >= self.deadline:
            callback = self.callback
            self.cancel()
            callback()


@pytest.fixture
def scheduler():
    return FakeScheduler(start=1000)


@pytest.fixture
def qapp():
    pytest.importorskip("PyQt5")
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PyQt5.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app
