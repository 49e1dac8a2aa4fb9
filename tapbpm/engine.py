import logging
from typing import Callable, Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal, Qt, pyqtSlot

from .tap_timer import TapState, TapTimer
from .utils import RESET_TIMEOUT_MS, TAP_WINDOW_SIZE, monotonic_ms

logger = logging.getLogger(__name__)


class QtWatchdog(QObject):
    """Single-shot QTimer; fires on the event loop of the thread that owns it."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._callback: Optional[Callable[[], None]] = None
        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._timer.stop()
        self._callback = callback
        self._timer.start(max(0, int(delay_ms)))

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def is_pending(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self):
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class TapEngine(QObject):
    bpmChanged = pyqtSignal(object)  # int or None
    activeChanged = pyqtSignal(bool)
    stateChanged = pyqtSignal(object)  # TapState

    def __init__(
        self,
        parent=None,
        clock: Callable[[], int] = monotonic_ms,
        window_size: int = TAP_WINDOW_SIZE,
        reset_timeout_ms: int = RESET_TIMEOUT_MS,
    ):
        super().__init__(parent)
        self._watchdog = QtWatchdog(self)
        self._timer = TapTimer(
            clock,
            self._watchdog,
            window_size=window_size,
            reset_timeout_ms=reset_timeout_ms,
        )
        self._last = self._timer.snapshot()
        self._unsubscribe = self._timer.subscribe(self._on_state)

    # Properties
    @property
    def timer(self) -> TapTimer:
        return self._timer

    @property
    def bpm(self) -> Optional[int]:
        return self._timer.bpm

    @property
    def is_active(self) -> bool:
        return self._timer.is_active

    @property
    def reset_timeout_ms(self) -> int:
        return self._timer.reset_timeout_ms

    @pyqtSlot()
    def tap(self):
        self._timer.tap()

    @pyqtSlot()
    def reset(self):
        self._timer.reset()

    @pyqtSlot()
    def shutdown(self):
        logger.debug("Shutting down tap engine")
        self._unsubscribe()
        self._timer.close()

    def _on_state(self, state: TapState):
        previous, self._last = self._last, state
        self.stateChanged.emit(state)
        if state.bpm != previous.bpm:
            self.bpmChanged.emit(state.bpm)
        if state.active != previous.active:
            self.activeChanged.emit(state.active)
