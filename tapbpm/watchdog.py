import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Watchdog(Protocol):
    """A single cancellable deferred callback. start() replaces anything pending."""

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...

    def is_pending(self) -> bool: ...


class ThreadingWatchdog:
    """threading.Timer based watchdog for hosts without a Qt event loop.

    The callback runs on the timer thread; the receiver serializes it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        timer = threading.Timer(max(0, delay_ms) / 1000.0, self._fire, args=(callback,))
        timer.daemon = True
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def is_pending(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_alive()

    def _fire(self, callback: Callable[[], None]):
        with self._lock:
            if self._timer is threading.current_thread():
                self._timer = None
        try:
            callback()
        except Exception:
            logger.exception("Watchdog callback failed")
