"""
Tap timer: the tap window, BPM estimate and inactivity watchdog.

Two states: IDLE (no taps, no watchdog) and ACTIVE (at least one tap since the
last reset, watchdog pending). Every tap rearms the watchdog; when it fires
without an intervening tap the timer resets itself exactly like a manual reset.

No Qt here. Hosts supply the clock and the watchdog; see engine.TapEngine for
the Qt wiring.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .utils import RESET_TIMEOUT_MS, TAP_WINDOW_SIZE, TapWindow, monotonic_ms
from .watchdog import ThreadingWatchdog, Watchdog

logger = logging.getLogger(__name__)

Listener = Callable[["TapState"], None]


@dataclass(frozen=True)
class TapState:
    taps: tuple
    bpm: Optional[int]
    active: bool


IDLE_STATE = TapState(taps=(), bpm=None, active=False)


class TapTimer:
    """
    Estimates tempo from the spacing of taps.

    Usage:
        timer = TapTimer()
        unsubscribe = timer.subscribe(render)
        timer.tap()      # on click / key down
        timer.reset()    # on the reset key
        timer.close()    # on teardown
    """

    def __init__(
        self,
        clock: Callable[[], int] = monotonic_ms,
        watchdog: Optional[Watchdog] = None,
        *,
        window_size: int = TAP_WINDOW_SIZE,
        reset_timeout_ms: int = RESET_TIMEOUT_MS,
    ):
        """
        Args:
            clock: Returns monotonic milliseconds.
            watchdog: Deferred-callback primitive for the inactivity reset.
                Defaults to a ThreadingWatchdog.
            window_size: Number of most recent taps averaged.
            reset_timeout_ms: Inactivity period before the automatic reset.
        """
        self._clock = clock
        self._watchdog = watchdog if watchdog is not None else ThreadingWatchdog()
        self._reset_timeout_ms = int(reset_timeout_ms)

        self._lock = threading.RLock()
        self._window = TapWindow(window_size)
        self._bpm: Optional[int] = None
        self._active = False
        # identifies the current watchdog arming; a fire carrying an older value is stale
        self._generation = 0
        self._listeners: list[Listener] = []

    # Observables
    @property
    def bpm(self) -> Optional[int]:
        return self._bpm

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def taps(self) -> tuple:
        return self._window.times()

    @property
    def reset_timeout_ms(self) -> int:
        return self._reset_timeout_ms

    def snapshot(self) -> TapState:
        with self._lock:
            return TapState(taps=self._window.times(), bpm=self._bpm, active=self._active)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a TapState after every change."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # Triggers
    def tap(self) -> None:
        with self._lock:
            now = self._clock()
            if self._window.push(now):
                self._bpm = self._window.bpm()
            else:
                logger.debug("Tap at %s ms does not advance the window, not recorded", now)
            self._active = True

            self._generation += 1
            generation = self._generation
            self._watchdog.cancel()
            self._watchdog.start(self._reset_timeout_ms, lambda: self._expire(generation))

            logger.debug("Tap at %s ms: %d in window, bpm=%s", now, len(self._window), self._bpm)
            self._notify()

    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self._watchdog.cancel()
            if not self._active and not len(self._window):
                return
            self._window.clear()
            self._bpm = None
            self._active = False
            logger.debug("Reset")
            self._notify()

    def close(self) -> None:
        """Cancel the watchdog and drop all listeners."""
        with self._lock:
            self._generation += 1
            self._watchdog.cancel()
            self._listeners.clear()

    def _expire(self, generation: int):
        with self._lock:
            if generation != self._generation:
                logger.debug("Ignoring stale watchdog fire")
                return
            logger.debug("No tap for %d ms, resetting", self._reset_timeout_ms)
            self.reset()

    def _notify(self):
        state = TapState(taps=self._window.times(), bpm=self._bpm, active=self._active)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Tap listener failed")
