import math
import time
from typing import Iterable, List, Optional

TAP_WINDOW_SIZE = 8
RESET_TIMEOUT_MS = 3000


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


def bpm_from_taps(times: Iterable[int]) -> Optional[int]:
    """BPM as 60000 / average interval of consecutive taps (milliseconds).

    Returns None with fewer than two taps. Halves round up.
    """
    times = list(times)
    if len(times) < 2:
        return None
    intervals = [t2 - t1 for t1, t2 in zip(times[:-1], times[1:])]
    avg = sum(intervals) / len(intervals)
    if avg <= 0:
        return None
    return int(math.floor(60_000 / avg + 0.5))


class TapWindow:
    """Most recent tap timestamps, oldest first, at most `size` entries."""

    def __init__(self, size: int = TAP_WINDOW_SIZE):
        if size < 2:
            raise ValueError(f"window size must be at least 2, got {size}")
        self.size = size
        self._times: List[int] = []

    def push(self, t: int) -> bool:
        # timestamps stay strictly increasing; a non-advancing clock is dropped
        if self._times and t <= self._times[-1]:
            return False
        self._times.append(t)
        if len(self._times) > self.size:
            del self._times[:-self.size]
        return True

    def clear(self):
        self._times.clear()

    def times(self) -> tuple:
        return tuple(self._times)

    def bpm(self) -> Optional[int]:
        return bpm_from_taps(self._times)

    def __len__(self):
        return len(self._times)

    def __iter__(self):
        return iter(self._times)
