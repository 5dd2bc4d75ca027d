"""
Keyed interval pacer for provider calls.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class Pacer:
    """
    Enforces a minimum interval between consecutive calls sharing a key.

    The first call for a key never waits. Concurrent callers on one key get
    successive slots; callers on different keys never wait for each other.
    Clock and sleep are injectable so pacing can be verified without real
    delays.
    """

    def __init__(
        self,
        *,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._min_interval_seconds = max(0.0, min_interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._last_call_by_key: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval_seconds

    def wait(self, key: str = "default") -> float:
        """
        Sleep as needed so calls for `key` respect the minimum interval.

        Returns the number of seconds slept.
        """

        if self._min_interval_seconds <= 0:
            return 0.0

        # Reserve the slot under the lock, sleep outside it.
        with self._lock:
            now = self._clock()
            last_slot = self._last_call_by_key.get(key)
            slot = now if last_slot is None else max(now, last_slot + self._min_interval_seconds)
            self._last_call_by_key[key] = slot

        wait_seconds = slot - now
        if wait_seconds > 0:
            self._sleep(wait_seconds)
            return wait_seconds
        return 0.0

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._last_call_by_key.clear()
            else:
                self._last_call_by_key.pop(key, None)
