"""Freshness tracker — time of the last successful probe + readiness window."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class FreshnessTracker:
    """Thread-safe holder of the last successful check time.

    The probe loop is the only writer; HTTP handlers read through is_ready().
    The lock guards a single timestamp and is never held across I/O.
    """

    def __init__(
        self,
        threshold: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold <= 0:
            raise ValueError(f"staleness threshold must be positive, got {threshold}")
        self.threshold = threshold
        self._clock = clock
        self._last_success: float | None = None  # None = never succeeded
        self._lock = threading.Lock()

    def record_success(self) -> None:
        with self._lock:
            self._last_success = self._clock()

    def is_ready(self) -> bool:
        """True iff a success was recorded less than ``threshold`` seconds ago."""
        with self._lock:
            last = self._last_success
        if last is None:
            return False
        return self._clock() - last < self.threshold

    def last_success_age(self) -> float | None:
        with self._lock:
            last = self._last_success
        if last is None:
            return None
        return self._clock() - last
