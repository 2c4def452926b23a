"""
Statistics tracker: turns the click-completion stream into rate measurements.

Memory stays bounded: counters plus a short history of performance samples.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from models import PerformanceSample, RateStats, current_millis, monotonic_millis


MEASUREMENT_WINDOW_MS = 1000
MAX_PERFORMANCE_SAMPLES = 100


class StatisticsTracker:
    """
    Tracks lifetime/session click counts and measured CPS.

    sample() must be called periodically (e.g. once per UI refresh); it only
    does work when a full measurement window has elapsed.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        lifetime_clicks: int = 0,
        max_samples: int = MAX_PERFORMANCE_SAMPLES,
    ) -> None:
        self._clock = clock or monotonic_millis
        self._lock = threading.Lock()
        self._lifetime_clicks = max(0, int(lifetime_clicks))
        self._session_clicks = 0
        self._window_clicks = 0
        self._window_start = self._clock()
        self._measured_rate = 0.0
        self._peak_rate = 0.0
        self._average_rate = 0.0
        self._measure_count = 0
        self._target_rate = 0.0
        self._samples: Deque[PerformanceSample] = deque(maxlen=max_samples)

    def set_target_rate(self, target_cps: float) -> None:
        with self._lock:
            self._target_rate = float(target_cps)

    def record_click(self) -> None:
        with self._lock:
            self._window_clicks += 1
            self._lifetime_clicks += 1
            self._session_clicks += 1

    def sample(self, now: Optional[int] = None) -> bool:
        """
        Close the current window if at least one second has elapsed.

        Args:
            now: Current time in milliseconds (defaults to the tracker clock)

        Returns:
            bool: True if a new measurement was taken
        """
        now = self._clock() if now is None else now
        with self._lock:
            elapsed = now - self._window_start
            if elapsed < MEASUREMENT_WINDOW_MS:
                return False

            rate = self._window_clicks * 1000.0 / elapsed
            self._measured_rate = rate
            self._peak_rate = max(self._peak_rate, rate)
            self._average_rate = (self._average_rate * self._measure_count + rate) / (self._measure_count + 1)
            self._measure_count += 1
            self._samples.append(PerformanceSample(current_millis(), self._target_rate, rate))

            self._window_start = now
            self._window_clicks = 0
            return True

    def accuracy(self, target_rate: Optional[float] = None) -> float:
        """Measured/target ratio capped at 1.0; 1.0 when there is no target."""
        with self._lock:
            target = self._target_rate if target_rate is None else target_rate
            measured = self._measured_rate
        if target <= 0:
            return 1.0
        return min(1.0, measured / target)

    def reset(self) -> None:
        """Clear session statistics. Lifetime clicks are kept."""
        with self._lock:
            self._session_clicks = 0
            self._window_clicks = 0
            self._window_start = self._clock()
            self._measured_rate = 0.0
            self._peak_rate = 0.0
            self._average_rate = 0.0
            self._measure_count = 0
            self._samples.clear()

    def start_window(self, now: Optional[int] = None) -> None:
        """Begin a fresh measurement window without touching the counters."""
        with self._lock:
            self._window_start = self._clock() if now is None else now
            self._window_clicks = 0

    @property
    def measured_rate(self) -> float:
        with self._lock:
            return self._measured_rate

    @property
    def average_rate(self) -> float:
        with self._lock:
            return self._average_rate

    @property
    def peak_rate(self) -> float:
        with self._lock:
            return self._peak_rate

    @property
    def lifetime_clicks(self) -> int:
        with self._lock:
            return self._lifetime_clicks

    @property
    def session_clicks(self) -> int:
        with self._lock:
            return self._session_clicks

    def get_performance_samples(self) -> List[PerformanceSample]:
        with self._lock:
            return list(self._samples)

    def snapshot(self) -> RateStats:
        with self._lock:
            return RateStats(
                lifetime_clicks=self._lifetime_clicks,
                session_clicks=self._session_clicks,
                peak_rate=self._peak_rate,
                average_rate=self._average_rate,
                measured_rate=self._measured_rate,
                measurement_window_start=self._window_start,
                window_click_count=self._window_clicks,
            )
