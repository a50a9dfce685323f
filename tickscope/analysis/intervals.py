"""Interval tracking: consecutive pulses in, measurements out."""

import logging
from collections import deque
from typing import Callable, Deque, List, Optional

from ..models.events import Pulse, Measurement, NoiseArtifact, NoiseReason
from ..models.statistics import IntervalSummary
from .summary import summarize_intervals, format_elapsed

logger = logging.getLogger(__name__)


class IntervalTracker:
    """Turns the ordered pulse stream into Measurements.

    The first pulse of a session only sets the reference time. An interval
    shorter than min_plausible_interval_ms is detector chatter: it is
    dropped and the reference time stays on the last valid pulse.

    intervals and measurements keep the whole session (about 7000 entries
    per hour at 2 beats per second) for the session summary; they are
    cleared by reset().
    """

    def __init__(self,
                 window_size: int = 10,
                 min_plausible_interval_ms: float = 100.0,
                 session_start: Optional[float] = None,
                 include_current_in_average: bool = True,
                 on_noise: Optional[Callable[[NoiseArtifact], None]] = None):
        """Initialize interval tracker.

        Args:
            window_size: Number of recent intervals in the rolling average
            min_plausible_interval_ms: Shorter intervals are discarded
            session_start: Monotonic start time used for sequence_time;
                defaults to the first pulse
            include_current_in_average: Whether the rolling average that
                deviation is measured against includes the new interval
            on_noise: Optional hook receiving discarded pulses
        """
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.window_size = window_size
        self.min_plausible_interval_ms = min_plausible_interval_ms
        self.include_current_in_average = include_current_in_average
        self.on_noise = on_noise

        self.session_start = session_start
        self.last_pulse_time: Optional[float] = None
        self.window: Deque[float] = deque(maxlen=window_size)
        self.intervals: List[float] = []
        self.measurements: List[Measurement] = []
        self.discarded_count = 0

    def reset(self, session_start: Optional[float] = None) -> None:
        self.session_start = session_start
        self.last_pulse_time = None
        self.window.clear()
        self.intervals = []
        self.measurements = []
        self.discarded_count = 0

    def add_pulse(self, pulse: Pulse) -> Optional[Measurement]:
        """Account for one accepted pulse.

        Returns:
            The Measurement closing the interval, or None for the first
            pulse and for implausibly short intervals
        """
        timestamp = pulse.timestamp_seconds
        if self.session_start is None:
            self.session_start = timestamp

        if self.last_pulse_time is None:
            self.last_pulse_time = timestamp
            return None

        interval_ms = (timestamp - self.last_pulse_time) * 1000
        if interval_ms < self.min_plausible_interval_ms:
            self.discarded_count += 1
            logger.debug(f"Discarding implausible interval of {interval_ms:.1f}ms")
            if self.on_noise is not None:
                self.on_noise(NoiseArtifact(
                    timestamp_seconds=timestamp,
                    magnitude=pulse.magnitude,
                    reason=NoiseReason.IMPLAUSIBLE_INTERVAL,
                    elapsed_ms=interval_ms
                ))
            return None

        if self.include_current_in_average or not self.window:
            self.window.append(interval_ms)
            average = sum(self.window) / len(self.window)
        else:
            average = sum(self.window) / len(self.window)
            self.window.append(interval_ms)

        measurement = Measurement(
            sequence_time=format_elapsed(timestamp - self.session_start),
            interval_ms=interval_ms,
            frequency_bpm=60000 / interval_ms,
            deviation_pct=(interval_ms - average) / average * 100,
            timestamp_seconds=timestamp
        )
        self.intervals.append(interval_ms)
        self.measurements.append(measurement)
        self.last_pulse_time = timestamp
        return measurement

    def window_summary(self) -> Optional[IntervalSummary]:
        """Statistics over the rolling window."""
        return summarize_intervals(self.window)

    def session_summary(self) -> Optional[IntervalSummary]:
        """Statistics over every accepted interval of the session."""
        return summarize_intervals(self.intervals)
