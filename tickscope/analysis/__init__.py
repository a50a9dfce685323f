"""Interval statistics module."""

from .intervals import IntervalTracker
from .summary import classify_stability, summarize_intervals, format_elapsed

__all__ = [
    "IntervalTracker",
    "classify_stability",
    "summarize_intervals",
    "format_elapsed",
]
