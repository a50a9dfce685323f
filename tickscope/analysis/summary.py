"""
Aggregate interval statistics and stability classification.

Pure functions: intervals in, statistics out.
"""

import math
from typing import Iterable, Optional

from ..models.statistics import IntervalSummary, StabilityRating

# Lower bound (inclusive) of each band, in percent of the mean interval
GOOD_FROM_PCT = 2.0
FAIR_FROM_PCT = 5.0
POOR_FROM_PCT = 10.0


def classify_stability(max_deviation_pct: float) -> StabilityRating:
    """Rate timing stability from the worst deviation off the mean.

    Bands include their lower edge: exactly 5% is already FAIR.
    """
    deviation = abs(max_deviation_pct)
    if deviation >= POOR_FROM_PCT:
        return StabilityRating.POOR
    if deviation >= FAIR_FROM_PCT:
        return StabilityRating.FAIR
    if deviation >= GOOD_FROM_PCT:
        return StabilityRating.GOOD
    return StabilityRating.EXCELLENT


def summarize_intervals(intervals: Iterable[float]) -> Optional[IntervalSummary]:
    """
    Summarize a set of intervals in milliseconds.

    The standard deviation is the population form (divide by N).

    Returns:
        IntervalSummary, or None when there are no intervals
    """
    values = [float(v) for v in intervals]
    if not values:
        return None

    count = len(values)
    mean = sum(values) / count
    std_dev = math.sqrt(sum((v - mean) ** 2 for v in values) / count)
    low = min(values)
    high = max(values)
    max_deviation_pct = max(abs(high - mean), abs(low - mean)) * 100 / mean

    return IntervalSummary(
        count=count,
        mean_ms=mean,
        std_dev_ms=std_dev,
        min_ms=low,
        max_ms=high,
        mean_bpm=60000 / mean,
        max_deviation_pct=max_deviation_pct,
        stability=classify_stability(max_deviation_pct),
    )


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as HH:MM:SS (whole seconds, floored)."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
