"""Interval statistics models."""

from dataclasses import dataclass
from enum import Enum


class StabilityRating(Enum):
    """Qualitative timing stability of a clock."""
    EXCELLENT = ("Excellent", "Consistent")
    GOOD = ("Good", "Minor drift")
    FAIR = ("Fair", "Significant")
    POOR = ("Poor", "Unstable")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def description(self) -> str:
        return self.value[1]


@dataclass(frozen=True)
class IntervalSummary:
    """Aggregate statistics over a set of intervals."""
    count: int
    mean_ms: float
    std_dev_ms: float  # Population standard deviation
    min_ms: float
    max_ms: float
    mean_bpm: float
    max_deviation_pct: float
    stability: StabilityRating
