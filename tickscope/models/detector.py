"""Detector configuration snapshot."""

from dataclasses import dataclass, replace
from typing import Optional

BASE_INPUT_GAIN = 2.0
THRESHOLD_SOFTENING = 0.7
DEFAULT_MIN_INTER_ARRIVAL_MS = 100.0
HARD_FLOOR_MS = 50.0
ADAPTIVE_INTERVAL_FACTOR = 0.6


def clamp_unit(value: float) -> float:
    """Clamp a user-facing setting into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class DetectorConfig:
    """Immutable detector settings.

    A running session swaps whole snapshots, so one frame evaluation always
    sees a matching threshold and noise-reduction pair. Values outside their
    range are clamped rather than rejected.
    """
    detection_threshold: float = 0.2
    noise_reduction: float = 0.2
    min_inter_arrival_ms: float = DEFAULT_MIN_INTER_ARRIVAL_MS
    adaptive_refractory: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'detection_threshold', clamp_unit(self.detection_threshold))
        object.__setattr__(self, 'noise_reduction', clamp_unit(self.noise_reduction))
        object.__setattr__(self, 'min_inter_arrival_ms',
                           max(HARD_FLOOR_MS, float(self.min_inter_arrival_ms)))

    @property
    def effective_threshold(self) -> float:
        """Amplitude a frame must exceed to count as a pulse."""
        return self.detection_threshold * THRESHOLD_SOFTENING

    @property
    def input_gain(self) -> float:
        """Pre-amplification applied before analysis."""
        return BASE_INPUT_GAIN * (1 - 0.5 * self.noise_reduction)

    def refractory_ms(self, previous_interval_ms: Optional[float] = None) -> float:
        """Minimum time between two pulses.

        With adaptive_refractory the gate follows a fast clock down to
        0.6 x the previous interval, never below the hard floor.
        """
        if not self.adaptive_refractory or not previous_interval_ms:
            return self.min_inter_arrival_ms
        adapted = ADAPTIVE_INTERVAL_FACTOR * previous_interval_ms
        return max(HARD_FLOOR_MS, min(self.min_inter_arrival_ms, adapted))

    def with_updates(self, threshold: Optional[float] = None,
                     noise_reduction: Optional[float] = None) -> 'DetectorConfig':
        """Return a new snapshot with the given settings replaced."""
        changes = {}
        if threshold is not None:
            changes['detection_threshold'] = threshold
        if noise_reduction is not None:
            changes['noise_reduction'] = noise_reduction
        return replace(self, **changes)
