"""Audio-related data models."""

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class AudioFrame:
    """One analysis frame of byte-scaled samples."""
    time_domain: np.ndarray       # uint8, length = fft size, 128 is silence
    frequency_domain: np.ndarray  # uint8, length = fft size / 2, ascending frequency
    timestamp: float  # Monotonic time when this frame was taken
    frame_number: int


@dataclass
class AudioFeatures:
    """Amplitude features extracted from a single frame."""
    rms: float
    peak: float
    effective_amplitude: float


@dataclass
class SessionStats:
    """Analysis session statistics."""
    is_running: bool
    duration_seconds: float
    sample_rate: int
    fft_size: int
    total_frames: int
    pulse_count: int
    measurement_count: int
    noise_artifact_count: int
    peak_level: float = 0.0
    seconds_since_last_frame: Optional[float] = None
