"""Per-frame amplitude features and the spectrogram history view."""

import math
import logging
from collections import deque
from typing import Deque

import numpy as np

from ..models.audio import AudioFrame, AudioFeatures

logger = logging.getLogger(__name__)

SAMPLE_CENTER = 128.0
RMS_WEIGHT = 0.3
PEAK_WEIGHT = 0.7


def extract_features(frame: AudioFrame) -> AudioFeatures:
    """Compute RMS, peak and the blended amplitude score of a frame.

    Ticks are short and peak-dominated, so the score leans on the peak;
    RMS alone under-detects them.
    """
    samples = np.asarray(frame.time_domain, dtype=np.float64)
    if samples.size == 0:
        return AudioFeatures(rms=0.0, peak=0.0, effective_amplitude=0.0)

    normalized = (samples - SAMPLE_CENTER) / SAMPLE_CENTER
    rms = float(np.sqrt(np.mean(normalized * normalized)))
    peak = float(np.max(np.abs(normalized)))
    return AudioFeatures(
        rms=rms,
        peak=peak,
        effective_amplitude=RMS_WEIGHT * rms + PEAK_WEIGHT * peak
    )


class FrequencyHistory:
    """Bounded history of spectrum frames for a multi-second spectrogram."""

    def __init__(self, depth: int = 15, max_frequency_bins: int = 256):
        if depth < 1:
            raise ValueError("depth must be at least 1")
        self.depth = depth
        self.max_frequency_bins = max_frequency_bins
        self.frames: Deque[np.ndarray] = deque(maxlen=depth)
        self.bin_count = 0

    def __len__(self) -> int:
        return len(self.frames)

    def append(self, frequency_domain: np.ndarray) -> None:
        self.frames.append(np.array(frequency_domain, dtype=np.uint8))
        self.bin_count = len(frequency_domain)

    def clear(self) -> None:
        self.frames.clear()

    def combined(self) -> np.ndarray:
        """Row-major grid of depth rows, oldest first, each downsampled to at
        most max_frequency_bins by averaging neighbouring bins. Rows not yet
        filled are zero."""
        if not self.frames or self.bin_count == 0:
            return np.zeros(self.bin_count, dtype=np.uint8)

        frequency_bins = min(self.max_frequency_bins, self.bin_count)
        step = math.ceil(self.bin_count / frequency_bins)
        grid = np.zeros((self.depth, frequency_bins), dtype=np.uint8)

        offset = self.depth - len(self.frames)
        for row, frame in enumerate(self.frames, start=offset):
            padded = np.zeros(frequency_bins * step, dtype=np.float64)
            padded[:len(frame)] = frame[:frequency_bins * step]
            counts = np.zeros(frequency_bins * step)
            counts[:min(len(frame), frequency_bins * step)] = 1
            sums = padded.reshape(frequency_bins, step).sum(axis=1)
            n = counts.reshape(frequency_bins, step).sum(axis=1)
            averaged = np.divide(sums, n, out=np.zeros(frequency_bins), where=n > 0)
            grid[row] = np.floor(averaged).astype(np.uint8)

        return grid.reshape(-1)
