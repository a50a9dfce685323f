"""Pre-conditioning of captured samples: gain and band-pass filtering."""

import logging

import numpy as np
from scipy import signal

logger = logging.getLogger(__name__)


class SignalConditioner:
    """Applies input gain and an optional wide band-pass around the tick band.

    The band-pass is a second-order peak filter (unity gain at the centre
    frequency). Its state carries over between chunks so a stream filtered
    chunk by chunk matches the same stream filtered in one go.
    """

    def __init__(self, sample_rate: int, gain: float = 2.0,
                 bandpass_enabled: bool = True, center_hz: float = 800.0, q: float = 0.5):
        self.sample_rate = sample_rate
        self.gain = gain
        self.bandpass_enabled = bandpass_enabled
        self.center_hz = center_hz
        self.q = q

        self._b = None
        self._a = None
        self._zi = None
        if bandpass_enabled:
            self._init_bandpass()

    def _init_bandpass(self) -> None:
        nyquist = self.sample_rate / 2
        if not 0 < self.center_hz < nyquist:
            logger.warning(f"Band-pass centre {self.center_hz}Hz outside (0, {nyquist}Hz), filter disabled")
            self.bandpass_enabled = False
            return
        self._b, self._a = signal.iirpeak(self.center_hz, self.q, fs=self.sample_rate)
        self._zi = np.zeros(max(len(self._a), len(self._b)) - 1)
        logger.info(f"Band-pass initialized: centre={self.center_hz:.0f}Hz, Q={self.q}")

    def set_gain(self, gain: float) -> None:
        self.gain = gain
        logger.debug(f"Input gain set to {gain:.2f}")

    def reset(self) -> None:
        """Forget filter history."""
        if self._zi is not None:
            self._zi = np.zeros_like(self._zi)

    def process(self, samples: np.ndarray) -> np.ndarray:
        """Return gain-adjusted, filtered samples."""
        if samples.size == 0:
            return samples
        amplified = samples.astype(np.float64) * self.gain
        if not self.bandpass_enabled:
            return amplified
        filtered, self._zi = signal.lfilter(self._b, self._a, amplified, zi=self._zi)
        return filtered
