"""Rolling analysis buffer producing byte-scaled waveform and spectrum frames."""

import logging

import numpy as np

from ..models.audio import AudioFrame

logger = logging.getLogger(__name__)


class FrequencyAnalyser:
    """Keeps the latest fft_size samples and renders them as AudioFrames.

    Waveform bytes are 128 * (1 + x) clipped to [0, 255]. Spectrum bytes
    come from a Blackman-windowed FFT whose magnitudes are smoothed over
    time, converted to decibels and mapped from [min_decibels,
    max_decibels] onto [0, 255].
    """

    def __init__(self, fft_size: int = 2048, smoothing_time_constant: float = 0.5,
                 min_decibels: float = -100.0, max_decibels: float = -30.0):
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if max_decibels <= min_decibels:
            raise ValueError("max_decibels must be greater than min_decibels")

        self.fft_size = fft_size
        self.frequency_bin_count = fft_size // 2
        self.smoothing_time_constant = max(0.0, min(1.0, smoothing_time_constant))
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self._window = np.blackman(fft_size)
        self._samples = np.zeros(fft_size)
        self._smoothed = np.zeros(self.frequency_bin_count)
        self.frame_counter = 0

        logger.info(f"FrequencyAnalyser initialized: fft_size={fft_size}, "
                    f"{self.frequency_bin_count} bins, smoothing={self.smoothing_time_constant}")

    def push(self, samples: np.ndarray) -> None:
        """Append conditioned samples, keeping only the newest fft_size."""
        if samples.size == 0:
            return
        if samples.size >= self.fft_size:
            self._samples = np.array(samples[-self.fft_size:], dtype=np.float64)
        else:
            self._samples = np.concatenate([self._samples[samples.size:], samples])

    def time_domain_bytes(self) -> np.ndarray:
        scaled = np.floor(128.0 * (1.0 + self._samples))
        return np.clip(scaled, 0, 255).astype(np.uint8)

    def frequency_bytes(self) -> np.ndarray:
        """Spectrum of the current buffer; advances the temporal smoothing."""
        spectrum = np.fft.rfft(self._samples * self._window)[:self.frequency_bin_count]
        magnitude = np.abs(spectrum) / self.fft_size
        tau = self.smoothing_time_constant
        self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitude

        with np.errstate(divide='ignore'):
            decibels = 20.0 * np.log10(self._smoothed)
        span = self.max_decibels - self.min_decibels
        scaled = np.floor((decibels - self.min_decibels) * (255.0 / span))
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)

    def snapshot(self, timestamp: float) -> AudioFrame:
        frame = AudioFrame(
            time_domain=self.time_domain_bytes(),
            frequency_domain=self.frequency_bytes(),
            timestamp=timestamp,
            frame_number=self.frame_counter
        )
        self.frame_counter += 1
        return frame

    def reset(self) -> None:
        """Clear buffered samples and smoothing."""
        self._samples = np.zeros(self.fft_size)
        self._smoothed = np.zeros(self.frequency_bin_count)
        self.frame_counter = 0
