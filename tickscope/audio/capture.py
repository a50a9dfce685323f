"""Live audio capture from a PyAudio input stream."""

import logging
from typing import Optional

import numpy as np
import pyaudio

from ..errors import DeviceUnavailable
from .devices import DeviceSelector, InputDevice, resolve_input_device

logger = logging.getLogger(__name__)

INT16_SCALE = 32768.0


class AudioCapture:
    """Owns one exclusive input stream, opened and released as a unit.

    The stream is opened in blocking mode and drained without blocking by
    read_available(), so the caller's polling loop decides the cadence.
    """

    def __init__(
        self,
        sample_rate: Optional[int] = 44100,
        frames_per_buffer: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate, or None for the device default
            frames_per_buffer: PortAudio buffer size in samples
            channels: Number of channels to request (mixed down to mono)
            format: Audio format (16-bit signed int)
        """
        self.requested_sample_rate = sample_rate
        self.sample_rate = sample_rate or 44100
        self.frames_per_buffer = frames_per_buffer
        self.channels = channels
        self.format = format

        self.device: Optional[InputDevice] = None
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None

        self.total_samples = 0
        self.read_errors = 0

    @property
    def is_open(self) -> bool:
        return self.stream is not None

    def open(self, device_selector: DeviceSelector = None) -> None:
        """Open the input stream on the selected device.

        Raises:
            DeviceUnavailable: if the device cannot be opened. Nothing is
                left allocated in that case.
        """
        if self.is_open:
            logger.warning("Audio capture already open")
            return

        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.device = resolve_input_device(self.pyaudio_instance, device_selector)
            self.sample_rate = int(self.requested_sample_rate or self.device.default_sample_rate)
            self.channels = max(1, min(self.channels, self.device.max_input_channels))
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.device.index,
                frames_per_buffer=self.frames_per_buffer,
                stream_callback=None
            )
        except DeviceUnavailable:
            self.close()
            raise
        except (OSError, ValueError) as e:
            self.close()
            raise DeviceUnavailable(device_selector, str(e)) from e

        self.total_samples = 0
        self.read_errors = 0
        logger.info(f"Audio stream opened on [{self.device.index}] {self.device.name}: "
                    f"{self.sample_rate}Hz, {self.channels} channel(s), "
                    f"{self.frames_per_buffer} samples/buffer")

    def read_available(self) -> np.ndarray:
        """Drain every frame the stream has buffered so far.

        Returns:
            Mono float32 samples in [-1, 1]; empty when nothing arrived or
            the read failed.
        """
        if self.stream is None:
            return np.zeros(0, dtype=np.float32)

        try:
            available = self.stream.get_read_available()
            if available <= 0:
                return np.zeros(0, dtype=np.float32)
            raw = self.stream.read(available, exception_on_overflow=False)
        except OSError as e:
            self.read_errors += 1
            logger.warning(f"Audio read failed: {e}")
            return np.zeros(0, dtype=np.float32)

        samples = np.frombuffer(raw, dtype=np.int16).astype(np.float32) / INT16_SCALE
        if self.channels > 1:
            usable = len(samples) - len(samples) % self.channels
            samples = samples[:usable].reshape(-1, self.channels).mean(axis=1)
        self.total_samples += len(samples)
        return samples

    def close(self) -> None:
        """Release the stream and PyAudio. Safe to call repeatedly; never raises."""
        stream, self.stream = self.stream, None
        pyaudio_instance, self.pyaudio_instance = self.pyaudio_instance, None

        if stream is not None:
            try:
                stream.stop_stream()
            except Exception as e:
                logger.warning(f"Error stopping audio stream: {e}")
            try:
                stream.close()
            except Exception as e:
                logger.warning(f"Error closing audio stream: {e}")
            logger.info(f"Audio stream closed. Total samples: {self.total_samples}")

        if pyaudio_instance is not None:
            try:
                pyaudio_instance.terminate()
            except Exception as e:
                logger.warning(f"Error terminating PyAudio: {e}")

    def __enter__(self) -> 'AudioCapture':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if self.is_open:
            self.close()
