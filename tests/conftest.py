"""Pytest configuration and fixtures for TickScope tests."""

import pytest
import tempfile
import logging
from collections import deque
from unittest.mock import Mock, patch
import numpy as np
from pubsub import pub

from tickscope.audio.audio_pub import FREQUENCY_FRAME_TOPIC, WAVEFORM_FRAME_TOPIC
from tickscope.config import TickScopeConfig
from tickscope.detection.publisher import (
    PULSE_TOPIC,
    MEASUREMENT_TOPIC,
    NOISE_ARTIFACT_TOPIC,
    SESSION_EVENT_TOPIC,
)
from tickscope.errors import DeviceUnavailable
from tickscope.models.audio import AudioFrame


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
CHUNK_SIZE = 1024


def pytest_configure(config):
    for marker in ("unit", "integration", "hardware", "slow"):
        config.addinivalue_line("markers", f"{marker}: {marker} tests")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


DEVICE_INFOS = [
    {'index': 0, 'name': 'Built-in Microphone', 'maxInputChannels': 1, 'defaultSampleRate': 44100.0},
    {'index': 1, 'name': 'HDMI Output', 'maxInputChannels': 0, 'defaultSampleRate': 48000.0},
    {'index': 2, 'name': 'USB Contact Mic', 'maxInputChannels': 2, 'defaultSampleRate': 48000.0},
]


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.get_read_available.return_value = CHUNK_SIZE
        mock_stream.read.return_value = b'\x00' * (CHUNK_SIZE * 2)  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_device_count.return_value = len(DEVICE_INFOS)
        mock_pyaudio_instance.get_device_info_by_index.side_effect = lambda i: dict(DEVICE_INFOS[i])
        mock_pyaudio_instance.get_default_input_device_info.return_value = dict(DEVICE_INFOS[0])

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeCapture:
    """Stand-in for AudioCapture that replays queued sample chunks."""

    def __init__(self, fail: bool = False, sample_rate: int = SAMPLE_RATE):
        self.fail = fail
        self.sample_rate = sample_rate
        self.chunks = deque()
        self.opened_with = None
        self.open_count = 0
        self.close_count = 0
        self.stream_open = False

    @property
    def is_open(self) -> bool:
        return self.stream_open

    def open(self, device_selector=None) -> None:
        self.open_count += 1
        self.opened_with = device_selector
        if self.fail:
            raise DeviceUnavailable(device_selector, "permission denied")
        self.stream_open = True

    def queue(self, samples) -> None:
        self.chunks.append(np.asarray(samples, dtype=np.float32))

    def read_available(self) -> np.ndarray:
        if not self.stream_open or not self.chunks:
            return np.zeros(0, dtype=np.float32)
        return self.chunks.popleft()

    def close(self) -> None:
        self.close_count += 1
        self.stream_open = False


class EventRecorder:
    """Subscribes to every pipeline topic and records what it receives."""

    def __init__(self):
        self.frequency_frames = []
        self.waveform_frames = []
        self.pulses = []
        self.measurements = []
        self.artifacts = []
        self.session_events = []
        self._subscriptions = [
            (self.on_frequency_frame, FREQUENCY_FRAME_TOPIC),
            (self.on_waveform_frame, WAVEFORM_FRAME_TOPIC),
            (self.on_pulse, PULSE_TOPIC),
            (self.on_measurement, MEASUREMENT_TOPIC),
            (self.on_artifact, NOISE_ARTIFACT_TOPIC),
            (self.on_session_event, SESSION_EVENT_TOPIC),
        ]
        for listener, topic in self._subscriptions:
            pub.subscribe(listener, topic)

    def on_frequency_frame(self, frame):
        self.frequency_frames.append(frame)

    def on_waveform_frame(self, frame):
        self.waveform_frames.append(frame)

    def on_pulse(self, pulse):
        self.pulses.append(pulse)

    def on_measurement(self, measurement):
        self.measurements.append(measurement)

    def on_artifact(self, artifact):
        self.artifacts.append(artifact)

    def on_session_event(self, event):
        self.session_events.append(event)

    def unsubscribe(self):
        for listener, topic in self._subscriptions:
            pub.unsubscribe(listener, topic)


@pytest.fixture
def recorder():
    """Record everything published during a test."""
    event_recorder = EventRecorder()
    yield event_recorder
    event_recorder.unsubscribe()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_capture():
    return FakeCapture()


@pytest.fixture
def plain_config():
    """Configuration without band-pass filtering, so chunks reach the analyser unchanged apart from gain."""
    config = TickScopeConfig()
    config.set('audio.bandpass.enabled', False)
    config.set('detection.noise_reduction', 0.0)
    return config


@pytest.fixture
def make_frame():
    """Build an AudioFrame from byte-scaled samples."""
    def build(samples=None, length=2048, spike=None, spike_index=100):
        if samples is None:
            samples = np.full(length, 128, dtype=np.uint8)
            if spike is not None:
                samples[spike_index] = spike
        samples = np.asarray(samples, dtype=np.uint8)
        return AudioFrame(
            time_domain=samples,
            frequency_domain=np.zeros(len(samples) // 2, dtype=np.uint8),
            timestamp=0.0,
            frame_number=0
        )

    return build


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="tick", num_samples=CHUNK_SIZE, sample_rate=SAMPLE_RATE,
                       amplitude=0.5, frequency=800.0, burst_samples=441):
        """Generate float samples for testing.

        Args:
            pattern: Type of audio pattern ('tick', 'sine', 'silence')
            num_samples: Number of samples
            sample_rate: Sample rate in Hz
            amplitude: Peak amplitude in [-1, 1] units
            frequency: Tone frequency for 'tick' and 'sine'
            burst_samples: Length of the tone burst for 'tick'

        Returns:
            np.ndarray of float32 samples
        """
        t = np.arange(num_samples) / sample_rate
        if pattern == "sine":
            wave_data = amplitude * np.sin(2 * np.pi * frequency * t)
        elif pattern == "tick":
            wave_data = np.zeros(num_samples)
            n = min(burst_samples, num_samples)
            wave_data[:n] = amplitude * np.sin(2 * np.pi * frequency * t[:n])
        elif pattern == "silence":
            wave_data = np.zeros(num_samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")
        return wave_data.astype(np.float32)

    return generate_audio


@pytest.fixture
def failing_capture():
    return FakeCapture(fail=True)
