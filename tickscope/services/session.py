"""Analysis session: owns the input stream and runs the polling loop."""

import time
import random
import string
import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from ..audio.analyser import FrequencyAnalyser
from ..audio.audio_pub import FramePublisher
from ..audio.capture import AudioCapture
from ..audio.conditioning import SignalConditioner
from ..audio.devices import DeviceSelector
from ..audio.features import FrequencyHistory, extract_features
from ..analysis.intervals import IntervalTracker
from ..config import TickScopeConfig
from ..detection.publisher import DetectionPublisher
from ..detection.pulse_detector import PulseDetector
from ..errors import DeviceUnavailable, SessionDisposed
from ..models.audio import AudioFeatures, SessionStats
from ..models.detector import DetectorConfig
from ..models.events import Measurement, NoiseArtifact, SessionEvent
from ..models.statistics import IntervalSummary

logger = logging.getLogger(__name__)


class AnalysisSession:
    """One live analysis session over a single input device.

    Each cycle runs synchronously: read samples, condition, analyse,
    extract features, detect, track intervals, publish. Cycles never
    overlap. The loop runs on its own thread, or the host drives it by
    calling poll() from its own per-frame callback.
    """

    def __init__(
        self,
        config: Optional[TickScopeConfig] = None,
        capture_factory: Optional[Callable[[], AudioCapture]] = None,
        clock: Callable[[], float] = time.monotonic,
        frame_publisher: Optional[FramePublisher] = None,
        detection_publisher: Optional[DetectionPublisher] = None,
    ):
        """Initialize analysis session.

        Args:
            config: Application configuration (defaults when None)
            capture_factory: Builds the AudioCapture for each start()
            clock: Monotonic clock in seconds
            frame_publisher: Publisher for spectrum/waveform frames
            detection_publisher: Publisher for pulses and measurements
        """
        self.config = config or TickScopeConfig()
        self._capture_factory = capture_factory or self._create_capture
        self._clock = clock
        self.frame_publisher = frame_publisher or FramePublisher()
        self.detection_publisher = detection_publisher or DetectionPublisher()

        self._detector_config = DetectorConfig(
            detection_threshold=self.config.get('detection.threshold', 0.2),
            noise_reduction=self.config.get('detection.noise_reduction', 0.2),
            min_inter_arrival_ms=self.config.get('detection.min_inter_arrival_ms', 100.0),
            adaptive_refractory=self.config.get('detection.adaptive_refractory', False),
        )
        poll_rate_hz = float(self.config.get('analysis.poll_rate_hz', 60.0))
        self.poll_interval = 1.0 / max(1.0, poll_rate_hz)
        self.combined_spectrogram = bool(self.config.get('analysis.combined_spectrogram', True))

        self.detector = PulseDetector(on_noise=self._on_noise_artifact)
        self.tracker = IntervalTracker(
            window_size=int(self.config.get('analysis.window_size', 10)),
            min_plausible_interval_ms=float(self.config.get('analysis.min_plausible_interval_ms', 100.0)),
            on_noise=self._on_noise_artifact
        )
        self.history = FrequencyHistory(
            depth=int(self.config.get('analysis.history_length', 15)),
            max_frequency_bins=int(self.config.get('analysis.max_frequency_bins', 256))
        )

        self.capture: Optional[AudioCapture] = None
        self.conditioner: Optional[SignalConditioner] = None
        self.analyser: Optional[FrequencyAnalyser] = None
        self.session_id: Optional[str] = None

        # Loop management
        self._running = False
        self._disposed = False
        self._stop_event = threading.Event()
        self._loop_thread: Optional[threading.Thread] = None
        self._cycle_lock = threading.RLock()

        # Statistics tracking
        self.start_time: Optional[float] = None
        self.last_frame_time: Optional[float] = None
        self.total_frames = 0
        self.pulse_count = 0
        self.noise_artifact_count = 0
        self.peak_level = 0.0

    def _create_capture(self) -> AudioCapture:
        return AudioCapture(
            sample_rate=self.config.get('audio.sample_rate', 44100),
            frames_per_buffer=int(self.config.get('audio.frames_per_buffer', 1024)),
            channels=int(self.config.get('audio.channels', 1)),
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def detector_config(self) -> DetectorConfig:
        return self._detector_config

    @property
    def effective_gain(self) -> float:
        """Input gain the next cycle will apply."""
        return self._detector_config.input_gain

    @property
    def measurements(self) -> List[Measurement]:
        return list(self.tracker.measurements)

    def configure(self, threshold: Optional[float] = None,
                  noise_reduction: Optional[float] = None) -> DetectorConfig:
        """Update detector settings; out-of-range values are clamped.

        Safe while the loop runs: the next cycle picks up the new snapshot.
        """
        self._detector_config = self._detector_config.with_updates(
            threshold=threshold, noise_reduction=noise_reduction)
        logger.info(f"Detector configured: threshold={self._detector_config.detection_threshold:.2f}, "
                    f"noise_reduction={self._detector_config.noise_reduction:.2f}, "
                    f"gain={self._detector_config.input_gain:.2f}")
        return self._detector_config

    def start(self, device_id: DeviceSelector = None, run_loop: bool = True) -> None:
        """Open the device and begin analysis.

        Args:
            device_id: Device selector (None for the system default)
            run_loop: Run the polling loop on a background thread; when
                False the caller drives it with poll()

        Raises:
            DeviceUnavailable: the device could not be opened; an "error"
                session event is published and the session stays stopped
                holding no resources
            SessionDisposed: the session was disposed
        """
        if self._disposed:
            raise SessionDisposed("Cannot start a disposed session")
        if self._running:
            logger.warning("Session already running")
            return

        capture = self._capture_factory()
        try:
            capture.open(device_id)
            conditioner = SignalConditioner(
                sample_rate=capture.sample_rate,
                gain=self._detector_config.input_gain,
                bandpass_enabled=bool(self.config.get('audio.bandpass.enabled', True)),
                center_hz=float(self.config.get('audio.bandpass.center_hz', 800.0)),
                q=float(self.config.get('audio.bandpass.q', 0.5)),
            )
            analyser = FrequencyAnalyser(
                fft_size=int(self.config.get('audio.fft_size', 2048)),
                smoothing_time_constant=float(self.config.get('audio.smoothing_time_constant', 0.5)),
                min_decibels=float(self.config.get('audio.min_decibels', -100.0)),
                max_decibels=float(self.config.get('audio.max_decibels', -30.0)),
            )
        except DeviceUnavailable as e:
            logger.error(f"Failed to start session: {e}")
            capture.close()
            self.detection_publisher.publish_session_event(SessionEvent(
                session_id=self._new_session_id(),
                event_type="error",
                metadata={"device": device_id, "reason": e.reason}
            ))
            raise
        except Exception:
            capture.close()
            raise

        self.capture = capture
        self.conditioner = conditioner
        self.analyser = analyser

        self.start_time = self._clock()
        self.last_frame_time = None
        self.total_frames = 0
        self.pulse_count = 0
        self.noise_artifact_count = 0
        self.peak_level = 0.0
        self.history.clear()
        self.tracker.reset(session_start=self.start_time)
        self.detector.arm()
        self.session_id = self._new_session_id()

        self._stop_event.clear()
        self._running = True
        self.detection_publisher.publish_session_event(SessionEvent(
            session_id=self.session_id,
            event_type="started",
            metadata={"device": device_id, "sample_rate": capture.sample_rate}
        ))

        if run_loop:
            self._loop_thread = threading.Thread(target=self._poll_continuously, daemon=True)
            self._loop_thread.name = "TickScopePollingThread"
            self._loop_thread.start()

    def stop(self) -> None:
        """Stop analysis and release the device.

        Idempotent and safe before start(). Never raises. Once this returns
        no further frames or events are published.
        """
        self._stop_event.set()
        with self._cycle_lock:
            was_running = self._running
            self._running = False

        thread, self._loop_thread = self._loop_thread, None
        if thread is not None and thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=2.0)
            if thread.is_alive():
                logger.warning("Polling thread did not stop cleanly")

        capture, self.capture = self.capture, None
        if capture is not None:
            try:
                capture.close()
            except Exception as e:
                logger.warning(f"Error releasing audio capture: {e}")

        if not was_running:
            return

        self.detector.disarm()
        logger.info(f"Session {self.session_id} stopped. Frames: {self.total_frames}, "
                    f"pulses: {self.pulse_count}, measurements: {len(self.tracker.measurements)}")
        try:
            self.detection_publisher.publish_session_event(SessionEvent(
                session_id=self.session_id,
                event_type="stopped",
                metadata={"measurements": len(self.tracker.measurements)}
            ))
        except Exception as e:
            logger.warning(f"Error publishing session stop: {e}")

    def dispose(self) -> None:
        """Stop and refuse further starts. Idempotent."""
        self.stop()
        self._disposed = True

    def poll(self) -> Optional[AudioFeatures]:
        """Run one analysis cycle.

        Returns:
            Features of the analysed frame, or None when stopped or no new
            audio arrived since the last cycle
        """
        with self._cycle_lock:
            if not self._running or self.capture is None:
                return None

            config = self._detector_config
            samples = self.capture.read_available()
            if samples.size == 0:
                return None

            now = self._clock()
            self.conditioner.set_gain(config.input_gain)
            self.analyser.push(self.conditioner.process(samples))
            frame = self.analyser.snapshot(now)
            self.total_frames += 1
            self.last_frame_time = now

            features = extract_features(frame)
            self.peak_level = features.peak
            self.history.append(frame.frequency_domain)

            # Detect before any listener runs
            pulse = self.detector.process(features.effective_amplitude, config, now * 1000)
            measurement = None
            if pulse is not None:
                self.pulse_count += 1
                measurement = self.tracker.add_pulse(pulse)

            spectrum = self.history.combined() if self.combined_spectrogram else frame.frequency_domain
            self.frame_publisher.publish_frequency_frame(spectrum)
            if self._running:
                self.frame_publisher.publish_waveform_frame(frame.time_domain)
            if pulse is not None and self._running:
                self.detection_publisher.publish_pulse(pulse)
            if measurement is not None and self._running:
                self.detection_publisher.publish_measurement(measurement)
            return features

    def _poll_continuously(self) -> None:
        """Internal method: polling loop in background thread."""
        logger.debug(f"Polling loop started at {1.0 / self.poll_interval:.0f}Hz")
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception as e:
                logger.error(f"Error in analysis cycle: {e}", exc_info=True)
            self._stop_event.wait(self.poll_interval)
        logger.debug("Polling loop exiting")

    def _on_noise_artifact(self, artifact: NoiseArtifact) -> None:
        self.noise_artifact_count += 1
        if self._running:
            self.detection_publisher.publish_noise_artifact(artifact)

    def is_stalled(self, timeout_seconds: float) -> bool:
        """True when a running session has seen no audio for timeout_seconds."""
        if not self._running or self.start_time is None:
            return False
        reference = self.last_frame_time if self.last_frame_time is not None else self.start_time
        return self._clock() - reference > timeout_seconds

    def window_summary(self) -> Optional[IntervalSummary]:
        return self.tracker.window_summary()

    def session_summary(self) -> Optional[IntervalSummary]:
        return self.tracker.session_summary()

    def get_session_stats(self) -> SessionStats:
        """Get current session statistics."""
        now = self._clock()
        duration = 0.0
        if self.start_time is not None:
            duration = now - self.start_time
        since_frame = None
        if self.last_frame_time is not None:
            since_frame = now - self.last_frame_time

        return SessionStats(
            is_running=self._running,
            duration_seconds=duration,
            sample_rate=self.capture.sample_rate if self.capture else 0,
            fft_size=self.analyser.fft_size if self.analyser else int(self.config.get('audio.fft_size', 2048)),
            total_frames=self.total_frames,
            pulse_count=self.pulse_count,
            measurement_count=len(self.tracker.measurements),
            noise_artifact_count=self.noise_artifact_count,
            peak_level=self.peak_level,
            seconds_since_last_frame=since_frame,
        )

    @staticmethod
    def _new_session_id() -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        return f"{timestamp}_{random_suffix}"
