"""Pulse detector: turns per-frame amplitudes into discrete tick events."""

import logging
from enum import Enum
from typing import Callable, Optional

from ..models.detector import DetectorConfig
from ..models.events import Pulse, NoiseArtifact, NoiseReason

logger = logging.getLogger(__name__)


class DetectorState(Enum):
    IDLE = "idle"
    ARMED = "armed"


class PulseDetector:
    """Amplitude gate plus refractory gate.

    A frame yields a Pulse when its amplitude exceeds the softened
    threshold and more than the refractory time has passed since the last
    pulse. The refractory time keeps the ringdown of one mechanical impact
    from being counted twice; it is a guard, not a state.
    """

    def __init__(self, on_noise: Optional[Callable[[NoiseArtifact], None]] = None):
        """Initialize pulse detector.

        Args:
            on_noise: Optional hook receiving crossings rejected by the
                refractory gate, for tuning.
        """
        self.on_noise = on_noise
        self.state = DetectorState.IDLE
        self.last_pulse_ms: Optional[float] = None
        self.previous_interval_ms: Optional[float] = None
        self.pulse_count = 0
        self.rejected_count = 0

    @property
    def is_armed(self) -> bool:
        return self.state is DetectorState.ARMED

    def arm(self) -> None:
        """Start a detection session with no pulse history."""
        self.state = DetectorState.ARMED
        self.last_pulse_ms = None
        self.previous_interval_ms = None
        self.pulse_count = 0
        self.rejected_count = 0
        logger.debug("Pulse detector armed")

    def disarm(self) -> None:
        self.state = DetectorState.IDLE
        logger.debug(f"Pulse detector idle after {self.pulse_count} pulses, "
                     f"{self.rejected_count} rejected crossings")

    def process(self, amplitude: float, config: DetectorConfig, now_ms: float) -> Optional[Pulse]:
        """Evaluate one frame.

        Args:
            amplitude: Blended amplitude score of the frame
            config: Detector settings snapshot for this frame
            now_ms: Current time in milliseconds

        Returns:
            The emitted Pulse, or None
        """
        if self.state is not DetectorState.ARMED:
            return None

        if amplitude <= config.effective_threshold:
            return None

        if self.last_pulse_ms is not None:
            elapsed_ms = now_ms - self.last_pulse_ms
            refractory_ms = config.refractory_ms(self.previous_interval_ms)
            if elapsed_ms <= refractory_ms:
                self.rejected_count += 1
                if self.on_noise is not None:
                    self.on_noise(NoiseArtifact(
                        timestamp_seconds=now_ms / 1000,
                        magnitude=amplitude,
                        reason=NoiseReason.REFRACTORY,
                        elapsed_ms=elapsed_ms
                    ))
                return None
            self.previous_interval_ms = elapsed_ms

        self.last_pulse_ms = now_ms
        self.pulse_count += 1
        logger.debug(f"Pulse detected: amplitude={amplitude:.3f}, "
                     f"threshold={config.effective_threshold:.3f}")
        return Pulse(timestamp_seconds=now_ms / 1000, magnitude=amplitude)
