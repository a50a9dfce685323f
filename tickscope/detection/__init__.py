"""Pulse detection module."""

from .pulse_detector import PulseDetector, DetectorState
from .publisher import (
    DetectionPublisher,
    PULSE_TOPIC,
    MEASUREMENT_TOPIC,
    NOISE_ARTIFACT_TOPIC,
    SESSION_EVENT_TOPIC,
)

__all__ = [
    "PulseDetector",
    "DetectorState",
    "DetectionPublisher",
    "PULSE_TOPIC",
    "MEASUREMENT_TOPIC",
    "NOISE_ARTIFACT_TOPIC",
    "SESSION_EVENT_TOPIC",
]
