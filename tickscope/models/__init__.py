"""Data models for the TickScope application."""

from .audio import AudioFrame, AudioFeatures, SessionStats
from .detector import DetectorConfig
from .events import Pulse, Measurement, NoiseArtifact, NoiseReason, SessionEvent
from .statistics import IntervalSummary, StabilityRating

__all__ = [
    "AudioFrame",
    "AudioFeatures",
    "SessionStats",
    "DetectorConfig",
    "Pulse",
    "Measurement",
    "NoiseArtifact",
    "NoiseReason",
    "SessionEvent",
    "IntervalSummary",
    "StabilityRating",
]
