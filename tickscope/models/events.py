"""Event models published by the analysis pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict


@dataclass(frozen=True)
class Pulse:
    """A single detected tick or tock."""
    timestamp_seconds: float  # Monotonic capture time
    magnitude: float  # Blended amplitude score at detection time


@dataclass(frozen=True)
class Measurement:
    """Timing of one interval between two consecutive accepted pulses."""
    sequence_time: str  # Elapsed recording time, HH:MM:SS
    interval_ms: float
    frequency_bpm: float
    deviation_pct: float  # Deviation from the rolling average interval
    timestamp_seconds: float = 0.0  # Time of the pulse that closed the interval


class NoiseReason(Enum):
    """Why a candidate event was discarded."""
    REFRACTORY = "refractory"
    IMPLAUSIBLE_INTERVAL = "implausible_interval"


@dataclass(frozen=True)
class NoiseArtifact:
    """A discarded detection, reported for tuning only."""
    timestamp_seconds: float
    magnitude: float
    reason: NoiseReason
    elapsed_ms: float  # Time since the last accepted event


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    session_id: str
    event_type: str  # "started", "stopped", "error"
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
