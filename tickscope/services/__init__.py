"""Service layer for TickScope."""

from .session import AnalysisSession
from .aggregator import MeasurementAggregator

__all__ = [
    'AnalysisSession',
    'MeasurementAggregator',
]
