"""Audio capture and feature extraction module."""

from .capture import AudioCapture
from .analyser import FrequencyAnalyser
from .conditioning import SignalConditioner
from .devices import InputDevice, list_input_devices
from .features import extract_features, FrequencyHistory

__all__ = [
    'AudioCapture',
    'FrequencyAnalyser',
    'SignalConditioner',
    'InputDevice',
    'list_input_devices',
    'extract_features',
    'FrequencyHistory',
]
