"""Simple YAML configuration loader for TickScope."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'audio': {
        'sample_rate': 44100,
        'channels': 1,
        'frames_per_buffer': 1024,
        'fft_size': 2048,
        'smoothing_time_constant': 0.5,
        'min_decibels': -100.0,
        'max_decibels': -30.0,
        'bandpass': {
            'enabled': True,
            'center_hz': 800.0,
            'q': 0.5,
        },
    },
    'detection': {
        'threshold': 0.2,
        'noise_reduction': 0.2,
        'min_inter_arrival_ms': 100.0,
        'adaptive_refractory': False,
    },
    'analysis': {
        'window_size': 10,
        'min_plausible_interval_ms': 100.0,
        'history_length': 15,
        'max_frequency_bins': 256,
        'poll_rate_hz': 60.0,
        'combined_spectrogram': True,
        'stall_timeout_seconds': 5.0,
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'data/logs/tickscope.log',
        'console_output': True,
    },
    'display': {
        'summary_interval_seconds': 10.0,
        'recent_measurements': 5,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested sections."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class TickScopeConfig:
    """TickScope configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, the built-in
                        defaults are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Read the YAML file and lay it over the defaults."""
        try:
            loaded = yaml.safe_load(self.config_file.read_text(encoding='utf-8'))
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self.config_file}: {e}")
        except OSError as e:
            raise ValueError(f"Cannot read {self.config_file}: {e}")

        if not loaded:
            raise ValueError(f"Configuration file {self.config_file} is empty")
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {self.config_file} must contain a mapping")

        config = _deep_merge(DEFAULT_CONFIG, loaded)
        logging_section = config.get('logging')
        log_path = logging_section.get('file_path') if isinstance(logging_section, dict) else None
        if log_path and not os.path.isabs(log_path):
            # Relative to the config file, not the working directory
            logging_section['file_path'] = str(self.config_file.parent / log_path)

        logger.info("Configuration loaded successfully")
        return config

    def _section(self, keys, create: bool = False) -> Optional[Dict[str, Any]]:
        """Walk to the mapping that holds the last of keys."""
        section = self.config
        for key in keys[:-1]:
            child = section.get(key)
            if not isinstance(child, dict):
                if not create:
                    return None
                child = section[key] = {}
            section = child
        return section

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a value by dotted path, e.g. 'detection.threshold'.

        Returns default when any part of the path is missing.
        """
        keys = key_path.split('.')
        section = self._section(keys)
        if section is None:
            return default
        return section.get(keys[-1], default)

    def set(self, key_path: str, value: Any) -> None:
        """Set a value by dotted path, creating missing sections."""
        keys = key_path.split('.')
        self._section(keys, create=True)[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_log_file_path(self) -> str:
        """Get log file path."""
        log_path = self.get('logging.file_path', 'data/logs/tickscope.log')
        return str(Path(log_path).absolute())
