"""Main application entry point for TickScope."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from tickscope import __version__
from tickscope.audio.devices import list_input_devices
from tickscope.errors import DeviceUnavailable
from tickscope.services.aggregator import MeasurementAggregator
from tickscope.services.session import AnalysisSession

from .config import TickScopeConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'


class Monitor:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = TickScopeConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.should_exit = False
        self.stall_reported = False

    def init(self, threshold: Optional[float] = None, noise_reduction: Optional[float] = None):
        logger.info("Initializing services...")

        self.session = AnalysisSession(self.config)
        if threshold is not None or noise_reduction is not None:
            self.session.configure(threshold=threshold, noise_reduction=noise_reduction)

        self.aggregator = MeasurementAggregator(
            print_interval_seconds=float(self.config.get('display.summary_interval_seconds', 10.0)),
            recent_count=int(self.config.get('display.recent_measurements', 5))
        )

        detector_config = self.session.detector_config
        logger.info(f"Detection: threshold={detector_config.detection_threshold:.2f}, "
                    f"noise_reduction={detector_config.noise_reduction:.2f}, "
                    f"gain={detector_config.input_gain:.2f}")

    def run(self, device: Optional[str], duration: Optional[int]):
        try:
            self.session.start(device)
            stall_timeout = float(self.config.get('analysis.stall_timeout_seconds', 5.0))
            started = time.monotonic()
            while not self.should_exit:
                if duration and time.monotonic() - started >= duration:
                    break
                self._check_stall(stall_timeout)
                time.sleep(0.25)
        finally:
            self.cleanup()

    def _check_stall(self, timeout: float) -> None:
        stalled = self.session.is_stalled(timeout)
        if stalled and not self.stall_reported:
            logger.warning(f"No audio received for more than {timeout:.0f}s")
        elif not stalled and self.stall_reported:
            logger.info("Audio stream resumed")
        self.stall_reported = stalled

    def cleanup(self):
        self.session.dispose()
        self.aggregator.shutdown()


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logging(config: TickScopeConfig, level: str = "INFO") -> None:
    """Route logs to the configured file (everything) and to stdout (warnings only).

    Measurements are printed to the console by the aggregator, so the
    stdout handler stays quiet unless something goes wrong.
    """
    log_file = Path(config.get_log_file_path())
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handlers = [_handler(logging.FileHandler(log_file), logging.DEBUG, FILE_LOG_FORMAT)]
    if config.get('logging.console_output', True):
        handlers.append(_handler(logging.StreamHandler(sys.stdout), logging.WARNING, LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info(f"TickScope {__version__} starting, log level {level}")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 50)


def parse_level(value: str) -> float:
    """Parse a slider setting given either as a fraction (0-1) or a percentage (0-100)."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if number < 0 or number > 100:
        raise argparse.ArgumentTypeError(f"must be between 0 and 1, or a percentage up to 100: {value}")
    return number / 100 if number > 1 else number


def print_devices() -> None:
    devices = list_input_devices()
    if not devices:
        print("No audio input devices found")
        return
    print("Available input devices:\n")
    for device in devices:
        print(f"[{device.index}] {device.name}")
        print(f"    Input: {device.max_input_channels} channels, "
              f"default SR: {device.default_sample_rate:.0f} Hz")


def main() -> None:
    """Main entry point for TickScope application."""
    parser = argparse.ArgumentParser(
        description="TickScope - measure the beat regularity of a mechanical clock"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--device",
        type=str,
        help="Input device index or name fragment (default: system default input)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        help="Stop after this many seconds (default: run until Ctrl+C)"
    )

    parser.add_argument(
        "--threshold",
        type=parse_level,
        help="Detection threshold, 0-1 or percent (overrides config)"
    )

    parser.add_argument(
        "--noise-reduction",
        type=parse_level,
        help="Noise reduction, 0-1 or percent (overrides config)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List audio input devices and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"TickScope v{__version__}"
    )

    args = parser.parse_args()

    if args.list_devices:
        print_devices()
        return

    monitor = Monitor(args.config, args.log_level)
    try:
        monitor.init(args.threshold, args.noise_reduction)
        print("Listening... press Ctrl+C to stop")
        monitor.run(args.device, args.duration)
    except KeyboardInterrupt:
        monitor.should_exit = True
        print("\nStopped.")
    except DeviceUnavailable as e:
        print(f"Error: {e}")
        logging.error(f"Device unavailable: {e}")
        sys.exit(2)
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
