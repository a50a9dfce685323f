"""Measurement aggregator that periodically prints a timing summary.

This component is intended for the console front end. It subscribes to the
measurement topic, accumulates every incoming `Measurement` and prints a
summary every `print_interval_seconds` of session time (based on
Measurement.timestamp_seconds), and once more on shutdown. Every measurement
is kept for the session-wide summary, so memory grows with session length
(a few hundred kilobytes per hour of ticking).
"""

import logging
import threading
from typing import List, Dict, Any, Optional
from pubsub import pub
from rich.console import Console
from rich.table import Table

from ..analysis.summary import summarize_intervals
from ..detection.publisher import MEASUREMENT_TOPIC
from ..models.events import Measurement
from ..models.statistics import StabilityRating

logger = logging.getLogger(__name__)

STABILITY_STYLES = {
    StabilityRating.EXCELLENT: "bold green",
    StabilityRating.GOOD: "green",
    StabilityRating.FAIR: "yellow",
    StabilityRating.POOR: "bold red",
}


class MeasurementAggregator:
    """Aggregates measurements and prints them periodically and on shutdown."""

    def __init__(self, topic: str = MEASUREMENT_TOPIC,
                 console: Optional[Console] = None,
                 print_interval_seconds: float = 10.0,
                 recent_count: int = 5):
        """Initialize measurement aggregator.

        Args:
            topic: Topic for measurements
            console: Rich console to print to
            print_interval_seconds: Session time between two summaries
            recent_count: Number of latest measurements listed per summary
        """
        self.topic = topic
        self.console = console or Console()
        self.print_interval_seconds = print_interval_seconds
        self.recent_count = recent_count

        self.measurements: List[Measurement] = []
        self.lock = threading.RLock()

        self.first_timestamp: Optional[float] = None
        self.next_print_threshold_seconds: float = print_interval_seconds

        pub.subscribe(self._on_measurement, topic)
        logger.info(f"MeasurementAggregator initialized - subscribed to {topic}")

    def _on_measurement(self, measurement: Measurement) -> None:
        """Handle one measurement."""
        prints_to_do = 0
        with self.lock:
            self.measurements.append(measurement)
            if self.first_timestamp is None:
                self.first_timestamp = measurement.timestamp_seconds

            covered = measurement.timestamp_seconds - self.first_timestamp
            while self.print_interval_seconds > 0 and covered >= self.next_print_threshold_seconds:
                prints_to_do += 1
                self.next_print_threshold_seconds += self.print_interval_seconds

        # Print outside the lock
        if prints_to_do:
            self.print_summary()

    def get_results_summary(self) -> Dict[str, Any]:
        """Get summary of aggregated measurements."""
        with self.lock:
            measurements = self.measurements.copy()
        return {
            "count": len(measurements),
            "measurements": measurements,
            "summary": summarize_intervals(m.interval_ms for m in measurements),
        }

    def build_table(self) -> Table:
        """Render the current summary as a rich table."""
        results = self.get_results_summary()
        summary = results["summary"]

        table = Table(title="Clock Timing Analysis", show_header=True, header_style="bold magenta")
        table.add_column("Time", style="cyan")
        table.add_column("Interval", justify="right")
        table.add_column("BPM", justify="right")
        table.add_column("Deviation", justify="right")

        for measurement in results["measurements"][-self.recent_count:]:
            table.add_row(
                measurement.sequence_time,
                f"{measurement.interval_ms:.0f} ms",
                f"{measurement.frequency_bpm:.1f}",
                f"{measurement.deviation_pct:+.1f}%",
            )

        if summary is None:
            table.caption = "No measurements recorded"
            return table

        style = STABILITY_STYLES[summary.stability]
        table.caption = (
            f"{summary.count} intervals | mean {summary.mean_ms:.1f} ms "
            f"({summary.mean_bpm:.1f} BPM) | std-dev {summary.std_dev_ms:.1f} ms | "
            f"min {summary.min_ms:.0f} / max {summary.max_ms:.0f} ms | "
            f"[{style}]{summary.stability.label} ({summary.stability.description}, "
            f"{summary.max_deviation_pct:.1f}%)[/{style}]"
        )
        return table

    def print_summary(self) -> None:
        self.console.print(self.build_table())

    def shutdown(self) -> bool:
        """Unsubscribe and print the final summary."""
        logger.info("Shutting down MeasurementAggregator...")
        try:
            pub.unsubscribe(self._on_measurement, self.topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")

        self.print_summary()
        logger.info("MeasurementAggregator shutdown complete")
        return True
