"""Detection publisher module for pub/sub event publishing."""

import logging
from pubsub import pub

from ..models.events import Pulse, Measurement, NoiseArtifact, SessionEvent

logger = logging.getLogger(__name__)

PULSE_TOPIC = "pulse"
MEASUREMENT_TOPIC = "measurement"
NOISE_ARTIFACT_TOPIC = "noise_artifact"
SESSION_EVENT_TOPIC = "session_event"


def _pulse_spec(pulse: Pulse) -> None:
    """Message signature of the pulse topic."""


def _measurement_spec(measurement: Measurement) -> None:
    """Message signature of the measurement topic."""


def _artifact_spec(artifact: NoiseArtifact) -> None:
    """Message signature of the noise artifact topic."""


def _session_event_spec(event: SessionEvent) -> None:
    """Message signature of the session event topic."""


class DetectionPublisher:
    """Publishes pulses, measurements and diagnostics using pubsub.pub.

    An exception raised by a listener is logged and dropped; the session
    keeps detecting.
    """

    def __init__(self):
        topic_manager = pub.getDefaultTopicMgr()
        topic_manager.getOrCreateTopic(PULSE_TOPIC, _pulse_spec)
        topic_manager.getOrCreateTopic(MEASUREMENT_TOPIC, _measurement_spec)
        topic_manager.getOrCreateTopic(NOISE_ARTIFACT_TOPIC, _artifact_spec)
        topic_manager.getOrCreateTopic(SESSION_EVENT_TOPIC, _session_event_spec)

    def publish_pulse(self, pulse: Pulse) -> None:
        """Publish an accepted pulse.

        Args:
            pulse: Pulse emitted by the detector
        """
        self._send(PULSE_TOPIC, pulse=pulse)

    def publish_measurement(self, measurement: Measurement) -> None:
        """Publish the measurement closing an interval.

        Args:
            measurement: Measurement produced by the interval tracker
        """
        self._send(MEASUREMENT_TOPIC, measurement=measurement)
        logger.debug(f"Published measurement: {measurement.interval_ms:.1f}ms "
                     f"({measurement.deviation_pct:+.2f}%)")

    def publish_noise_artifact(self, artifact: NoiseArtifact) -> None:
        """Publish a discarded detection for tuning displays.

        Args:
            artifact: NoiseArtifact with the reason it was discarded
        """
        self._send(NOISE_ARTIFACT_TOPIC, artifact=artifact)

    def publish_session_event(self, event: SessionEvent) -> None:
        """Publish a session lifecycle event.

        Args:
            event: SessionEvent ("started", "stopped" or "error")
        """
        self._send(SESSION_EVENT_TOPIC, event=event)
        logger.info(f"Session {event.session_id} {event.event_type}")

    @staticmethod
    def _send(topic: str, **message) -> None:
        try:
            pub.sendMessage(topic, **message)
        except Exception as e:
            logger.error(f"Listener on {topic} failed: {e}", exc_info=True)
