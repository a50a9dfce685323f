"""Audio frame publisher for pub/sub visualisation feeds."""

import logging
import numpy as np
from pubsub import pub

logger = logging.getLogger(__name__)

FREQUENCY_FRAME_TOPIC = "frequency_frame"
WAVEFORM_FRAME_TOPIC = "waveform_frame"


def _frame_listener_spec(frame: np.ndarray) -> None:
    """Message signature of the frame topics."""


class FramePublisher:
    """Publishes spectrum and waveform frames using pubsub.pub.

    Frame listeners are display collaborators: an exception raised by one
    is logged and dropped so the analysis cycle carries on.
    """

    def __init__(self, frequency_topic: str = FREQUENCY_FRAME_TOPIC,
                 waveform_topic: str = WAVEFORM_FRAME_TOPIC):
        """Initialize frame publisher.

        Args:
            frequency_topic: Pub/sub topic for spectrum frames
            waveform_topic: Pub/sub topic for waveform frames
        """
        self.frequency_topic = frequency_topic
        self.waveform_topic = waveform_topic
        topic_manager = pub.getDefaultTopicMgr()
        for topic in (frequency_topic, waveform_topic):
            topic_manager.getOrCreateTopic(topic, _frame_listener_spec)
        logger.info(f"FramePublisher initialized with topics: {frequency_topic}, {waveform_topic}")

    def publish_frequency_frame(self, frame: np.ndarray) -> None:
        """Publish a spectrum frame.

        Args:
            frame: uint8 spectrum bytes, either one frame or the
                row-major spectrogram history
        """
        self._send(self.frequency_topic, frame)

    def publish_waveform_frame(self, frame: np.ndarray) -> None:
        """Publish a waveform frame.

        Args:
            frame: uint8 time-domain bytes, 128 is silence
        """
        self._send(self.waveform_topic, frame)

    def _send(self, topic: str, frame: np.ndarray) -> None:
        try:
            pub.sendMessage(topic, frame=frame)
        except Exception as e:
            logger.error(f"Listener on {topic} failed: {e}", exc_info=True)
