"""Progress publisher module for pub/sub event publishing."""

import logging
from typing import Any
from pubsub import pub

logger = logging.getLogger(__name__)


class ProgressPublisher:
    """Publishes pipeline progress events using pubsub.pub.

    Subscribers observe progress; nothing in the pipeline depends on them.
    """

    def __init__(self, topic: str):
        """Initialize progress publisher.

        Args:
            topic: Pub/sub topic name for the events
        """
        self.topic = topic
        logger.debug(f"ProgressPublisher initialized with topic: {topic}")

    def publish(self, event: Any) -> None:
        """Publish an event to the pub/sub topic.

        Subscriber failures are logged and never reach the publisher.

        Args:
            event: Event dataclass to publish
        """
        try:
            pub.sendMessage(self.topic, event=event)
        except Exception as e:
            logger.warning(f"Subscriber error on topic {self.topic}: {e}")
