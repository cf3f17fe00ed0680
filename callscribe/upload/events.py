"""Upload event publisher backed by a private pypubsub Publisher."""

import logging
from typing import Callable, Optional

from pubsub.core import Publisher

from ..models.events import UploadStartedEvent, UploadCompletedEvent, QueueChangedEvent

logger = logging.getLogger(__name__)

TOPIC_STARTED = "upload_started"
TOPIC_COMPLETED = "upload_completed"
TOPIC_QUEUE_CHANGED = "upload_queue_changed"


class _LoggingExcHandler:
    """Keeps a failing listener from breaking the publisher."""

    def __call__(self, listener_id: str, topic_obj) -> None:
        logger.exception(f"Listener {listener_id} failed on topic {topic_obj.getName()}")


class UploadEvents:
    """Publishes upload lifecycle events to subscribers.

    Each instance owns its own Publisher, so two queues never see each
    other's events. All topics carry a single ``event`` argument.
    """

    def __init__(self, publisher: Optional[Publisher] = None):
        self.publisher = publisher or Publisher()
        self.publisher.setListenerExcHandler(_LoggingExcHandler())

    def subscribe(self, listener: Callable, topic: str) -> None:
        """Subscribe ``listener(event)`` to a topic.

        Listeners are held by weak reference; the caller must keep them alive.
        """
        self.publisher.subscribe(listener, topic)
        logger.debug(f"Subscribed {listener} to {topic}")

    def unsubscribe(self, listener: Callable, topic: str) -> None:
        self.publisher.unsubscribe(listener, topic)

    def publish_started(self, event: UploadStartedEvent) -> None:
        self.publisher.sendMessage(TOPIC_STARTED, event=event)
        logger.debug(f"Published upload started: {event.count} files")

    def publish_completed(self, event: UploadCompletedEvent) -> None:
        self.publisher.sendMessage(TOPIC_COMPLETED, event=event)
        logger.debug(f"Published upload completed: {event.count} files, "
                     f"{len(event.transcript_ids)} transcripts")

    def publish_queue_changed(self, event: QueueChangedEvent) -> None:
        self.publisher.sendMessage(TOPIC_QUEUE_CHANGED, event=event)
