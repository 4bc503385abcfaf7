"""
In-process publish/subscribe for serving status events
"""

import logging
from typing import Any, Callable, Dict, List

from PyQt5.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)

SERVING_STATUS_TOPIC = "serving_status"

Subscriber = Callable[[Any], None]


class StatusBroadcaster(QObject):
    """Observer registry keyed by topic.

    Subscribers are called synchronously, in subscription order, on the
    publisher's thread. Qt widgets that prefer queued delivery can connect
    to ``published`` instead.
    """

    published = pyqtSignal(str, object)  # topic, event

    def __init__(self, parent=None):
        super().__init__(parent)
        self._subscribers: Dict[str, List[Subscriber]] = {}

    def subscribe(self, topic: str, callback: Subscriber):
        """Register a callback for a topic"""
        self._subscribers.setdefault(topic, []).append(callback)

    def unsubscribe(self, topic: str, callback: Subscriber):
        """Remove a callback; unknown callbacks are ignored"""
        callbacks = self._subscribers.get(topic, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def subscribers(self, topic: str) -> List[Subscriber]:
        return list(self._subscribers.get(topic, []))

    def publish(self, topic: str, event: Any):
        """Deliver an event to every subscriber of a topic.

        A failing subscriber is logged and skipped; nothing is raised back
        to the publisher.
        """
        for callback in self.subscribers(topic):
            try:
                callback(event)
            except Exception:
                logger.warning("[StatusBroadcaster] Subscriber %r failed on %r", callback, topic, exc_info=True)

        try:
            self.published.emit(topic, event)
        except RuntimeError:
            # Underlying QObject already deleted during application teardown
            logger.debug("[StatusBroadcaster] Dropped %r event after teardown", topic)
