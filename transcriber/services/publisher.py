"""Session state publisher module for pub/sub notification."""

import uuid
import logging
from typing import Callable

from pubsub import pub

from ..models.session import SessionSnapshot

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionSnapshot], None]


def _state_listener_prototype(state: SessionSnapshot) -> None:
    """Defines the message data of state topics."""


class LoggingListenerExcHandler(pub.IListenerExcHandler):
    """Logs a failing listener instead of letting it abort the publisher."""

    def __call__(self, listenerID, topicObj) -> None:
        logger.exception(f"Listener {listenerID} failed on topic {topicObj.getName()}")


def install_listener_exc_handler() -> None:
    """Install the logging handler unless the application set its own."""
    if pub.getListenerExcHandler() is None:
        pub.setListenerExcHandler(LoggingListenerExcHandler())


class SessionStatePublisher:
    """Publishes session snapshots using pubsub.pub.

    Each publisher owns a subtopic of ``topic``: ``subscribe`` only hears
    this publisher, while a listener subscribed to ``topic`` itself hears
    every session publishing under it.
    """

    def __init__(self, topic: str):
        """Initialize state publisher.

        Args:
            topic: Parent pub/sub topic name for session snapshots
        """
        self.parent_topic = topic
        self.topic = f"{topic}.session_{uuid.uuid4().hex}"
        topic_manager = pub.getDefaultTopicMgr()
        topic_manager.getOrCreateTopic(topic, _state_listener_prototype)
        topic_manager.getOrCreateTopic(self.topic, _state_listener_prototype)
        install_listener_exc_handler()
        logger.info(f"SessionStatePublisher initialized with topic: {self.topic}")

    def publish(self, state: SessionSnapshot) -> None:
        pub.sendMessage(self.topic, state=state)
        logger.debug(f"Published session state: {state.status}")

    def subscribe(self, listener: StateListener) -> None:
        """Register ``listener(state)``.

        pypubsub only keeps weak references: the caller must keep the
        listener (or the object owning the bound method) alive.
        """
        pub.subscribe(listener, self.topic)

    def unsubscribe(self, listener: StateListener) -> None:
        if pub.getDefaultTopicMgr().getTopic(self.topic, okIfNone=True) is None:
            return
        pub.unsubscribe(listener, self.topic)

    def close(self) -> None:
        """Remove this publisher's topic and its subscriptions."""
        pub.getDefaultTopicMgr().delTopic(self.topic)
