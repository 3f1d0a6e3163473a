"""Chat publisher module for pub/sub event publishing."""

import logging

from pubsub import pub

from ..models.chat import ChatMessage, ChatStatus

logger = logging.getLogger(__name__)

MESSAGE_TOPIC = "chat.message"
STATUS_TOPIC = "chat.status"


class ChatPublisher:
    """Publishes chat messages and status changes using pubsub.pub."""

    def __init__(self, message_topic: str = MESSAGE_TOPIC, status_topic: str = STATUS_TOPIC):
        """Initialize chat publisher.

        Args:
            message_topic: Topic for appended chat messages
            status_topic: Topic for conversation status changes
        """
        self.message_topic = message_topic
        self.status_topic = status_topic
        logger.info(f"ChatPublisher initialized with topics: {message_topic}, {status_topic}")

    def publish_message(self, message: ChatMessage) -> None:
        pub.sendMessage(self.message_topic, message=message)
        logger.debug(f"Published {message.role.value} message: {message.id}")

    def publish_status(self, status: ChatStatus) -> None:
        pub.sendMessage(self.status_topic, status=status)
        logger.debug(f"Published status: {status.value}")
