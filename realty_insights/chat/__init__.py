from .orchestrator import ChatOrchestrator, GREETING, user_message_for
from .publisher import MESSAGE_TOPIC, STATUS_TOPIC, ChatPublisher

__all__ = [
    "ChatOrchestrator",
    "GREETING",
    "user_message_for",
    "ChatPublisher",
    "MESSAGE_TOPIC",
    "STATUS_TOPIC",
]
