"""Chat conversation models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Tuple

from .analytics import ResponseKind


class MessageRole(Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatStatus(Enum):
    """Which activity, if any, the chat panel is busy with."""
    IDLE = "idle"
    CAPTURING = "capturing"
    TRANSCRIBING = "transcribing"
    AWAITING_INSIGHT = "awaiting_insight"


@dataclass(frozen=True)
class ChatMessage:
    """One message of the conversation. Never mutated once appended."""
    role: MessageRole
    content: str
    kind: ResponseKind = ResponseKind.TEXT
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ConversationState:
    """Messages plus the transient activity flags of one chat session."""
    status: ChatStatus = ChatStatus.IDLE
    input_text: str = ""
    _messages: List[ChatMessage] = field(default_factory=list, repr=False)

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    @property
    def is_capturing(self) -> bool:
        return self.status is ChatStatus.CAPTURING

    @property
    def is_transcribing(self) -> bool:
        return self.status is ChatStatus.TRANSCRIBING

    @property
    def is_awaiting_insight(self) -> bool:
        return self.status is ChatStatus.AWAITING_INSIGHT

    @property
    def input_enabled(self) -> bool:
        return self.status is ChatStatus.IDLE
