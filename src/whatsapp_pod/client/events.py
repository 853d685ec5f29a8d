"""Events delivered by the messaging client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class MessageInfo:
    """Snapshot of one inbound message, as reported by ``status``."""

    chat_id: str
    content: str
    sender: str
    is_from_me: bool = False
    message_type: str = "text"
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to pod wire format."""
        return {
            "chat_id": self.chat_id,
            "content": self.content,
            "sender": self.sender,
            "is_from_me": self.is_from_me,
            "message_type": self.message_type,
            "timestamp": self.timestamp,
        }


@dataclass
class ClientEvent:
    """Base class for messaging client events."""

    def __str__(self) -> str:
        return f"[{type(self).__name__}]"


@dataclass
class CodeIssued(ClientEvent):
    """A login code is ready to be presented to the user."""

    code: str


@dataclass
class Connected(ClientEvent):
    """Transport connected. Only means logged in if the store has an identity."""

    pass


@dataclass
class Authenticated(ClientEvent):
    """Pairing succeeded."""

    jid: str | None = None
    platform: str | None = None


@dataclass
class AuthFailed(ClientEvent):
    """Login cannot succeed."""

    reason: str = "login failed"


@dataclass
class ClientOutdated(AuthFailed):
    """Server rejected this client version. No retry."""

    reason: str = "client is outdated"


@dataclass
class StreamReset(ClientEvent):
    """Another client took over the stream."""

    pass


@dataclass
class Disconnected(ClientEvent):
    """Transport dropped."""

    pass


@dataclass
class InboundMessage(ClientEvent):
    """A message was received."""

    info: MessageInfo
