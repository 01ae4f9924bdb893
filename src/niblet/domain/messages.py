"""Conversation message models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

Sender = Literal["user", "assistant"]
MessageKind = Literal[
    "text", "calorie-estimate", "weight-update", "question", "error"
]


@dataclass
class MessageMetadata:
    """Optional attributes attached to a rendered turn."""

    calories: int | None = None
    weight: float | None = None
    meal_type: str | None = None
    confirmed: bool | None = None
    rating: int | None = None
    description: str | None = None
    slot: str | None = None


@dataclass
class Message:
    """A single rendered conversation turn."""

    sender: Sender
    text: str
    kind: MessageKind = "text"
    metadata: MessageMetadata = field(default_factory=MessageMetadata)
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def from_user(cls, text: str) -> "Message":
        """Build a user message."""
        return cls(sender="user", text=text)

    @classmethod
    def from_assistant(
        cls,
        text: str,
        kind: MessageKind = "text",
        metadata: MessageMetadata | None = None,
    ) -> "Message":
        """Build an assistant message."""
        return cls(
            sender="assistant",
            text=text,
            kind=kind,
            metadata=metadata or MessageMetadata(),
        )
