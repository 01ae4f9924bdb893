"""In-memory conversation records."""

import asyncio
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from niblet.domain.messages import Message
from niblet.domain.onboarding import OnboardingStep, ProfileDraft


@dataclass
class ChatConversation:
    """Free-form dashboard chat owned by one user session."""

    token: str | None
    messages: list[Message] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def find_message(self, message_id: str) -> Message | None:
        """Return a message by id, if present."""
        for message in self.messages:
            if message.id == message_id:
                return message
        return None


@dataclass
class OnboardingConversation:
    """Scripted onboarding dialogue with exactly one current step."""

    token: str | None
    step: OnboardingStep = OnboardingStep.HEIGHT
    draft: ProfileDraft = field(default_factory=ProfileDraft)
    messages: list[Message] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
