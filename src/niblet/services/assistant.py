"""Relay of user messages to the hosted LLM assistant."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from niblet.domain.assistant import AssistantReply, RunStatus, ThreadMessage
from niblet.errors import InputValidationError, ProviderError
from niblet.services.personalities import PersonalityService

_logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"completed", "failed", "cancelled", "expired"})


class AssistantClient(Protocol):
    """Provider operations needed to run an assistant on a thread."""

    async def create_thread(self) -> str:
        """Create a thread and return its id."""

    async def add_message(self, thread_id: str, text: str) -> str:
        """Post a user message to a thread and return its id."""

    async def create_run(self, thread_id: str, assistant_id: str) -> RunStatus:
        """Start an assistant run on a thread."""

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunStatus:
        """Return the current state of a run."""

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        """Return thread messages, newest first."""


@dataclass(frozen=True)
class RunPolicy:
    """Backoff used while waiting for a run to finish."""

    initial_delay_seconds: float = 0.5
    max_delay_seconds: float = 5.0
    max_attempts: int = 60

    def delays(self) -> list[float]:
        """Return the sleep before each poll."""
        delays = []
        delay = self.initial_delay_seconds
        for _ in range(self.max_attempts):
            delays.append(delay)
            delay = min(delay * 2, self.max_delay_seconds)
        return delays


def with_personality(message: str, personality: str | None) -> str:
    """Prefix a message with the personality directive, if any."""
    if not personality:
        return message
    return f"[Use {personality} personality] {message}"


@dataclass
class AssistantService:
    """Post messages to an assistant thread and wait for the reply."""

    client: AssistantClient
    assistant_id: str | None
    personalities: PersonalityService
    policy: RunPolicy = field(default_factory=RunPolicy)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def create_thread(self) -> str:
        """Create a new conversation thread."""
        return await self.client.create_thread()

    async def send_message(
        self, thread_id: str, message: str, personality: str | None = None
    ) -> AssistantReply:
        """Relay a message and return the assistant's newest reply."""
        if not thread_id or not message.strip():
            raise InputValidationError("Thread ID and message are required")
        if not self.assistant_id:
            raise ProviderError("Assistant is not configured")
        if personality:
            self.personalities.require_active(personality)

        await self.client.add_message(thread_id, with_personality(message, personality))
        run = await self.client.create_run(thread_id, self.assistant_id)
        run = await self._wait_for(
            thread_id, await self.client.retrieve_run(thread_id, run.id)
        )

        if run.status != "completed":
            _logger.warning(
                "Assistant run ended with status %s",
                run.status,
                extra={"thread_id": thread_id, "run_id": run.id},
            )
            if run.status in TERMINAL_STATUSES:
                raise ProviderError(run.error_message or f"Run {run.status}")
            raise ProviderError("Assistant run timed out")

        for thread_message in await self.client.list_messages(thread_id):
            if thread_message.role == "assistant" and thread_message.text:
                return AssistantReply(
                    message=thread_message.text,
                    message_id=thread_message.id,
                    thread_id=thread_id,
                )
        raise ProviderError("No assistant message found")

    async def _wait_for(self, thread_id: str, run: RunStatus) -> RunStatus:
        for delay in self.policy.delays():
            if run.status in TERMINAL_STATUSES:
                return run
            await self.sleep(delay)
            run = await self.client.retrieve_run(thread_id, run.id)
        return run
