"""OpenAI Assistants API client."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from niblet.domain.assistant import RunStatus, ThreadMessage
from niblet.services.assistant import AssistantClient


@dataclass
class OpenAIAssistantClient(AssistantClient):
    """Assistant client backed by OpenAI threads and runs."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIAssistantClient":
        """Create an OpenAI assistant client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()

    async def create_thread(self) -> str:
        """Create an empty thread."""
        thread = await self.client.beta.threads.create()
        return thread.id

    async def add_message(self, thread_id: str, text: str) -> str:
        """Post a user message to a thread."""
        message = await self.client.beta.threads.messages.create(
            thread_id=thread_id, role="user", content=text
        )
        return message.id

    async def create_run(self, thread_id: str, assistant_id: str) -> RunStatus:
        """Start a run of the assistant on a thread."""
        run = await self.client.beta.threads.runs.create(
            thread_id=thread_id, assistant_id=assistant_id
        )
        return _run_status(run)

    async def retrieve_run(self, thread_id: str, run_id: str) -> RunStatus:
        """Fetch the latest run state."""
        run = await self.client.beta.threads.runs.retrieve(
            run_id=run_id, thread_id=thread_id
        )
        return _run_status(run)

    async def list_messages(self, thread_id: str) -> list[ThreadMessage]:
        """Return the thread's messages, newest first."""
        page = await self.client.beta.threads.messages.list(
            thread_id=thread_id, order="desc"
        )
        return [
            ThreadMessage(id=message.id, role=message.role, text=_text_of(message))
            for message in page.data
        ]


def _run_status(run: object) -> RunStatus:
    last_error = getattr(run, "last_error", None)
    return RunStatus(
        id=run.id,
        status=run.status,
        error_message=getattr(last_error, "message", None),
    )


def _text_of(message: object) -> str | None:
    for block in message.content or []:
        if block.type == "text":
            return block.text.value
    return None
