"""Models for the LLM assistant relay and its admin configuration."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RunStatus:
    """Snapshot of a provider-side assistant run."""

    id: str
    status: str
    error_message: str | None = None


@dataclass(frozen=True)
class ThreadMessage:
    """A message stored on an assistant thread."""

    id: str
    role: str
    text: str | None


@dataclass(frozen=True)
class AssistantReply:
    """Final assistant answer for a relayed message."""

    message: str
    message_id: str
    thread_id: str


@dataclass
class Personality:
    """Tone directive the assistant can be asked to use."""

    name: str
    system_prompt: str
    examples: list[str] = field(default_factory=list)
    temperature: float = 0.7
    active: bool = True


@dataclass
class PromptTemplate:
    """Reusable prompt with ``{placeholder}`` fields."""

    id: str
    name: str
    template: str
    category: str = "logging"
