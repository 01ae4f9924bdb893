"""Exception taxonomy shared by services, adapters and the HTTP layer."""


class NibletError(Exception):
    """Base class for application errors."""


class InputValidationError(NibletError):
    """A request or form field failed validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ExtractionFailure(NibletError):
    """A quantity could not be extracted from an utterance."""


class BackendError(NibletError):
    """The REST backend could not be reached or returned an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(BackendError):
    """The backend rejected the bearer token."""


class ProviderError(NibletError):
    """The LLM provider run did not complete."""


class RecordNotFound(NibletError):
    """A requested record does not exist."""


class ConversationNotFound(RecordNotFound):
    """No conversation exists for the given id."""


class ConversationBusy(NibletError):
    """A turn is already being processed for the conversation."""
