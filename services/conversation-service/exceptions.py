"""Custom exceptions for the conversation service."""


class InvalidRecordingError(ValueError):
    """Raised when a recording cannot be submitted for dubbing."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid recording: {reason}")


class RecordingStateError(Exception):
    """Raised when the audio capture is driven out of order."""


class DubbingFailure(Exception):
    """Base for errors that terminate an exchange as failed."""

    kind = "internal"


class SubmissionError(DubbingFailure):
    """Raised when the provider rejects or cannot be reached at job creation."""

    kind = "submission"

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(f"Dubbing submission failed: {message}")


class PollTransportError(Exception):
    """Raised when a single status poll cannot reach the provider."""

    def __init__(self, job_id: str, cause: Exception | None = None):
        self.job_id = job_id
        self.cause = cause
        super().__init__(f"Status request for dubbing job '{job_id}' failed")


class JobFailedError(DubbingFailure):
    """Raised when the provider reports the dubbing job as failed."""

    kind = "job_failed"

    def __init__(self, job_id: str, provider_message: str | None = None):
        self.job_id = job_id
        self.provider_message = provider_message
        super().__init__(provider_message or f"Dubbing job '{job_id}' failed")


class JobTimeoutError(DubbingFailure):
    """Raised when a job stays non-terminal past the polling ceiling."""

    kind = "timeout"

    def __init__(self, job_id: str, attempts: int):
        self.job_id = job_id
        self.attempts = attempts
        super().__init__(
            f"Dubbing job '{job_id}' did not finish after {attempts} status checks"
        )


class FetchError(DubbingFailure):
    """Raised when a dubbed artifact cannot be downloaded."""

    kind = "fetch"

    def __init__(
        self, job_id: str, target_language: str, cause: Exception | None = None
    ):
        self.job_id = job_id
        self.target_language = target_language
        self.cause = cause
        super().__init__(
            f"Failed to download dubbed audio for job '{job_id}' ({target_language})"
        )


class UploadError(Exception):
    """Raised when exchange audio cannot be persisted to durable storage."""

    def __init__(self, exchange_id: str, cause: Exception | None = None):
        self.exchange_id = exchange_id
        self.cause = cause
        super().__init__(f"Failed to persist audio for exchange '{exchange_id}'")


class ConversationNotFoundError(Exception):
    """Raised when a requested conversation does not exist."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} not found")


class ExchangeNotFoundError(Exception):
    """Raised when a requested exchange does not exist."""

    def __init__(self, exchange_id: str):
        self.exchange_id = exchange_id
        super().__init__(f"Exchange {exchange_id} not found")


class InvalidConversationStateError(Exception):
    """Raised when a lifecycle operation is not allowed in the current status."""

    def __init__(self, conversation_id: str, status: str, action: str):
        self.conversation_id = conversation_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} conversation {conversation_id} in status '{status}'"
        )


class InvalidExchangeTransitionError(Exception):
    """Raised when an exchange update would break its invariants."""

    def __init__(self, exchange_id: str, reason: str):
        self.exchange_id = exchange_id
        self.reason = reason
        super().__init__(f"Invalid update for exchange {exchange_id}: {reason}")


class PollerAlreadyRunningError(Exception):
    """Raised when a second poll loop is started for the same job."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Dubbing job '{job_id}' is already being polled")
