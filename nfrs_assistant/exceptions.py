"""Errors raised by the chat client.

Every error carries a human-readable ``message`` suitable for a banner or an
inline apology.
"""


class ChatClientError(Exception):
    """Base exception for chat client errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ServiceUnavailableError(ChatClientError):
    """Raised when a backend service cannot be reached or refuses the caller."""

    def __init__(self, message: str = "Service unavailable", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class CreateFailedError(ChatClientError):
    """Raised when a conversation cannot be created."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class NotFoundError(ChatClientError):
    """Raised when a conversation id is not known locally or remotely."""

    pass


class SendFailedError(ChatClientError):
    """Raised when a message cannot be delivered to the conversation service."""

    pass


class UnsupportedTypeError(ChatClientError):
    """Raised when a document is rejected locally before upload."""

    pass


class UploadFailedError(ChatClientError):
    """Raised when the document service rejects or fails an upload."""

    pass
