"""Domain exceptions raised by the service layer.

Routes map each kind to an HTTP status; services never deal with HTTP.
"""
from typing import Optional


class ChatbotError(Exception):
    """Base class for service-layer errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(ChatbotError):
    """Caller supplied unusable input (e.g. a blank chat message)."""


class NotFound(ChatbotError):
    """
    Resource missing or not owned by the caller.

    The two cases are reported identically so other users' data cannot be
    probed for existence.
    """

    def __init__(self, message: str = "Project not found or you do not have access"):
        super().__init__(message)


class StorageFailure(ChatbotError):
    """Persistence layer error (constraint violation, lost connection)."""

    def __init__(self, message: str = "Database operation failed", cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class ModelUnavailable(ChatbotError):
    """
    The text generation backend could not produce a reply.

    `reason` is diagnostic only (logged); callers treat every reason the same.
    """

    def __init__(self, reason: str, detail: str = ""):
        super().__init__("AI service temporarily unavailable. Please try again.")
        self.reason = reason
        self.detail = detail


class FileTooLarge(InvalidInput):
    """Upload exceeds the configured size limit."""
