"""Error types shared by the core and the service adapters."""

from __future__ import annotations


class ChatServiceError(Exception):
    """Base class for failures talking to a message service."""


class NetworkError(ChatServiceError):
    """The service could not be reached or did not answer in time."""


class NotFoundError(ChatServiceError):
    """The requested message does not exist."""


class MalformedResponseError(ChatServiceError):
    """The service answered, but not with the expected shape."""


class ServiceError(ChatServiceError):
    """Any other non-success answer from the service."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
