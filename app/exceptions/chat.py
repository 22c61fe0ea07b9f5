# ruff: noqa: D107
"""Referee chat exceptions."""

from typing import Any

from .base import BaseAppException

CHAT_ACCESS_DENIED_MESSAGE = "Chat not found or access denied"


class AuthenticationMissingError(BaseAppException):
    """Raised when a request carries neither a session nor a referee token."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, status_code=401, error_code="AUTHENTICATION_REQUIRED")


class ChatAccessDeniedError(BaseAppException):
    """Raised for every chat access failure.

    Wrong owner, wrong or stale token and unknown chat id all produce this
    same response so callers cannot probe which chats exist.
    """

    def __init__(self):
        super().__init__(
            message=CHAT_ACCESS_DENIED_MESSAGE,
            status_code=404,
            error_code="CHAT_NOT_FOUND",
        )


class ApplicationNotFoundError(BaseAppException):
    """Raised when a chat is requested for an unknown application."""

    def __init__(self, message: str = "Application not found"):
        super().__init__(message=message, status_code=404, error_code="APPLICATION_NOT_FOUND")


class RefereeNotFoundError(BaseAppException):
    """Raised when the referee is unknown or belongs to another application."""

    def __init__(self, message: str = "Referee not found for this application"):
        super().__init__(message=message, status_code=404, error_code="REFEREE_NOT_FOUND")


class ApplicationPermissionError(BaseAppException):
    """Raised when a recruiter opens a chat for an application they do not own."""

    def __init__(
        self,
        message: str = "You can only create chats for your own job applications",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=403,
            error_code="APPLICATION_PERMISSION_DENIED",
            details=details,
        )


class DuplicateChatError(Exception):
    """A chat already exists for the (application, referee) pair.

    Raised by the chat store when the unique constraint wins a creation race;
    the service recovers by returning ``existing_chat``.
    """

    def __init__(self, existing_chat):
        self.existing_chat = existing_chat
        super().__init__(f"Chat already exists: {existing_chat.id}")


class NotificationDeliveryError(Exception):
    """An outbound notification channel failed to deliver."""

    def __init__(self, channel: str, message: str):
        self.channel = channel
        super().__init__(f"{channel} delivery failed: {message}")
