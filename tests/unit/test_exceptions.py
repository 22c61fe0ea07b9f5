"""
Unit tests for Exception classes.
"""

import uuid

import pytest
from fastapi import HTTPException

from app.exceptions.base import BaseAppException, ValidationError
from app.exceptions.chat import (
    CHAT_ACCESS_DENIED_MESSAGE,
    ApplicationNotFoundError,
    ApplicationPermissionError,
    AuthenticationMissingError,
    ChatAccessDeniedError,
    DuplicateChatError,
    NotificationDeliveryError,
    RefereeNotFoundError,
)


class TestBaseAppException:
    """Test cases for BaseAppException."""

    def test_base_exception_default_values(self):
        exc = BaseAppException("Something broke")

        assert isinstance(exc, HTTPException)
        assert exc.status_code == 500
        assert exc.error_code == "INTERNAL_ERROR"
        assert exc.details == {}
        assert exc.detail == {"message": "Something broke", "error_code": "INTERNAL_ERROR", "details": None}

    def test_validation_error(self):
        exc = ValidationError("Bad content", details={"field": "content"})

        assert exc.status_code == 422
        assert exc.error_code == "VALIDATION_ERROR"
        assert exc.detail["details"] == {"field": "content"}


class TestChatExceptions:
    @pytest.mark.parametrize(
        "exc, status_code, error_code",
        [
            (AuthenticationMissingError(), 401, "AUTHENTICATION_REQUIRED"),
            (ChatAccessDeniedError(), 404, "CHAT_NOT_FOUND"),
            (ApplicationNotFoundError(), 404, "APPLICATION_NOT_FOUND"),
            (RefereeNotFoundError(), 404, "REFEREE_NOT_FOUND"),
            (ApplicationPermissionError(), 403, "APPLICATION_PERMISSION_DENIED"),
        ],
    )
    def test_status_and_code(self, exc, status_code, error_code):
        assert isinstance(exc, BaseAppException)
        assert exc.status_code == status_code
        assert exc.error_code == error_code

    def test_access_denied_has_one_message(self):
        assert ChatAccessDeniedError().message == CHAT_ACCESS_DENIED_MESSAGE

    def test_duplicate_chat_carries_existing_chat(self):
        class FakeChat:
            id = uuid.uuid4()

        exc = DuplicateChatError(FakeChat)

        assert exc.existing_chat is FakeChat
        assert not isinstance(exc, HTTPException)

    def test_notification_delivery_error(self):
        exc = NotificationDeliveryError("whatsapp", "HTTP 500")

        assert exc.channel == "whatsapp"
        assert "whatsapp delivery failed" in str(exc)
