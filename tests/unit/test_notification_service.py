"""Unit tests for the notification dispatcher."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.config import NotificationBackendEnum
from app.exceptions.chat import NotificationDeliveryError
from app.services.email_service import EmailService
from app.services.notification_service import NotificationDispatcher, NotificationResult
from app.services.whatsapp_service import WhatsAppService

INVITE_ARGS = ("fiona@example.com", "+15552223333", "Fiona", "http://app.test/chat/1?token=t", "Dev", "Acme")


@pytest.fixture
def email():
    service = MagicMock(spec=EmailService)
    service.send_referee_invitation.return_value = True
    service.send_new_message_notification.return_value = True
    return service


@pytest.fixture
def whatsapp():
    service = MagicMock(spec=WhatsAppService)
    service.send_referee_invitation = AsyncMock(return_value=True)
    service.send_new_message_notification = AsyncMock(return_value=True)
    return service


@pytest.fixture
def dispatcher(email, whatsapp):
    return NotificationDispatcher(email=email, whatsapp=whatsapp, backend=NotificationBackendEnum.inline)


@pytest.mark.asyncio
class TestNotificationDispatcher:
    """Test cases for NotificationDispatcher."""

    async def test_invitation_uses_both_channels(self, dispatcher, email, whatsapp):
        result = await dispatcher.send_invitation(*INVITE_ARGS)

        assert result == NotificationResult(email_sent=True, whatsapp_sent=True)
        email.send_referee_invitation.assert_called_once_with(
            "fiona@example.com", "Fiona", "http://app.test/chat/1?token=t", "Dev", "Acme"
        )
        whatsapp.send_referee_invitation.assert_awaited_once_with(
            "+15552223333", "Fiona", "http://app.test/chat/1?token=t", "Dev", "Acme"
        )

    async def test_no_phone_skips_whatsapp(self, dispatcher, whatsapp):
        result = await dispatcher.send_new_message_alert("r@example.com", None, "Rita", "http://app.test/chat/1")

        assert result == NotificationResult(email_sent=True, whatsapp_sent=False)
        whatsapp.send_new_message_notification.assert_not_awaited()

    async def test_whatsapp_failure_is_swallowed(self, dispatcher, whatsapp, caplog):
        whatsapp.send_referee_invitation.side_effect = NotificationDeliveryError("whatsapp", "HTTP 500")

        with caplog.at_level(logging.ERROR, logger="app.services.notification_service"):
            result = await dispatcher.send_invitation(*INVITE_ARGS)

        assert result == NotificationResult(email_sent=True, whatsapp_sent=False)
        assert "WhatsApp notification" in caplog.text

    async def test_email_exception_is_swallowed(self, dispatcher, email, whatsapp):
        email.send_new_message_notification.side_effect = RuntimeError("smtp exploded")

        result = await dispatcher.send_new_message_alert(
            "r@example.com", "+15550001111", "Rita", "http://app.test/chat/1"
        )

        assert result == NotificationResult(email_sent=False, whatsapp_sent=True)

    async def test_email_not_delivered(self, dispatcher, email):
        email.send_referee_invitation.return_value = False

        result = await dispatcher.send_invitation(*INVITE_ARGS)

        assert result.email_sent is False
        assert result.whatsapp_sent is True

    async def test_celery_backend_enqueues(self, email, whatsapp):
        dispatcher = NotificationDispatcher(email=email, whatsapp=whatsapp, backend=NotificationBackendEnum.celery)

        with patch("app.tasks.notification_tasks.send_referee_invitation_task.delay") as delay:
            result = await dispatcher.send_invitation(*INVITE_ARGS)

        assert result == NotificationResult(queued=True)
        delay.assert_called_once_with(*INVITE_ARGS)
        email.send_referee_invitation.assert_not_called()

    async def test_broker_failure_is_swallowed(self, email, whatsapp):
        dispatcher = NotificationDispatcher(email=email, whatsapp=whatsapp, backend=NotificationBackendEnum.celery)

        with patch(
            "app.tasks.notification_tasks.send_new_message_alert_task.delay",
            side_effect=ConnectionError("broker down"),
        ):
            result = await dispatcher.send_new_message_alert("r@example.com", None, "Rita", "http://x")

        assert result == NotificationResult()


class TestNotificationTasks:
    def test_invitation_task_runs_inline_dispatcher(self):
        from app.tasks.notification_tasks import send_referee_invitation_task

        with patch(
            "app.tasks.notification_tasks.NotificationDispatcher.send_invitation",
            new=AsyncMock(return_value=NotificationResult(email_sent=True)),
        ) as send:
            result = send_referee_invitation_task.apply(args=INVITE_ARGS).get()

        assert result == {"email_sent": True, "whatsapp_sent": False, "queued": False}
        send.assert_awaited_once_with(*INVITE_ARGS)
