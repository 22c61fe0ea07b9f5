"""Notification dispatch for referee chats.

Email is the primary channel. WhatsApp is attempted only when the recipient
has a phone number on file. Delivery problems never reach the caller: they
are logged here and reported through ``NotificationResult``.
"""

import asyncio
import logging
from dataclasses import dataclass

from app.core.config import NotificationBackendEnum, settings
from app.exceptions.chat import NotificationDeliveryError
from app.services.email_service import EmailService, email_service
from app.services.whatsapp_service import WhatsAppService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    email_sent: bool = False
    whatsapp_sent: bool = False
    queued: bool = False


class NotificationDispatcher:
    """Send chat invitations and new-message alerts over email and WhatsApp."""

    def __init__(
        self,
        email: EmailService | None = None,
        whatsapp: WhatsAppService | None = None,
        backend: NotificationBackendEnum | None = None,
    ):
        self.email_service = email or email_service
        self.whatsapp_service = whatsapp or WhatsAppService()
        self.backend = backend or settings.notification_backend

    async def send_invitation(
        self,
        email: str,
        phone: str | None,
        name: str,
        url: str,
        job_title: str,
        company: str,
    ) -> NotificationResult:
        """Invite a referee to their chat."""
        if self.backend == NotificationBackendEnum.celery:
            from app.tasks.notification_tasks import send_referee_invitation_task

            return self._enqueue(
                send_referee_invitation_task, email, phone, name, url, job_title, company
            )

        email_sent = await self._deliver_email(
            self.email_service.send_referee_invitation, email, name, url, job_title, company
        )
        whatsapp_sent = False
        if phone:
            whatsapp_sent = await self._deliver_whatsapp(
                self.whatsapp_service.send_referee_invitation, phone, name, url, job_title, company
            )
        return NotificationResult(email_sent=email_sent, whatsapp_sent=whatsapp_sent)

    async def send_new_message_alert(
        self,
        email: str,
        phone: str | None,
        name: str,
        url: str,
    ) -> NotificationResult:
        """Tell the other party of a chat that a message arrived."""
        if self.backend == NotificationBackendEnum.celery:
            from app.tasks.notification_tasks import send_new_message_alert_task

            return self._enqueue(send_new_message_alert_task, email, phone, name, url)

        email_sent = await self._deliver_email(
            self.email_service.send_new_message_notification, email, name, url
        )
        whatsapp_sent = False
        if phone:
            whatsapp_sent = await self._deliver_whatsapp(
                self.whatsapp_service.send_new_message_notification, phone, name, url
            )
        return NotificationResult(email_sent=email_sent, whatsapp_sent=whatsapp_sent)

    async def _deliver_email(self, send, to_email: str, *args) -> bool:
        # smtplib blocks; keep it off the event loop
        try:
            sent = await asyncio.to_thread(send, to_email, *args)
        except Exception:
            logger.exception("Email notification to %s failed", to_email)
            return False
        if not sent:
            logger.warning("Email notification to %s was not delivered", to_email)
        return bool(sent)

    async def _deliver_whatsapp(self, send, to_number: str, *args) -> bool:
        try:
            return await send(to_number, *args)
        except NotificationDeliveryError as e:
            logger.error("WhatsApp notification to %s failed: %s", to_number, e)
        except Exception:
            logger.exception("Unexpected error sending WhatsApp notification to %s", to_number)
        return False

    @staticmethod
    def _enqueue(task, *args) -> NotificationResult:
        try:
            task.delay(*args)
        except Exception:
            logger.exception("Could not enqueue %s", task.name)
            return NotificationResult()
        logger.info("Queued %s", task.name)
        return NotificationResult(queued=True)
