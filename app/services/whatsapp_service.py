"""WhatsApp notifications through the Twilio REST API."""

import logging

import httpx

from app.core.config import settings
from app.exceptions.chat import NotificationDeliveryError

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"
FOOTER = "_This is an automated message from the Recruitment Verification Platform._"


def format_whatsapp_number(number: str) -> str:
    """Address a phone number on the WhatsApp channel."""
    number = number.strip()
    return number if number.startswith(WHATSAPP_PREFIX) else f"{WHATSAPP_PREFIX}{number}"


def ensure_url_scheme(url: str) -> str:
    """Links without a scheme are not clickable in WhatsApp."""
    if url.startswith(("http://", "https://")):
        return url
    return f"https://{url}"


class WhatsAppService:
    """Send WhatsApp messages via Twilio's Messages resource."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self.account_sid = settings.twilio_account_sid
        self.auth_token = settings.twilio_auth_token
        self.from_number = settings.twilio_whatsapp_number
        self.api_url = settings.twilio_api_url.rstrip("/")
        self.timeout = settings.notification_timeout
        self._transport = transport

        if self.from_number and not self.from_number.startswith(WHATSAPP_PREFIX):
            logger.warning(
                "TWILIO_WHATSAPP_NUMBER (%s) should start with '%s'; prefixing it",
                self.from_number,
                WHATSAPP_PREFIX,
            )

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def messages_url(self) -> str:
        return f"{self.api_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json"

    async def send_message(self, to_number: str, body: str) -> bool:
        """Send one WhatsApp message.

        Returns:
            False when Twilio is not configured, True once Twilio accepted the message

        Raises:
            NotificationDeliveryError: If the request fails or Twilio rejects it
        """
        if not self.is_configured:
            logger.warning("Twilio is not configured. WhatsApp message to %s not sent", to_number)
            return False

        data = {
            "From": format_whatsapp_number(self.from_number),
            "To": format_whatsapp_number(to_number),
            "Body": body,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.messages_url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationDeliveryError(
                "whatsapp",
                f"Twilio rejected message to {to_number}: HTTP {e.response.status_code}",
            ) from e
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(
                "whatsapp", f"Twilio request failed for {to_number}: {e}"
            ) from e

        logger.info("WhatsApp message sent to %s", to_number)
        return True

    async def send_referee_invitation(
        self,
        to_number: str,
        referee_name: str,
        chat_url: str,
        job_title: str,
        company: str,
    ) -> bool:
        body = (
            f"Hello {referee_name},\n\n"
            f"A recruiter from *{company}* has requested to contact you as a reference for a "
            f"candidate who applied for the position of *{job_title}*.\n\n"
            "You can securely communicate with the recruiter through our encrypted chat system. "
            "No account creation is required.\n\n"
            f"🔗 Access Secure Chat:\n{ensure_url_scheme(chat_url)}\n\n"
            "⚠️ *Important:* This link is unique and secure. Do not share it with anyone else.\n\n"
            "If you did not expect this message or believe it was sent in error, "
            "please disregard it.\n\n"
            f"{FOOTER}"
        )
        return await self.send_message(to_number, body)

    async def send_new_message_notification(
        self,
        to_number: str,
        recipient_name: str,
        chat_url: str,
    ) -> bool:
        body = (
            f"Hello {recipient_name},\n\n"
            "💬 You have received a new message in your chat.\n\n"
            f"🔗 View Message:\n{ensure_url_scheme(chat_url)}\n\n"
            f"{FOOTER}"
        )
        return await self.send_message(to_number, body)
