"""Email service for referee chat notifications."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from app.core.config import settings

logger = logging.getLogger(__name__)

PLATFORM_NAME = "Recruitment Verification Platform"


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self):
        """Initialize email service with SMTP configuration."""
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.email_from or settings.smtp_user
        self.timeout = settings.notification_timeout

    def _validate_config(self) -> bool:
        """Validate email configuration."""
        if not all([self.smtp_host, self.smtp_user, self.smtp_password]):
            logger.warning("Email service not configured properly")
            return False
        return True

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> bool:
        """Send an email via SMTP.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            text_content: Plain text content (fallback)

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self._validate_config():
            logger.warning("Email not sent to %s - SMTP is not configured", to_email)
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = self.from_email
            msg["To"] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, "plain"))
            msg.attach(MIMEText(html_content, "html"))

            logger.info("Sending email to %s with subject: %s", to_email, subject)

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            logger.info("Email sent successfully to %s", to_email)
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed: %s", e)
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending email to %s: %s", to_email, e)
            return False

    def send_referee_invitation(
        self,
        to_email: str,
        referee_name: str,
        chat_url: str,
        job_title: str,
        company: str,
    ) -> bool:
        """Send the invitation carrying a referee's private chat link."""
        subject = f"Reference Request for {job_title} at {company}"
        html_content = self._generate_invitation_html(referee_name, chat_url, job_title, company)
        text_content = self._generate_invitation_text(referee_name, chat_url, job_title, company)
        return self.send_email(to_email, subject, html_content, text_content)

    def send_new_message_notification(
        self,
        to_email: str,
        recipient_name: str,
        chat_url: str,
    ) -> bool:
        """Tell the other party a new message is waiting."""
        html_content = self._wrap_html(
            "New Message",
            f"""
            <p>Hello {escape(recipient_name)},</p>
            <p>You have received a new message in your chat.</p>
            <p style="text-align: center;">
                <a href="{escape(chat_url, quote=True)}" style="{self._button_style()}">View Message</a>
            </p>
            """,
        )
        text_content = (
            f"Hello {recipient_name},\n\n"
            "You have received a new message in your chat.\n\n"
            f"View message: {chat_url}\n\n"
            f"This is an automated notification from the {PLATFORM_NAME}.\n"
        )
        return self.send_email(to_email, "New Message in Your Chat", html_content, text_content)

    def _generate_invitation_html(
        self, referee_name: str, chat_url: str, job_title: str, company: str
    ) -> str:
        return self._wrap_html(
            "Reference Request",
            f"""
            <p>Hello {escape(referee_name)},</p>
            <p>A recruiter from <strong>{escape(company)}</strong> has requested to contact you
            as a reference for a candidate who applied for the position of
            <strong>{escape(job_title)}</strong>.</p>
            <p>You can securely communicate with the recruiter through our encrypted chat system.
            No account creation is required.</p>
            <p style="text-align: center;">
                <a href="{escape(chat_url, quote=True)}" style="{self._button_style()}">Access Secure Chat</a>
            </p>
            <p><strong>Important:</strong> This link is unique and secure. Do not share it with anyone else.</p>
            <p>If you did not expect this email or believe it was sent in error, please disregard it.</p>
            """,
        )

    def _generate_invitation_text(
        self, referee_name: str, chat_url: str, job_title: str, company: str
    ) -> str:
        text = f"Hello {referee_name},\n\n"
        text += (
            f"A recruiter from {company} has requested to contact you as a reference "
            f"for a candidate who applied for the position of {job_title}.\n\n"
        )
        text += (
            "You can securely communicate with the recruiter through our encrypted chat "
            "system. No account creation is required.\n\n"
        )
        text += f"Access secure chat: {chat_url}\n\n"
        text += "Important: This link is unique and secure. Do not share it with anyone else.\n\n"
        text += "If you did not expect this email or believe it was sent in error, please disregard it.\n"
        return text

    @staticmethod
    def _button_style() -> str:
        return (
            "display: inline-block; background: #667eea; color: white; padding: 12px 30px; "
            "text-decoration: none; border-radius: 5px; margin: 20px 0;"
        )

    @staticmethod
    def _wrap_html(title: str, body: str) -> str:
        """Shared layout for notification emails."""
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
            <title>{title}</title>
        </head>
        <body style="margin: 0; padding: 0; font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
                    <h1 style="margin: 0;">{title}</h1>
                </div>
                <div style="background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px;">
                    {body}
                </div>
                <div style="text-align: center; margin-top: 20px; font-size: 12px; color: #666;">
                    <p>This is an automated message from the {PLATFORM_NAME}.</p>
                </div>
            </div>
        </body>
        </html>
        """


# Create singleton instance
email_service = EmailService()
