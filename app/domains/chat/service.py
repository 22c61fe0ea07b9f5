"""Referee chat service layer.

Entry points for opening a chat with a referee, reading it and exchanging
messages. Every operation takes the caller's ``AccessCredential`` explicitly;
nothing about the caller is kept between calls.
"""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.encryption import (
    DecryptionError,
    MessageEncryptor,
    generate_secure_token,
    get_message_encryptor,
    hash_token,
)
from app.domains.application.service import ApplicationService
from app.domains.chat.access import AccessCredential, ChatAccessResolver
from app.domains.chat.repository import ChatRepository
from app.domains.referee.service import RefereeService
from app.domains.user.service import UserService
from app.exceptions.base import ValidationError
from app.exceptions.chat import ApplicationPermissionError, DuplicateChatError
from app.schemas.chat import (
    ApplicationSummary,
    ChatDetailResponse,
    ChatMessageResponse,
    ChatResponse,
    RecruiterSummary,
    RefereeSummary,
    SendMessageResponse,
    content_length,
)
from app.services.notification_service import NotificationDispatcher, NotificationResult
from models.chat import Chat
from models.chat_message import ChatMessage, SenderType

logger = logging.getLogger(__name__)


def build_referee_chat_url(chat_id: UUID, token: str) -> str:
    """Link a referee follows to reach the chat. The token is their only way in."""
    return f"{settings.app_base_url}/chat/{chat_id}?token={token}"


def build_recruiter_chat_url(chat_id: UUID) -> str:
    return f"{settings.app_base_url}/chat/{chat_id}"


@dataclass(frozen=True)
class ChatCreationResult:
    chat: Chat
    access_url: str
    created: bool
    notification: NotificationResult | None = None


class RefereeChatService:
    """Service class for referee chat operations."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: NotificationDispatcher | None = None,
        encryptor: MessageEncryptor | None = None,
        resolver: ChatAccessResolver | None = None,
    ):
        """Initialize the chat service.

        Args:
            db: Async database session for data operations.
            notifier: Outbound notification dispatcher.
            encryptor: Message encryptor; defaults to the one built from settings.
            resolver: Access resolver; defaults to one bound to ``db``.
        """
        self.db = db
        self.repository = ChatRepository(db)
        self.applications = ApplicationService(db)
        self.referees = RefereeService(db)
        self.users = UserService(db)
        self.notifier = notifier or NotificationDispatcher()
        self.encryptor = encryptor or get_message_encryptor()
        self.resolver = resolver or ChatAccessResolver(db)

    async def create_chat(
        self,
        application_id: UUID,
        referee_id: UUID,
        credential: AccessCredential,
    ) -> ChatCreationResult:
        """Open a chat between the calling recruiter and a referee.

        Calling this again for the same application and referee returns the
        existing chat without issuing a new token or a new invitation.

        Raises:
            ApplicationPermissionError: Caller is not a recruiter or does not own the job.
            ApplicationNotFoundError: Unknown application.
            RefereeNotFoundError: Referee unknown or named on another application.
        """
        if not credential.is_recruiter:
            raise ApplicationPermissionError("Only recruiters can create chats")

        recruiter_id = credential.principal_id
        application, job = await self.applications.get_owned_application(application_id, recruiter_id)
        referee = await self.referees.get_referee_for_application(referee_id, application_id)

        existing = await self.repository.find_chat_by_application_and_referee(application_id, referee_id)
        if existing:
            logger.info("Chat %s already exists for application %s", existing.id, application_id)
            return self._existing_chat_result(existing)

        token = generate_secure_token()
        try:
            chat = await self.repository.create_chat(
                application_id=application_id,
                recruiter_id=recruiter_id,
                referee_id=referee_id,
                token_hash=hash_token(token),
                raw_token=token,
            )
        except DuplicateChatError as e:
            return self._existing_chat_result(e.existing_chat)

        try:
            await self.applications.mark_referee_contacted(application)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to create chat for application %s", application_id)
            raise

        logger.info(
            "Chat %s created by recruiter %s for referee %s", chat.id, recruiter_id, referee_id
        )

        access_url = build_referee_chat_url(chat.id, token)
        notification = await self.notifier.send_invitation(
            referee.email, referee.phone, referee.name, access_url, job.title, job.company
        )
        return ChatCreationResult(
            chat=chat, access_url=access_url, created=True, notification=notification
        )

    async def resend_invitation(self, chat_id: UUID | str, credential: AccessCredential) -> ChatCreationResult:
        """Send the referee their original chat link again.

        The link is rebuilt from the retained token; no new token is issued.
        """
        access = await self.resolver.resolve(chat_id, credential)
        if access.is_referee:
            raise ApplicationPermissionError("Only the recruiter can resend an invitation")

        chat = access.chat
        if not chat.referee_token:
            raise ValidationError("This chat has no invitation link to resend")

        referee = await self.referees.get_referee(chat.referee_id)
        found = await self.applications.get_application_with_job(chat.application_id)
        if referee is None or found is None:
            raise ValidationError("The referee or application for this chat no longer exists")
        _, job = found

        access_url = build_referee_chat_url(chat.id, chat.referee_token)
        notification = await self.notifier.send_invitation(
            referee.email, referee.phone, referee.name, access_url, job.title, job.company
        )
        logger.info("Invitation for chat %s re-sent", chat.id)
        return ChatCreationResult(
            chat=chat, access_url=access_url, created=False, notification=notification
        )

    async def get_chat(self, chat_id: UUID | str, credential: AccessCredential) -> ChatDetailResponse:
        """Get a chat with display data for both parties and its decrypted messages."""
        access = await self.resolver.resolve(chat_id, credential)
        chat = access.chat

        application_summary = None
        found = await self.applications.get_application_with_job(chat.application_id)
        if found:
            application, job = found
            application_summary = ApplicationSummary(
                id=application.id,
                status=application.status,
                job_title=job.title,
                company=job.company,
            )

        recruiter = await self.users.get_user_by_id(chat.recruiter_id)
        referee = await self.referees.get_referee(chat.referee_id)
        messages = await self.repository.list_messages(chat.id)
        decrypted = await self._decrypt_messages(chat.id, messages)

        return ChatDetailResponse(
            chat=ChatResponse.model_validate(chat),
            application=application_summary,
            recruiter=RecruiterSummary.model_validate(recruiter) if recruiter else None,
            referee=RefereeSummary.model_validate(referee) if referee else None,
            messages=decrypted,
            is_referee=access.is_referee,
        )

    async def list_messages(self, chat_id: UUID | str, credential: AccessCredential) -> list[ChatMessageResponse]:
        """Get the decrypted messages of a chat in the order they were sent."""
        access = await self.resolver.resolve(chat_id, credential)
        messages = await self.repository.list_messages(access.chat.id)
        return await self._decrypt_messages(access.chat.id, messages)

    async def send_message(
        self,
        chat_id: UUID | str,
        credential: AccessCredential,
        content: str,
    ) -> SendMessageResponse:
        """Store a message from the caller and alert the other party.

        The sender is whoever the credential resolves to. Sending is not
        idempotent: a retried call stores a second message.
        """
        access = await self.resolver.resolve(chat_id, credential)
        chat = access.chat
        self._validate_content(content)

        encrypted_content = await asyncio.to_thread(self.encryptor.encrypt, content)
        try:
            message = await self.repository.append_message(chat.id, access.role, encrypted_content)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to store message in chat %s", chat.id)
            raise

        logger.info("Message %s stored in chat %s from %s", message.id, chat.id, access.role.value)

        await self._notify_other_party(chat, access.role)

        return SendMessageResponse(
            id=message.id,
            chat_id=chat.id,
            sender_type=message.sender_type,
            content=content,
            created_at=message.created_at,
        )

    async def _notify_other_party(self, chat: Chat, sender: SenderType) -> NotificationResult | None:
        if sender == SenderType.RECRUITER:
            referee = await self.referees.get_referee(chat.referee_id)
            if referee is None:
                logger.warning("Chat %s has no referee to notify", chat.id)
                return None
            if not chat.referee_token:
                logger.warning("Chat %s has no retained token; referee not notified", chat.id)
                return None
            url = build_referee_chat_url(chat.id, chat.referee_token)
            return await self.notifier.send_new_message_alert(
                referee.email, referee.phone, referee.name, url
            )

        recruiter = await self.users.get_user_by_id(chat.recruiter_id)
        if recruiter is None:
            logger.warning("Chat %s has no recruiter to notify", chat.id)
            return None
        return await self.notifier.send_new_message_alert(
            recruiter.email, recruiter.phone, recruiter.full_name, build_recruiter_chat_url(chat.id)
        )

    async def _decrypt_messages(
        self, chat_id: UUID, messages: list[ChatMessage]
    ) -> list[ChatMessageResponse]:
        isolate = settings.isolate_decryption_failures
        blobs = [message.encrypted_content for message in messages]
        # Key derivation is CPU-bound; run the whole batch off the event loop
        results = await asyncio.to_thread(self._decrypt_blobs, blobs)

        decrypted = []
        for message, result in zip(messages, results):
            if isinstance(result, DecryptionError):
                logger.error(
                    "Message %s in chat %s could not be decrypted: %s", message.id, chat_id, result
                )
                if not isolate:
                    raise result
                decrypted.append(self._to_response(message, None))
                continue
            decrypted.append(self._to_response(message, result))
        return decrypted

    def _decrypt_blobs(self, blobs: list[str]) -> list[str | DecryptionError]:
        results: list[str | DecryptionError] = []
        for blob in blobs:
            try:
                results.append(self.encryptor.decrypt(blob))
            except DecryptionError as e:
                results.append(e)
        return results

    @staticmethod
    def _to_response(message: ChatMessage, content: str | None) -> ChatMessageResponse:
        return ChatMessageResponse(
            id=message.id,
            sender_type=message.sender_type,
            content=content,
            created_at=message.created_at,
            is_read=message.is_read,
            decryption_failed=content is None,
        )

    @staticmethod
    def _validate_content(content: str) -> None:
        if content is None or not content.strip():
            raise ValidationError("Message content is required", details={"field": "content"})
        if content_length(content) > settings.max_message_length:
            raise ValidationError(
                f"Message content must be at most {settings.max_message_length} characters",
                details={"field": "content", "max_length": settings.max_message_length},
            )

    def _existing_chat_result(self, chat: Chat) -> ChatCreationResult:
        if chat.referee_token:
            access_url = build_referee_chat_url(chat.id, chat.referee_token)
        else:
            access_url = build_recruiter_chat_url(chat.id)
        return ChatCreationResult(chat=chat, access_url=access_url, created=False)
