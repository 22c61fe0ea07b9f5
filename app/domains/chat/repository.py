"""Data access for referee chats and their message logs."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.chat import DuplicateChatError
from models.base import utcnow
from models.chat import Chat
from models.chat_message import ChatMessage, SenderType

logger = logging.getLogger(__name__)

__all__ = ["ChatRepository", "MAX_APPEND_ATTEMPTS"]

MAX_APPEND_ATTEMPTS = 5


class ChatRepository:
    """Thin wrapper around database access for referee chats.

    Chats are created once and never updated except for ``updated_at``;
    messages are insert-only. Neither operation commits: the calling service
    owns the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _insert(self, table):
        """Dialect insert that supports ``ON CONFLICT DO NOTHING``."""
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(table)
        if dialect == "sqlite":
            return sqlite.insert(table)
        raise NotImplementedError(f"Unsupported database dialect: {dialect}")

    async def create_chat(
        self,
        *,
        application_id: UUID,
        recruiter_id: UUID,
        referee_id: UUID,
        token_hash: str,
        raw_token: str,
    ) -> Chat:
        """Insert a chat, relying on the unique (application, referee) constraint.

        Raises:
            DuplicateChatError: If a chat already exists for the pair, including
                one inserted concurrently after the caller's existence check.
        """
        chat_id = uuid.uuid4()
        now = utcnow()
        stmt = (
            self._insert(Chat.__table__)
            .values(
                id=chat_id,
                application_id=application_id,
                recruiter_id=recruiter_id,
                referee_id=referee_id,
                token_hash=token_hash,
                referee_token=raw_token,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["application_id", "referee_id"])
        )
        await self.session.execute(stmt)

        chat = await self.find_chat_by_application_and_referee(application_id, referee_id)
        if chat is None:
            raise RuntimeError("Chat insert neither succeeded nor conflicted")
        if chat.id != chat_id:
            logger.info(
                "Chat creation for application %s / referee %s lost the race to chat %s",
                application_id,
                referee_id,
                chat.id,
            )
            raise DuplicateChatError(chat)
        return chat

    async def append_message(
        self,
        chat_id: UUID,
        sender_type: SenderType,
        encrypted_content: str,
        created_at: datetime | None = None,
    ) -> ChatMessage:
        """Append one message to the end of a chat's log.

        The next position is computed inside the insert statement. A concurrent
        append that claimed the same position makes the insert a no-op, and the
        append is retried against the new tail.
        """
        created_at = created_at or utcnow()

        for attempt in range(1, MAX_APPEND_ATTEMPTS + 1):
            message_id = uuid.uuid4()
            stmt = (
                self._insert(ChatMessage.__table__)
                .values(
                    id=message_id,
                    chat_id=chat_id,
                    position=self._next_position(chat_id),
                    sender_type=sender_type,
                    encrypted_content=encrypted_content,
                    is_read=False,
                    created_at=created_at,
                    updated_at=created_at,
                )
                .on_conflict_do_nothing(index_elements=["chat_id", "position"])
            )
            await self.session.execute(stmt)

            message = await self.session.get(ChatMessage, message_id)
            if message is not None:
                await self.session.execute(
                    update(Chat).where(Chat.id == chat_id).values(updated_at=created_at)
                )
                return message

            logger.warning(
                "Concurrent append on chat %s, retrying (attempt %d/%d)",
                chat_id,
                attempt,
                MAX_APPEND_ATTEMPTS,
            )

        raise RuntimeError(f"Could not append message to chat {chat_id}")

    def _next_position(self, chat_id: UUID):
        """Position after the current tail, evaluated inside the insert."""
        return (
            select(func.coalesce(func.max(ChatMessage.position), 0) + 1)
            .where(ChatMessage.chat_id == chat_id)
            .correlate(None)
            .scalar_subquery()
        )

    async def get_chat_by_id(self, chat_id: UUID) -> Chat | None:
        """Return a chat by identifier."""
        result = await self.session.execute(select(Chat).where(Chat.id == chat_id))
        return result.scalar_one_or_none()

    async def find_chat_by_application_and_referee(
        self, application_id: UUID, referee_id: UUID
    ) -> Chat | None:
        result = await self.session.execute(
            select(Chat).where(
                Chat.application_id == application_id,
                Chat.referee_id == referee_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_chat_for_recruiter(self, chat_id: UUID, recruiter_id: UUID) -> Chat | None:
        """Return the chat only if it was opened by ``recruiter_id``."""
        result = await self.session.execute(
            select(Chat).where(Chat.id == chat_id, Chat.recruiter_id == recruiter_id)
        )
        return result.scalar_one_or_none()

    async def find_chat_by_token_hash(self, chat_id: UUID, token_hash: str) -> Chat | None:
        result = await self.session.execute(
            select(Chat).where(Chat.id == chat_id, Chat.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def find_chat_by_raw_token(self, chat_id: UUID, raw_token: str) -> Chat | None:
        """Deprecated lookup on the plaintext token column."""
        result = await self.session.execute(
            select(Chat).where(Chat.id == chat_id, Chat.referee_token == raw_token)
        )
        return result.scalar_one_or_none()

    async def list_messages(self, chat_id: UUID) -> list[ChatMessage]:
        """Return every message of a chat in append order."""
        result = await self.session.execute(
            select(ChatMessage)
            .where(ChatMessage.chat_id == chat_id)
            .order_by(ChatMessage.position)
        )
        return list(result.scalars())
