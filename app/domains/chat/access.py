"""Access resolution for referee chats.

A caller reaches a chat in one of two ways: as the recruiter who opened it
(authenticated session) or as the referee holding the capability token from
the invitation link. The form of the credential decides the role; nothing
the caller asserts about itself does.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.encryption import hash_token
from app.domains.chat.repository import ChatRepository
from app.exceptions.chat import ChatAccessDeniedError
from models.chat import Chat
from models.chat_message import SenderType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessCredential:
    """Resolved identity of one inbound request.

    Exactly one of ``principal_id`` (recruiter session) or ``token`` (referee
    capability) is set. Build instances with :meth:`recruiter` or
    :meth:`referee`.
    """

    role: SenderType
    principal_id: UUID | None = None
    token: str | None = None

    def __post_init__(self):
        if self.role == SenderType.RECRUITER and (self.principal_id is None or self.token):
            raise ValueError("Recruiter credentials carry a principal id only")
        if self.role == SenderType.REFEREE and (not self.token or self.principal_id is not None):
            raise ValueError("Referee credentials carry a token only")

    @classmethod
    def recruiter(cls, principal_id: UUID) -> AccessCredential:
        return cls(role=SenderType.RECRUITER, principal_id=principal_id)

    @classmethod
    def referee(cls, token: str) -> AccessCredential:
        return cls(role=SenderType.REFEREE, token=token)

    @property
    def is_recruiter(self) -> bool:
        return self.role == SenderType.RECRUITER

    def __repr__(self) -> str:
        # keep tokens out of logs and tracebacks
        if self.is_recruiter:
            return f"AccessCredential(role=RECRUITER, principal_id={self.principal_id})"
        return f"AccessCredential(role=REFEREE, token={token_prefix(self.token)})"


class TokenLookupStrategy(str, enum.Enum):
    """How a referee token is matched against stored chats.

    ``LEGACY_RAW`` matches the plaintext token column and exists only for
    chats created before tokens were hashed. It is deprecated: disable it with
    ``ALLOW_LEGACY_TOKEN_LOOKUP=false`` once no such chats remain, then
    remove it.
    """

    HASHED = "hashed"
    LEGACY_RAW = "legacy_raw"


@dataclass(frozen=True)
class ResolvedChatAccess:
    chat: Chat
    role: SenderType
    strategy: TokenLookupStrategy | None = None

    @property
    def is_referee(self) -> bool:
        return self.role == SenderType.REFEREE


def token_prefix(token: str | None) -> str:
    return f"{token[:6]}…" if token else "<none>"


def token_lookup_strategies(allow_legacy: bool | None = None) -> tuple[TokenLookupStrategy, ...]:
    """Strategies to try, in order."""
    if allow_legacy is None:
        allow_legacy = settings.allow_legacy_token_lookup
    if allow_legacy:
        return (TokenLookupStrategy.HASHED, TokenLookupStrategy.LEGACY_RAW)
    return (TokenLookupStrategy.HASHED,)


class ChatAccessResolver:
    """Decide whether a credential may use a chat, and in which role."""

    def __init__(self, db: AsyncSession, allow_legacy_tokens: bool | None = None):
        self.repository = ChatRepository(db)
        self.strategies = token_lookup_strategies(allow_legacy_tokens)

    async def resolve(self, chat_id: UUID | str, credential: AccessCredential) -> ResolvedChatAccess:
        """Return the chat and the caller's role, or raise ``ChatAccessDeniedError``.

        The chat id and the identity are matched in a single query, so a
        recruiter who does not own the chat sees exactly what they would see
        for a chat that does not exist.
        """
        parsed_id = self._parse_chat_id(chat_id)
        if parsed_id is None:
            logger.warning("Chat access denied: malformed chat id %r", chat_id)
            raise ChatAccessDeniedError()

        if credential.is_recruiter:
            chat = await self.repository.find_chat_for_recruiter(parsed_id, credential.principal_id)
            if chat is None:
                logger.warning(
                    "Chat access denied: chat %s not found for recruiter %s",
                    parsed_id,
                    credential.principal_id,
                )
                raise ChatAccessDeniedError()
            return ResolvedChatAccess(chat=chat, role=SenderType.RECRUITER)

        for strategy in self.strategies:
            chat = await self._find_by_token(parsed_id, credential.token, strategy)
            if chat is not None:
                return ResolvedChatAccess(chat=chat, role=SenderType.REFEREE, strategy=strategy)

        logger.warning(
            "Chat access denied: token %s does not match chat %s (strategies: %s)",
            token_prefix(credential.token),
            parsed_id,
            ", ".join(s.value for s in self.strategies),
        )
        raise ChatAccessDeniedError()

    async def _find_by_token(
        self, chat_id: UUID, token: str, strategy: TokenLookupStrategy
    ) -> Chat | None:
        if strategy == TokenLookupStrategy.HASHED:
            return await self.repository.find_chat_by_token_hash(chat_id, hash_token(token))

        chat = await self.repository.find_chat_by_raw_token(chat_id, token)
        if chat is not None:
            logger.warning(
                "Chat %s matched through the deprecated raw-token lookup; "
                "its stored token hash does not match the token",
                chat_id,
            )
        return chat

    @staticmethod
    def _parse_chat_id(chat_id: UUID | str) -> UUID | None:
        if isinstance(chat_id, UUID):
            return chat_id
        try:
            return UUID(str(chat_id))
        except ValueError:
            return None
