"""
Referee chat message model. Messages are append-only and stored encrypted.
"""

import enum

from sqlalchemy import Boolean, Column, Enum, ForeignKey, Integer, Text, UniqueConstraint

from .base import UUID, BaseModel


class SenderType(str, enum.Enum):
    """Which side of the chat wrote a message."""

    RECRUITER = "RECRUITER"
    REFEREE = "REFEREE"


class ChatMessage(BaseModel):
    """
    Represents one message in a referee chat.

    ``position`` is the 1-based append sequence within the chat and defines
    message order; the unique constraint on (chat_id, position) makes each
    append atomic. ``is_read`` is reserved and never set by the service.
    """

    __tablename__ = "referee_chat_messages"
    __table_args__ = (
        UniqueConstraint("chat_id", "position", name="uq_referee_chat_messages_chat_position"),
    )

    chat_id = Column(UUID(), ForeignKey("referee_chats.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    sender_type = Column(Enum(SenderType), nullable=False)
    encrypted_content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
