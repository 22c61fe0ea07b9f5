"""
Referee chat model: one secured channel between a recruiter and a referee
for a single application.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, UniqueConstraint

from .base import UUID, BaseModel


class Chat(BaseModel):
    """
    Represents a referee chat.

    ``token_hash`` is the SHA-256 digest of the referee's capability token and
    is what access checks match on. ``referee_token`` keeps the plaintext token
    so invitation and new-message links can be re-sent; the two columns are
    always written together.

    :ivar application_id: Application the chat was opened for.
    :type application_id: UUID
    :ivar recruiter_id: Recruiter who opened the chat.
    :type recruiter_id: UUID
    :ivar referee_id: Referee the chat is with.
    :type referee_id: UUID
    :ivar token_hash: Hex SHA-256 of the referee token.
    :type token_hash: str
    :ivar referee_token: Plaintext referee token.
    :type referee_token: str
    :ivar is_active: Soft flag; chats are never deleted.
    :type is_active: bool
    """

    __tablename__ = "referee_chats"
    __table_args__ = (
        UniqueConstraint("application_id", "referee_id", name="uq_referee_chats_application_referee"),
    )

    application_id = Column(UUID(), ForeignKey("applications.id"), nullable=False, index=True)
    recruiter_id = Column(UUID(), ForeignKey("users.id"), nullable=False, index=True)
    referee_id = Column(UUID(), ForeignKey("referees.id"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, index=True)
    referee_token = Column(String(128), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
