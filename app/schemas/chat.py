"""Referee chat schemas for request/response serialization."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.core.config import settings
from models.application import ApplicationStatus
from models.chat_message import SenderType

from .base import BaseSchema


def content_length(text: str) -> int:
    """Length in UTF-16 code units, the unit the message bound is stated in."""
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


class CreateChatRequest(BaseSchema):
    """Schema for a recruiter opening a chat with a referee."""

    application_id: UUID = Field(..., description="Application the referee was named on")
    referee_id: UUID = Field(..., description="Referee to contact")


class SendMessageRequest(BaseSchema):
    """Schema for sending a chat message."""

    content: str = Field(..., min_length=1, description="Message content")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message content is required")
        if content_length(v) > settings.max_message_length:
            raise ValueError(
                f"Message content must be at most {settings.max_message_length} characters"
            )
        return v


class ChatMessageResponse(BaseSchema):
    """Decrypted chat message."""

    id: UUID
    sender_type: SenderType
    content: str | None = Field(None, description="Plaintext, or null when the message could not be decrypted")
    created_at: datetime
    is_read: bool = False
    decryption_failed: bool = False


class ChatResponse(BaseSchema):
    """Chat metadata. Never carries the token or its hash."""

    id: UUID
    application_id: UUID
    recruiter_id: UUID
    referee_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


class RecruiterSummary(BaseSchema):
    id: UUID
    first_name: str
    last_name: str
    company: str | None = None


class RefereeSummary(BaseSchema):
    id: UUID
    name: str
    email: str
    relationship: str
    company: str | None = None
    position: str | None = None


class ApplicationSummary(BaseSchema):
    id: UUID
    status: ApplicationStatus
    job_title: str | None = None
    company: str | None = None


class ChatDetailResponse(BaseSchema):
    """Chat with display data for both parties and the decrypted messages."""

    chat: ChatResponse
    application: ApplicationSummary | None = None
    recruiter: RecruiterSummary | None = None
    referee: RefereeSummary | None = None
    messages: list[ChatMessageResponse] = Field(default_factory=list)
    is_referee: bool = False


class ChatCreationResponse(BaseSchema):
    """Result of opening (or re-opening) a chat."""

    chat: ChatResponse
    access_url: str = Field(..., description="Referee link embedding the access token")
    created: bool = Field(..., description="False when the chat already existed")


class SendMessageResponse(BaseSchema):
    """Echo of a stored message for immediate display."""

    id: UUID
    chat_id: UUID
    sender_type: SenderType
    content: str
    created_at: datetime


class ChatMessageListResponse(BaseSchema):
    messages: list[ChatMessageResponse]
