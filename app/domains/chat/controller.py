"""Referee chat API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Body, Depends, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_chat_credential, get_current_recruiter, get_db
from app.domains.chat.access import AccessCredential
from app.domains.chat.service import ChatCreationResult, RefereeChatService
from app.schemas.base import ResponseSchema
from app.schemas.chat import (
    ChatCreationResponse,
    ChatMessageListResponse,
    ChatResponse,
    CreateChatRequest,
    SendMessageRequest,
)
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chats", tags=["chats"])


def _creation_payload(result: ChatCreationResult) -> dict:
    return ChatCreationResponse(
        chat=ChatResponse.model_validate(result.chat),
        access_url=result.access_url,
        created=result.created,
    ).model_dump(mode="json")


@router.post("", response_model=ResponseSchema, status_code=201)
async def create_chat(
    response: Response,
    chat_data: CreateChatRequest = Body(...),
    current_user: User = Depends(get_current_recruiter),
    db: AsyncSession = Depends(get_db),
):
    """Open a chat with a referee and send them their invitation link.

    Returns 201 for a new chat and 200 when the chat already existed.
    """
    service = RefereeChatService(db)
    result = await service.create_chat(
        application_id=chat_data.application_id,
        referee_id=chat_data.referee_id,
        credential=AccessCredential.recruiter(current_user.id),
    )

    if not result.created:
        response.status_code = status.HTTP_200_OK
        return ResponseSchema(
            status="success",
            message="Chat already exists",
            data=_creation_payload(result),
        )

    return ResponseSchema(
        status="success",
        message="Chat created successfully and invitation sent to referee",
        data=_creation_payload(result),
    )


@router.get("/{chat_id}", response_model=ResponseSchema)
async def get_chat(
    chat_id: str = Path(..., description="Chat ID"),
    credential: AccessCredential = Depends(get_chat_credential),
    db: AsyncSession = Depends(get_db),
):
    """Get a chat with its decrypted messages."""
    service = RefereeChatService(db)
    detail = await service.get_chat(chat_id, credential)

    return ResponseSchema(
        status="success",
        message="Chat retrieved successfully",
        data=detail.model_dump(mode="json"),
    )


@router.get("/{chat_id}/messages", response_model=ResponseSchema)
async def list_messages(
    chat_id: str = Path(..., description="Chat ID"),
    credential: AccessCredential = Depends(get_chat_credential),
    db: AsyncSession = Depends(get_db),
):
    """Get all messages in a chat, oldest first."""
    service = RefereeChatService(db)
    messages = await service.list_messages(chat_id, credential)

    return ResponseSchema(
        status="success",
        message="Messages retrieved successfully",
        data=ChatMessageListResponse(messages=messages).model_dump(mode="json"),
    )


@router.post("/{chat_id}/messages", response_model=ResponseSchema, status_code=201)
async def send_message(
    chat_id: str = Path(..., description="Chat ID"),
    message_data: SendMessageRequest = Body(...),
    credential: AccessCredential = Depends(get_chat_credential),
    db: AsyncSession = Depends(get_db),
):
    """Send a message as the recruiter or the referee."""
    service = RefereeChatService(db)
    message = await service.send_message(chat_id, credential, message_data.content)

    return ResponseSchema(
        status="success",
        message="Message sent successfully",
        data=message.model_dump(mode="json"),
    )


@router.post("/{chat_id}/invitation", response_model=ResponseSchema)
async def resend_invitation(
    chat_id: str = Path(..., description="Chat ID"),
    credential: AccessCredential = Depends(get_chat_credential),
    db: AsyncSession = Depends(get_db),
):
    """Re-send the referee's invitation link."""
    service = RefereeChatService(db)
    result = await service.resend_invitation(chat_id, credential)

    return ResponseSchema(
        status="success",
        message="Invitation sent to referee",
        data=_creation_payload(result),
    )
