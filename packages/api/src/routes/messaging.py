# This project was developed with assistance from AI tools.
"""Member-to-member messaging routes."""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.messaging import (
    ConversationCreate,
    ConversationListResponse,
    ConversationStarted,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)
from ..services import messaging as messaging_service
from ..services.messaging import SelfConversationError

router = APIRouter()


def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Access denied to this conversation",
    )


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ConversationListResponse:
    conversations = await messaging_service.list_conversations(session, user)
    return ConversationListResponse(data=conversations)


@router.post("", response_model=ConversationStarted, status_code=status.HTTP_201_CREATED)
async def start_conversation(
    body: ConversationCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ConversationStarted:
    """Message another member; reuses the existing thread with them if any."""
    try:
        conversation, message = await messaging_service.start_conversation(session, user, body)
    except SelfConversationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ConversationStarted(
        conversation_id=conversation.id,
        message=MessageResponse.model_validate(message),
    )


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def list_messages(
    conversation_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> MessageListResponse:
    """Messages oldest first; marks the other side's messages as read."""
    messages = await messaging_service.get_messages(session, user, conversation_id)
    if messages is None:
        raise _forbidden()
    return MessageListResponse(data=[MessageResponse.model_validate(m) for m in messages])


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: int,
    body: MessageCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    message = await messaging_service.send_message(session, user, conversation_id, body.body)
    if message is None:
        raise _forbidden()
    return MessageResponse.model_validate(message)
