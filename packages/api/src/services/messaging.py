# This project was developed with assistance from AI tools.
"""Direct messages between members (renters and owners).

Each pair of members shares a single conversation. Reading a conversation
marks the other participant's messages as read.
"""

import logging
from datetime import UTC, datetime

from db import Conversation, Message
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.messaging import ConversationCreate, ConversationSummary

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200


class SelfConversationError(ValueError):
    """Raised when a member tries to message themselves."""

    pass


def participant_pair(a: str, b: str) -> tuple[str, str]:
    """Canonical (sorted) ordering of two member ids."""
    return (a, b) if a <= b else (b, a)


def _other_participant(conversation: Conversation, user_id: str) -> str:
    if conversation.participant_a == user_id:
        return conversation.participant_b
    return conversation.participant_a


async def _get_for_participant(
    session: AsyncSession,
    user: UserContext,
    conversation_id: int,
) -> Conversation | None:
    result = await session.execute(
        select(Conversation).where(
            Conversation.id == conversation_id,
            or_(
                Conversation.participant_a == user.user_id,
                Conversation.participant_b == user.user_id,
            ),
        )
    )
    return result.scalar_one_or_none()


def _append(conversation: Conversation, sender_id: str, body: str, now: datetime) -> Message:
    message = Message(
        conversation_id=conversation.id,
        sender_user_id=sender_id,
        body=body,
        is_read=False,
    )
    conversation.last_message_preview = body[:PREVIEW_LENGTH]
    conversation.last_message_at = now
    return message


async def list_conversations(
    session: AsyncSession,
    user: UserContext,
) -> list[ConversationSummary]:
    """The caller's conversations, most recent activity first."""
    result = await session.execute(
        select(Conversation)
        .where(
            or_(
                Conversation.participant_a == user.user_id,
                Conversation.participant_b == user.user_id,
            )
        )
        .order_by(Conversation.last_message_at.desc().nulls_last(), Conversation.id.desc())
    )
    conversations = list(result.scalars().all())
    if not conversations:
        return []

    unread_rows = await session.execute(
        select(Message.conversation_id, func.count(Message.id))
        .where(
            Message.conversation_id.in_([c.id for c in conversations]),
            Message.sender_user_id != user.user_id,
            Message.is_read.is_(False),
        )
        .group_by(Message.conversation_id)
    )
    unread = dict(unread_rows.all())

    return [
        ConversationSummary(
            id=c.id,
            other_user_id=_other_participant(c, user.user_id),
            listing_id=c.listing_id,
            last_message=c.last_message_preview,
            last_message_at=c.last_message_at,
            unread_count=unread.get(c.id, 0),
        )
        for c in conversations
    ]


async def start_conversation(
    session: AsyncSession,
    user: UserContext,
    data: ConversationCreate,
    *,
    now: datetime | None = None,
) -> tuple[Conversation, Message]:
    """Post a first message to another member, reusing an existing thread.

    Raises SelfConversationError when the recipient is the caller.
    """
    if data.recipient_user_id == user.user_id:
        raise SelfConversationError("You cannot start a conversation with yourself")
    if now is None:
        now = datetime.now(UTC)

    first, second = participant_pair(user.user_id, data.recipient_user_id)
    existing = await session.execute(
        select(Conversation).where(
            Conversation.participant_a == first,
            Conversation.participant_b == second,
        )
    )
    conversation = existing.scalar_one_or_none()
    if conversation is None:
        conversation = Conversation(
            participant_a=first,
            participant_b=second,
            listing_id=data.listing_id,
        )
        session.add(conversation)
        await session.flush()
        logger.info("Conversation #%s opened by %s", conversation.id, user.user_id)

    message = _append(conversation, user.user_id, data.body, now)
    session.add(message)
    await session.commit()
    await session.refresh(message)
    return conversation, message


async def get_messages(
    session: AsyncSession,
    user: UserContext,
    conversation_id: int,
) -> list[Message] | None:
    """Messages in a conversation, oldest first.

    Returns None if the caller is not a participant.
    """
    conversation = await _get_for_participant(session, user, conversation_id)
    if conversation is None:
        return None

    result = await session.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at, Message.id)
    )
    messages = list(result.scalars().all())

    await session.execute(
        update(Message)
        .where(
            Message.conversation_id == conversation_id,
            Message.sender_user_id != user.user_id,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
    )
    await session.commit()
    return messages


async def send_message(
    session: AsyncSession,
    user: UserContext,
    conversation_id: int,
    body: str,
    *,
    now: datetime | None = None,
) -> Message | None:
    """Append a message. Returns None if the caller is not a participant."""
    conversation = await _get_for_participant(session, user, conversation_id)
    if conversation is None:
        return None
    if now is None:
        now = datetime.now(UTC)

    message = _append(conversation, user.user_id, body, now)
    session.add(message)
    await session.commit()
    await session.refresh(message)
    return message
