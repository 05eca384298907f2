# This project was developed with assistance from AI tools.
"""Conversation and message schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_body(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Message text is required")
    return value


class MessageCreate(BaseModel):
    body: str = Field(max_length=5000)

    @field_validator("body")
    @classmethod
    def body_not_blank(cls, value: str) -> str:
        return _strip_body(value)


class ConversationCreate(BaseModel):
    """Open (or reuse) the thread with another member and post a first message."""

    recipient_user_id: str = Field(min_length=1, max_length=255)
    listing_id: int | None = None
    body: str = Field(max_length=5000)

    @field_validator("body")
    @classmethod
    def body_not_blank(cls, value: str) -> str:
        return _strip_body(value)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_user_id: str
    body: str
    is_read: bool
    created_at: datetime


class MessageListResponse(BaseModel):
    data: list[MessageResponse]


class ConversationSummary(BaseModel):
    """One row of the caller's inbox."""

    id: int
    other_user_id: str
    listing_id: int | None = None
    last_message: str | None = None
    last_message_at: datetime | None = None
    unread_count: int = 0


class ConversationListResponse(BaseModel):
    data: list[ConversationSummary]


class ConversationStarted(BaseModel):
    conversation_id: int
    message: MessageResponse
