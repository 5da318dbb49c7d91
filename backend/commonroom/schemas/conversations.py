"""Conversation Schemas — direct conversations and messages.

Invariants:
    - MessageCreate.content: 1-5000 chars after stripping
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from commonroom.core.conversation_rules import MAX_MESSAGE_LENGTH
from commonroom.core.domain_types import MessageStatus


class ConversationCreate(BaseModel):
    participant_id: str = Field(min_length=1, max_length=128)


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class MessageSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    content: str
    sender_id: str
    timestamp: datetime | None = None


class ConversationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    participants: list[str]
    last_message: MessageSummaryResponse | None = None
    created_at: datetime | None = None


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    sender_id: str
    content: str
    timestamp: datetime | None = None
    status: MessageStatus
