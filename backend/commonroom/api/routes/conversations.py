"""Conversation Routes — direct conversations and messages.

Invariants:
    - POST /conversations is find-or-create: the same pair always gets the same id
    - Only participants reach a conversation's messages (403 otherwise)
"""

import logging

from fastapi import APIRouter, Depends, status

from commonroom.api.dependencies import get_caller, get_conversation_registry
from commonroom.core.authorize import Caller
from commonroom.schemas.conversations import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from commonroom.services.conversation_registry import ConversationRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.post("", response_model=ConversationResponse)
async def get_or_create_conversation(
    body: ConversationCreate,
    caller: Caller = Depends(get_caller),
    registry: ConversationRegistry = Depends(get_conversation_registry),
):
    conversation = await registry.get_or_create_direct_conversation(
        caller, body.participant_id,
    )
    return ConversationResponse.model_validate(conversation)


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    caller: Caller = Depends(get_caller),
    registry: ConversationRegistry = Depends(get_conversation_registry),
):
    """Caller's conversations, most recent activity first."""
    return [
        ConversationResponse.model_validate(c)
        for c in await registry.list_conversations(caller)
    ]


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: str,
    caller: Caller = Depends(get_caller),
    registry: ConversationRegistry = Depends(get_conversation_registry),
):
    return [
        MessageResponse.model_validate(m)
        for m in await registry.list_messages(caller, conversation_id)
    ]


@router.post(
    "/{conversation_id}/messages", response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    body: MessageCreate,
    caller: Caller = Depends(get_caller),
    registry: ConversationRegistry = Depends(get_conversation_registry),
):
    message = await registry.append_message(caller, conversation_id, body.content)
    return MessageResponse.model_validate(message)


@router.post("/{conversation_id}/read")
async def mark_conversation_read(
    conversation_id: str,
    caller: Caller = Depends(get_caller),
    registry: ConversationRegistry = Depends(get_conversation_registry),
):
    updated = await registry.mark_conversation_read(caller, conversation_id)
    return {"updated": updated}
