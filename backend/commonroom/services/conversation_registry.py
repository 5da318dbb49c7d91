"""Conversation Registry — find-or-create direct conversations, append messages.

Invariants:
    - A direct conversation is found by intersecting both users' index lists;
      when a race produced several, every caller converges on the same one
      (earliest created_at, then lowest id)
    - Creation writes the conversation first, then both index lists: a failure in
      between leaves an unindexed record, never an index entry pointing at nothing
    - append_message() stores the Message before touching the summary; the
      summary is a fresh read-modify-write, last writer wins
    - Only participants may read or write a conversation

Design Decisions:
    - Dangling index entries are skipped on read instead of being cleaned up;
      nothing in this layer runs background reconciliation
"""

import logging
from datetime import datetime
from typing import Callable

from commonroom.core.authorize import Caller, authorize
from commonroom.core.conversation_rules import (
    advance_status,
    order_conversations,
    order_messages,
    other_participants,
    pick_direct_conversation,
    shared_conversation_ids,
    validate_message_content,
)
from commonroom.core.domain_types import Action, MessageStatus, NotificationType
from commonroom.core.errors import RequestValidationFailed
from commonroom.core.records import Conversation, Message, copy_record
from commonroom.services.notification_dispatcher import NotificationDispatcher
from commonroom.services.record_store import RecordStore, new_id, utc_now

logger = logging.getLogger(__name__)

_PREVIEW_LENGTH = 100


class ConversationRegistry:
    """Direct conversations and their messages."""

    def __init__(
        self,
        records: RecordStore,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ):
        self.records = records
        self.notifier = notifier
        self.clock = clock
        self.id_factory = id_factory

    async def get_or_create_direct_conversation(
        self, caller: Caller, other_id: str,
    ) -> Conversation:
        if other_id == caller.user_id:
            raise RequestValidationFailed(
                "Cannot start a conversation with yourself", "participant_id",
            )
        other = await self.records.require_user(other_id)
        authorize(caller, Action.START_CONVERSATION, other)

        ids_a = await self.records.load_conversation_index(caller.user_id)
        ids_b = await self.records.load_conversation_index(other_id)
        candidates = []
        for cid in shared_conversation_ids(ids_a, ids_b):
            conversation = await self.records.load_conversation(cid)
            if conversation is not None:
                candidates.append(conversation)

        existing = pick_direct_conversation(candidates, caller.user_id, other_id)
        if existing is not None:
            return existing
        return await self._create_direct_conversation(caller.user_id, other_id)

    async def _create_direct_conversation(self, user_a: str, user_b: str) -> Conversation:
        """Conversation record, then user_a's index, then user_b's index.

        Each index is re-read right before its append, so conversations created
        concurrently with other partners stay listed.
        """
        conversation = Conversation(
            id=self.id_factory(),
            participants=[user_a, user_b],
            created_at=self.clock(),
        )
        await self.records.store_conversation(conversation)
        await self.records.append_to_conversation_index(user_a, conversation.id)
        await self.records.append_to_conversation_index(user_b, conversation.id)
        logger.info(
            f"Created direct conversation between {user_a} and {user_b}",
            extra={"user_id": user_a, "target_id": user_b,
                   "conversation_id": conversation.id,
                   "operation": "create_conversation"},
        )
        return conversation

    async def append_message(
        self, caller: Caller, conversation_id: str, content: str,
    ) -> Message:
        conversation = await self.records.require_conversation(conversation_id)
        authorize(caller, Action.SEND_MESSAGE, conversation)
        message = Message(
            id=self.id_factory(),
            conversation_id=conversation_id,
            sender_id=caller.user_id,
            content=validate_message_content(content),
            timestamp=self.clock(),
            status=MessageStatus.SENT,
        )
        await self._store_message_and_summary(message)

        preview = message.content[:_PREVIEW_LENGTH]
        for recipient in other_participants(conversation, caller.user_id):
            await self.notifier.notify(
                recipient, NotificationType.MESSAGE, "New message", preview,
                related_id=conversation_id,
            )
        return message

    async def _store_message_and_summary(self, message: Message) -> None:
        """Message record first, then the conversation's last_message."""
        await self.records.store_message(message)
        fresh = await self.records.require_conversation(message.conversation_id)
        await self.records.store_conversation(
            copy_record(fresh, last_message=message.summary()),
        )
        logger.info(
            "Message appended",
            extra={"user_id": message.sender_id,
                   "conversation_id": message.conversation_id,
                   "operation": "append_message"},
        )

    async def list_conversations(self, caller: Caller) -> list[Conversation]:
        conversations = []
        for cid in await self.records.load_conversation_index(caller.user_id):
            conversation = await self.records.load_conversation(cid)
            if conversation is not None and caller.user_id in conversation.participants:
                conversations.append(conversation)
        return order_conversations(conversations)

    async def list_messages(self, caller: Caller, conversation_id: str) -> list[Message]:
        conversation = await self.records.require_conversation(conversation_id)
        authorize(caller, Action.READ_CONVERSATION, conversation)
        return order_messages(await self.records.scan_messages(conversation_id))

    async def mark_conversation_read(self, caller: Caller, conversation_id: str) -> int:
        """Advance every message from the other side to 'read'. Returns how many moved."""
        conversation = await self.records.require_conversation(conversation_id)
        authorize(caller, Action.READ_CONVERSATION, conversation)
        updated = 0
        for message in await self.records.scan_messages(conversation_id):
            if message.sender_id == caller.user_id:
                continue
            advanced = advance_status(message, MessageStatus.READ)
            if advanced is not None:
                await self.records.store_message(advanced)
                updated += 1
        if updated:
            logger.info(
                f"Marked {updated} messages read",
                extra={"user_id": caller.user_id, "conversation_id": conversation_id,
                       "operation": "mark_conversation_read"},
            )
        return updated
