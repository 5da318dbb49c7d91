"""Conversation Rules — direct-conversation de-duplication and message ordering.

Invariants:
    - A direct conversation is identified by shared membership in both users'
      index lists, never by a derived key
    - pick_direct_conversation is deterministic: among several candidates it picks
      the earliest created_at, ties and missing timestamps broken by lowest id,
      so every caller converges on the same conversation
    - Messages are ordered by timestamp ascending (ties by id); the store gives no order
    - Message status only moves forward: sent -> delivered -> read
"""

from datetime import datetime, timezone

from commonroom.core.domain_types import MessageStatus
from commonroom.core.errors import RequestValidationFailed
from commonroom.core.records import Conversation, Message, copy_record

MAX_MESSAGE_LENGTH: int = 5000

_NO_TIMESTAMP = datetime.max.replace(tzinfo=timezone.utc)
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def shared_conversation_ids(ids_a: list[str], ids_b: list[str]) -> list[str]:
    """Intersection of two index lists, in the order of the first."""
    members_b = set(ids_b)
    return [cid for cid in ids_a if cid in members_b]


def pick_direct_conversation(
    candidates: list[Conversation], user_a: str, user_b: str,
) -> Conversation | None:
    """Choose the canonical direct conversation between user_a and user_b.

    Candidates that are not exactly the two-party pair (group threads, or
    records whose participants drifted) are ignored.
    """
    pair = {user_a, user_b}
    direct = [
        c for c in candidates
        if len(c.participants) == 2 and set(c.participants) == pair
    ]
    if not direct:
        return None
    return min(direct, key=lambda c: (c.created_at or _NO_TIMESTAMP, c.id))


def validate_message_content(content: str) -> str:
    stripped = content.strip()
    if not stripped:
        raise RequestValidationFailed("Message content cannot be empty", "content")
    if len(stripped) > MAX_MESSAGE_LENGTH:
        raise RequestValidationFailed(
            f"Message exceeds {MAX_MESSAGE_LENGTH} characters", "content",
        )
    return stripped


def other_participants(conversation: Conversation, user_id: str) -> list[str]:
    return [p for p in conversation.participants if p != user_id]


def order_messages(messages: list[Message]) -> list[Message]:
    return sorted(messages, key=lambda m: (m.timestamp or _EPOCH, m.id))


def order_conversations(conversations: list[Conversation]) -> list[Conversation]:
    """Most recent activity first."""
    return sorted(
        conversations,
        key=lambda c: (c.last_activity or _EPOCH, c.id),
        reverse=True,
    )


def advance_status(message: Message, status: MessageStatus) -> Message | None:
    """New message with the advanced status, or None when it would not move forward."""
    if status.rank <= message.status.rank:
        return None
    return copy_record(message, status=status)
