"""Record Store Adapter — typed load/store/delete/scan over the raw KeyValueStore.

Invariants:
    - load_*() returns a repaired, structurally complete record, or None when the
      key is absent; require_*() turns absence into ResourceNotFoundError
    - Repair (from_raw) runs on load only; store_*() writes to_raw() verbatim,
      whole-value, no merge
    - scan_*() returns records in unspecified order; callers sort explicitly
    - Scanned values without an id cannot be addressed and are skipped
    - Every method touches a single key (or one prefix): nothing here spans two keys
    - append_to_conversation_index() re-reads before every write and confirms the
      entry afterwards; it never writes back a list read earlier by a caller
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from commonroom.core import keys
from commonroom.core.errors import ResourceNotFoundError
from commonroom.core.records import (
    Assignment,
    Conversation,
    Message,
    Notification,
    Recipe,
    Submission,
    UserProfile,
)
from commonroom.core.repository_protocols import KeyValueStore

logger = logging.getLogger(__name__)

R = TypeVar("R")

_INDEX_APPEND_ATTEMPTS = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class RecordStore:
    """Typed wrapper used by every service."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    # ─── generic helpers ─────────────────────────────────────────

    async def _load(
        self, key: str, from_raw: Callable[[Any, str], R], fallback_id: str,
    ) -> R | None:
        raw = await self.kv.get(key)
        if raw is None:
            return None
        return from_raw(raw, fallback_id)

    async def _require(
        self, key: str, from_raw: Callable[[Any, str], R], fallback_id: str, kind: str,
    ) -> R:
        record = await self._load(key, from_raw, fallback_id)
        if record is None:
            raise ResourceNotFoundError(kind, fallback_id)
        return record

    async def _scan(self, prefix: str, from_raw: Callable[[Any, str], R]) -> list[R]:
        records = [from_raw(raw, "") for raw in await self.kv.scan_by_prefix(prefix)]
        kept = [r for r in records if getattr(r, "id", "")]
        if len(kept) != len(records):
            logger.warning(f"Skipped {len(records) - len(kept)} id-less records under '{prefix}'")
        return kept

    # ─── users ───────────────────────────────────────────────────

    async def load_user(self, user_id: str) -> UserProfile | None:
        return await self._load(keys.user_key(user_id), UserProfile.from_raw, user_id)

    async def require_user(self, user_id: str) -> UserProfile:
        return await self._require(
            keys.user_key(user_id), UserProfile.from_raw, user_id, "User",
        )

    async def store_user(self, profile: UserProfile) -> None:
        await self.kv.set(keys.user_key(profile.id), profile.to_raw())

    # ─── conversations & messages ────────────────────────────────

    async def load_conversation_index(self, user_id: str) -> list[str]:
        """The user's conversation id list; anything malformed loads as []."""
        raw = await self.kv.get(keys.user_conversations_key(user_id))
        if not isinstance(raw, list):
            return []
        ids: list[str] = []
        for cid in raw:
            if isinstance(cid, str) and cid and cid not in ids:
                ids.append(cid)
        return ids

    async def store_conversation_index(self, user_id: str, ids: list[str]) -> None:
        await self.kv.set(keys.user_conversations_key(user_id), list(ids))

    async def append_to_conversation_index(
        self, user_id: str, conversation_id: str,
    ) -> None:
        """Append conversation_id to a fresh read of the index, then confirm it stuck.

        A concurrent append to the same index can overwrite ours between the
        read and the write; the confirming read puts it back.
        """
        for _ in range(_INDEX_APPEND_ATTEMPTS):
            ids = await self.load_conversation_index(user_id)
            if conversation_id in ids:
                return
            await self.store_conversation_index(user_id, ids + [conversation_id])
        if conversation_id not in await self.load_conversation_index(user_id):
            logger.warning(
                f"Conversation {conversation_id} missing from index after retries",
                extra={"user_id": user_id, "conversation_id": conversation_id,
                       "operation": "append_to_conversation_index"},
            )

    async def load_conversation(self, conversation_id: str) -> Conversation | None:
        return await self._load(
            keys.conversation_key(conversation_id), Conversation.from_raw, conversation_id,
        )

    async def require_conversation(self, conversation_id: str) -> Conversation:
        return await self._require(
            keys.conversation_key(conversation_id), Conversation.from_raw,
            conversation_id, "Conversation",
        )

    async def store_conversation(self, conversation: Conversation) -> None:
        await self.kv.set(keys.conversation_key(conversation.id), conversation.to_raw())

    async def store_message(self, message: Message) -> None:
        await self.kv.set(
            keys.message_key(message.conversation_id, message.id), message.to_raw(),
        )

    async def scan_messages(self, conversation_id: str) -> list[Message]:
        messages = await self._scan(keys.message_prefix(conversation_id), Message.from_raw)
        for m in messages:
            m.conversation_id = m.conversation_id or conversation_id
        return messages

    # ─── assignments & submissions ───────────────────────────────

    async def load_assignment(self, assignment_id: str) -> Assignment | None:
        return await self._load(
            keys.assignment_key(assignment_id), Assignment.from_raw, assignment_id,
        )

    async def require_assignment(self, assignment_id: str) -> Assignment:
        return await self._require(
            keys.assignment_key(assignment_id), Assignment.from_raw,
            assignment_id, "Assignment",
        )

    async def store_assignment(self, assignment: Assignment) -> None:
        await self.kv.set(keys.assignment_key(assignment.id), assignment.to_raw())

    async def delete_assignment(self, assignment_id: str) -> None:
        await self.kv.delete(keys.assignment_key(assignment_id))

    async def scan_assignments(self) -> list[Assignment]:
        return await self._scan(keys.tag_prefix(keys.ASSIGNMENT), Assignment.from_raw)

    async def require_submission(self, submission_id: str) -> Submission:
        return await self._require(
            keys.submission_key(submission_id), Submission.from_raw,
            submission_id, "Submission",
        )

    async def store_submission(self, submission: Submission) -> None:
        await self.kv.set(keys.submission_key(submission.id), submission.to_raw())

    async def delete_submission(self, submission_id: str) -> None:
        await self.kv.delete(keys.submission_key(submission_id))

    async def scan_submissions(self) -> list[Submission]:
        return await self._scan(keys.tag_prefix(keys.SUBMISSION), Submission.from_raw)

    # ─── recipes ─────────────────────────────────────────────────

    async def require_recipe(self, recipe_id: str) -> Recipe:
        return await self._require(
            keys.recipe_key(recipe_id), Recipe.from_raw, recipe_id, "Recipe",
        )

    async def store_recipe(self, recipe: Recipe) -> None:
        await self.kv.set(keys.recipe_key(recipe.id), recipe.to_raw())

    async def scan_recipes(self) -> list[Recipe]:
        return await self._scan(keys.tag_prefix(keys.RECIPE), Recipe.from_raw)

    # ─── notifications ───────────────────────────────────────────

    async def require_notification(self, user_id: str, notification_id: str) -> Notification:
        notification = await self._require(
            keys.notification_key(user_id, notification_id), Notification.from_raw,
            notification_id, "Notification",
        )
        notification.user_id = notification.user_id or user_id
        return notification

    async def store_notification(self, notification: Notification) -> None:
        await self.kv.set(
            keys.notification_key(notification.user_id, notification.id),
            notification.to_raw(),
        )

    async def delete_notification(self, user_id: str, notification_id: str) -> None:
        await self.kv.delete(keys.notification_key(user_id, notification_id))

    async def scan_notifications(self, user_id: str) -> list[Notification]:
        notifications = await self._scan(
            keys.notification_prefix(user_id), Notification.from_raw,
        )
        for n in notifications:
            n.user_id = n.user_id or user_id
        return notifications
