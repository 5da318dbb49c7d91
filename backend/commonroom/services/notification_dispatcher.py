"""Notification Dispatcher — per-user notification records, fire-and-forget.

Invariants:
    - notify() runs AFTER the primary effect and never raises: any failure is
      logged at WARNING and discarded, so the caller's operation still succeeds
    - Notifications live under notification:{user_id}:{id}; a user only ever
      addresses keys under their own prefix
    - list_notifications() sorts by created_at descending (scan order is unspecified)

Design Decisions:
    - Other services receive the dispatcher as a collaborator instead of writing
      notification keys themselves (ADR: one owner per key family)
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from commonroom.core.authorize import Caller
from commonroom.core.domain_types import NotificationType
from commonroom.core.records import Notification, copy_record
from commonroom.services.record_store import RecordStore, new_id, utc_now

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first(notifications: list[Notification]) -> list[Notification]:
    return sorted(
        notifications,
        key=lambda n: (n.created_at or _EPOCH, n.id),
        reverse=True,
    )


class NotificationDispatcher:
    """Writes and manages notification records."""

    def __init__(
        self,
        records: RecordStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ):
        self.records = records
        self.clock = clock
        self.id_factory = id_factory

    async def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        related_id: str | None = None,
    ) -> Notification | None:
        """Store one notification. Returns None when the write failed."""
        notification = Notification(
            id=self.id_factory(),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            created_at=self.clock(),
        )
        try:
            await self.records.store_notification(notification)
        except Exception:
            logger.warning(
                f"Dropped {type.value} notification for {user_id}",
                extra={"user_id": user_id, "operation": "notify"},
                exc_info=True,
            )
            return None
        return notification

    async def list_notifications(self, caller: Caller) -> list[Notification]:
        return _newest_first(await self.records.scan_notifications(caller.user_id))

    async def unread_count(self, caller: Caller) -> int:
        notifications = await self.records.scan_notifications(caller.user_id)
        return sum(1 for n in notifications if not n.read)

    async def mark_read(self, caller: Caller, notification_id: str) -> Notification:
        notification = await self.records.require_notification(
            caller.user_id, notification_id,
        )
        if notification.read:
            return notification
        updated = copy_record(notification, read=True, read_at=self.clock())
        await self.records.store_notification(updated)
        return updated

    async def mark_all_read(self, caller: Caller) -> int:
        """Mark every unread notification read. Each record is its own write."""
        now = self.clock()
        unread = [
            n for n in await self.records.scan_notifications(caller.user_id)
            if not n.read
        ]
        for notification in unread:
            await self.records.store_notification(
                copy_record(notification, read=True, read_at=now),
            )
        logger.info(
            f"Marked {len(unread)} notifications read",
            extra={"user_id": caller.user_id, "operation": "mark_all_read"},
        )
        return len(unread)

    async def delete_notification(self, caller: Caller, notification_id: str) -> None:
        await self.records.require_notification(caller.user_id, notification_id)
        await self.records.delete_notification(caller.user_id, notification_id)
