"""Follow Graph Maintainer — keeps following/followers symmetric across two records.

Invariants:
    - follow/unfollow are idempotent and safe to retry: each side is "add if
      absent" / "remove if present", recomputed from a fresh load
    - The actor's record is written before the target's; a failure between the
      two writes leaves a half edge that the next call of either kind repairs
    - The follow notification fires only when the edge was not already complete

Design Decisions:
    - No locking or compare-and-swap: a concurrent follow/unfollow on the same
      pair ends in one of the two valid states (ADR: tolerate, don't coordinate)
"""

import logging

from commonroom.core.authorize import Caller, authorize
from commonroom.core.domain_types import Action, NotificationType
from commonroom.core.follow_graph import (
    apply_follow,
    apply_unfollow,
    check_distinct,
    edge_complete,
)
from commonroom.core.records import UserProfile
from commonroom.services.notification_dispatcher import NotificationDispatcher
from commonroom.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class FollowGraphService:
    """Follow / unfollow between two user profiles."""

    def __init__(self, records: RecordStore, notifier: NotificationDispatcher):
        self.records = records
        self.notifier = notifier

    async def follow(self, caller: Caller, target_id: str) -> UserProfile:
        """Add the caller -> target edge. Returns the caller's updated profile."""
        check_distinct(caller.user_id, target_id)
        actor, target = await self._load_pair(caller, target_id)
        complete = edge_complete(actor, target)

        new_actor, new_target = apply_follow(actor, target)
        await self.records.store_user(new_actor)
        await self.records.store_user(new_target)
        logger.info(
            f"{caller.user_id} follows {target_id}",
            extra={"user_id": caller.user_id, "target_id": target_id, "operation": "follow"},
        )

        if not complete:
            await self.notifier.notify(
                target_id, NotificationType.FOLLOW, "New follower",
                f"{actor.name or 'Someone'} started following you",
                related_id=actor.id,
            )
        return new_actor

    async def unfollow(self, caller: Caller, target_id: str) -> UserProfile:
        """Remove the caller -> target edge. Returns the caller's updated profile."""
        check_distinct(caller.user_id, target_id)
        actor, target = await self._load_pair(caller, target_id)

        new_actor, new_target = apply_unfollow(actor, target)
        await self.records.store_user(new_actor)
        await self.records.store_user(new_target)
        logger.info(
            f"{caller.user_id} unfollowed {target_id}",
            extra={"user_id": caller.user_id, "target_id": target_id, "operation": "unfollow"},
        )
        return new_actor

    async def _load_pair(
        self, caller: Caller, target_id: str,
    ) -> tuple[UserProfile, UserProfile]:
        target = await self.records.require_user(target_id)
        authorize(caller, Action.FOLLOW, target)
        actor = await self.records.require_user(caller.user_id)
        return actor, target
