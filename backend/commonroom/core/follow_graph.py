"""Follow Graph Rules — pure edge toggling on a pair of profiles.

Invariants:
    - apply_follow / apply_unfollow are PURE: they return new profiles, inputs untouched
    - "add if absent" / "remove if present": applying twice equals applying once
    - Each side is updated independently, so a half-applied pair from an earlier
      interrupted write is completed, never duplicated
"""

from commonroom.core.errors import RequestValidationFailed
from commonroom.core.records import UserProfile, copy_record


def check_distinct(actor_id: str, target_id: str) -> None:
    if actor_id == target_id:
        raise RequestValidationFailed("Users cannot follow themselves", "target_id")


def apply_follow(
    actor: UserProfile, target: UserProfile,
) -> tuple[UserProfile, UserProfile]:
    """Add target to actor.following and actor to target.followers."""
    check_distinct(actor.id, target.id)
    new_actor = copy_record(actor)
    new_target = copy_record(target)
    if target.id not in new_actor.following:
        new_actor.following.append(target.id)
    if actor.id not in new_target.followers:
        new_target.followers.append(actor.id)
    return new_actor, new_target


def apply_unfollow(
    actor: UserProfile, target: UserProfile,
) -> tuple[UserProfile, UserProfile]:
    """Remove the actor -> target edge from both sides."""
    check_distinct(actor.id, target.id)
    new_actor = copy_record(
        actor, following=[uid for uid in actor.following if uid != target.id],
    )
    new_target = copy_record(
        target, followers=[uid for uid in target.followers if uid != actor.id],
    )
    return new_actor, new_target


def edge_complete(actor: UserProfile, target: UserProfile) -> bool:
    """Both halves of actor -> target are already stored."""
    return target.id in actor.following and actor.id in target.followers
