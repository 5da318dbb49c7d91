"""User Profiles — registration, caller resolution and account administration.

Invariants:
    - user:{id} is keyed by the identity provider's subject, never by e-mail
    - register_profile() creates a profile only when absent; a repeat call returns
      the stored profile unchanged (role and status are not re-applied)
    - A caller without a stored profile acts as an active student
    - Status and role changes go through authorize(): banned targets are mutated
      only by admins, instructors may only change students
    - touch_login() never writes a suspended or banned profile
"""

import logging
from datetime import datetime
from typing import Callable

from commonroom.core.authorize import Caller, authorize
from commonroom.core.domain_types import Action, Role, UserStatus
from commonroom.core.records import UserProfile, copy_record
from commonroom.core.repository_protocols import ResolvedIdentity
from commonroom.services.record_store import RecordStore, utc_now

logger = logging.getLogger(__name__)


class UserProfileService:
    """Profile reads and the single-key profile writes."""

    def __init__(self, records: RecordStore, clock: Callable[[], datetime] = utc_now):
        self.records = records
        self.clock = clock

    async def resolve_caller(self, identity: ResolvedIdentity) -> Caller:
        """Role and status come from the stored profile, not from the token."""
        profile = await self.records.load_user(identity.user_id)
        if profile is None:
            return Caller(user_id=identity.user_id, email_verified=identity.email_verified)
        return Caller.from_profile(profile, email_verified=identity.email_verified)

    async def register_profile(
        self, caller: Caller, email: str, name: str, role: Role = Role.STUDENT,
    ) -> UserProfile:
        existing = await self.records.load_user(caller.user_id)
        if existing is not None:
            return existing
        authorize(caller, Action.REGISTER_PROFILE, role)
        now = self.clock()
        profile = UserProfile(
            id=caller.user_id,
            email=email,
            name=name.strip(),
            role=role,
            status=UserStatus.ACTIVE,
            created_at=now,
            last_login=now,
        )
        await self.records.store_user(profile)
        logger.info(
            f"Registered {role.value} profile",
            extra={"user_id": caller.user_id, "operation": "register_profile"},
        )
        return profile

    async def get_profile(self, user_id: str) -> UserProfile:
        return await self.records.require_user(user_id)

    async def touch_login(self, caller: Caller) -> UserProfile:
        """The caller's own profile with last_login moved to now.

        Suspended and banned profiles are returned as stored: only an admin
        writes to them.
        """
        profile = await self.records.require_user(caller.user_id)
        if profile.status != UserStatus.ACTIVE or caller.status != UserStatus.ACTIVE:
            return profile
        updated = copy_record(profile, last_login=self.clock())
        await self.records.store_user(updated)
        return updated

    async def list_following(self, user_id: str) -> list[UserProfile]:
        profile = await self.records.require_user(user_id)
        return await self._resolve(profile.following)

    async def list_followers(self, user_id: str) -> list[UserProfile]:
        profile = await self.records.require_user(user_id)
        return await self._resolve(profile.followers)

    async def _resolve(self, user_ids: list[str]) -> list[UserProfile]:
        """Load each id; ids whose profile is gone are skipped."""
        profiles = []
        for uid in user_ids:
            profile = await self.records.load_user(uid)
            if profile is not None:
                profiles.append(profile)
        return profiles

    async def set_user_status(
        self, caller: Caller, target_id: str, status: UserStatus,
    ) -> UserProfile:
        target = await self.records.require_user(target_id)
        authorize(caller, Action.SET_USER_STATUS, target)
        updated = copy_record(target, status=status)
        await self.records.store_user(updated)
        logger.info(
            f"Status of {target_id} set to {status.value}",
            extra={"user_id": caller.user_id, "target_id": target_id,
                   "operation": "set_user_status"},
        )
        return updated

    async def set_user_role(self, caller: Caller, target_id: str, role: Role) -> UserProfile:
        target = await self.records.require_user(target_id)
        authorize(caller, Action.SET_USER_ROLE, target)
        updated = copy_record(target, role=role)
        await self.records.store_user(updated)
        logger.info(
            f"Role of {target_id} set to {role.value}",
            extra={"user_id": caller.user_id, "target_id": target_id,
                   "operation": "set_user_role"},
        )
        return updated
