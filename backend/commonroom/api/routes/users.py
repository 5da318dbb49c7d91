"""User Routes — profile registration, follow graph and account administration.

Invariants:
    - /me routes act on the caller; /{user_id} routes take the target from the path
    - Other users' profiles are returned in public form (no e-mail, no status)
"""

import logging

from fastapi import APIRouter, Depends, status

from commonroom.api.dependencies import (
    get_caller,
    get_follow_service,
    get_identity,
    get_profile_service,
)
from commonroom.core.authorize import Caller
from commonroom.core.repository_protocols import ResolvedIdentity
from commonroom.schemas.users import (
    ProfileRegister,
    ProfileResponse,
    PublicProfile,
    RoleUpdate,
    StatusUpdate,
)
from commonroom.services.follow_graph import FollowGraphService
from commonroom.services.user_profiles import UserProfileService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("/me", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register_profile(
    body: ProfileRegister,
    identity: ResolvedIdentity = Depends(get_identity),
    caller: Caller = Depends(get_caller),
    profiles: UserProfileService = Depends(get_profile_service),
):
    """Create the caller's profile on first sign-in; returns the existing one otherwise."""
    profile = await profiles.register_profile(caller, identity.email, body.name, body.role)
    return ProfileResponse.model_validate(profile)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    caller: Caller = Depends(get_caller),
    profiles: UserProfileService = Depends(get_profile_service),
):
    profile = await profiles.touch_login(caller)
    return ProfileResponse.model_validate(profile)


@router.get("/{user_id}", response_model=PublicProfile)
async def get_profile(
    user_id: str,
    caller: Caller = Depends(get_caller),
    profiles: UserProfileService = Depends(get_profile_service),
):
    return PublicProfile.model_validate(await profiles.get_profile(user_id))


@router.get("/{user_id}/following", response_model=list[PublicProfile])
async def list_following(
    user_id: str,
    caller: Caller = Depends(get_caller),
    profiles: UserProfileService = Depends(get_profile_service),
):
    return [PublicProfile.model_validate(p) for p in await profiles.list_following(user_id)]


@router.get("/{user_id}/followers", response_model=list[PublicProfile])
async def list_followers(
    user_id: str,
    caller: Caller = Depends(get_caller),
    profiles: UserProfileService = Depends(get_profile_service),
):
    return [PublicProfile.model_validate(p) for p in await profiles.list_followers(user_id)]


@router.post("/{user_id}/follow", response_model=ProfileResponse)
async def follow(
    user_id: str,
    caller: Caller = Depends(get_caller),
    graph: FollowGraphService = Depends(get_follow_service),
):
    """Follow user_id. Repeating the call changes nothing."""
    return ProfileResponse.model_validate(await graph.follow(caller, user_id))


@router.delete("/{user_id}/follow", response_model=ProfileResponse)
async def unfollow(
    user_id: str,
    caller: Caller = Depends(get_caller),
    graph: FollowGraphService = Depends(get_follow_service),
):
    return ProfileResponse.model_validate(await graph.unfollow(caller, user_id))


@router.put("/{user_id}/status", response_model=ProfileResponse)
async def set_user_status(
    user_id: str,
    body: StatusUpdate,
    caller: Caller = Depends(get_caller),
    profiles: UserProfileService = Depends(get_profile_service),
):
    profile = await profiles.set_user_status(caller, user_id, body.status)
    return ProfileResponse.model_validate(profile)


@router.put("/{user_id}/role", response_model=ProfileResponse)
async def set_user_role(
    user_id: str,
    body: RoleUpdate,
    caller: Caller = Depends(get_caller),
    profiles: UserProfileService = Depends(get_profile_service),
):
    profile = await profiles.set_user_role(caller, user_id, body.role)
    return ProfileResponse.model_validate(profile)
