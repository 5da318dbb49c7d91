"""API Dependencies — caller resolution and per-request service wiring.

Invariants:
    - get_caller() is the only place a bearer token is read; a missing, malformed
      or rejected token is UnauthorizedError before any service runs
    - Role and status of the caller come from the stored profile (never the token)
    - Services are built per request; nothing here caches records

Design Decisions:
    - Hosted clients live on app.state (created in lifespan) so tests replace
      them through dependency_overrides without touching the network
"""

from fastapi import Depends, Header, Request

from commonroom.config import Settings, get_settings
from commonroom.core.authorize import Caller
from commonroom.core.errors import StoreUnavailableError, UnauthorizedError
from commonroom.core.repository_protocols import (
    BlobStorage,
    IdentityProvider,
    KeyValueStore,
    ResolvedIdentity,
)
from commonroom.infrastructure import database
from commonroom.infrastructure.kv_store import SqlKeyValueStore
from commonroom.services.assignment_lifecycle import AssignmentLifecycleManager
from commonroom.services.conversation_registry import ConversationRegistry
from commonroom.services.follow_graph import FollowGraphService
from commonroom.services.notification_dispatcher import NotificationDispatcher
from commonroom.services.rating_aggregator import RatingAggregator
from commonroom.services.record_store import RecordStore
from commonroom.services.submission_uploads import SubmissionUploadGate
from commonroom.services.user_profiles import UserProfileService


def get_kv_store() -> KeyValueStore:
    if database.db_manager is None:
        raise StoreUnavailableError("Store not initialized", "get_kv_store")
    return SqlKeyValueStore(database.db_manager)


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_blob_storage(request: Request) -> BlobStorage:
    return request.app.state.blob_storage


def get_records(kv: KeyValueStore = Depends(get_kv_store)) -> RecordStore:
    return RecordStore(kv)


def _bearer_token(authorization: str | None) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError()
    return token.strip()


async def get_identity(
    authorization: str | None = Header(None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> ResolvedIdentity:
    identity = await provider.resolve_token(_bearer_token(authorization))
    if identity is None:
        raise UnauthorizedError("Invalid or expired token")
    return identity


def get_profile_service(records: RecordStore = Depends(get_records)) -> UserProfileService:
    return UserProfileService(records)


async def get_caller(
    identity: ResolvedIdentity = Depends(get_identity),
    profiles: UserProfileService = Depends(get_profile_service),
) -> Caller:
    return await profiles.resolve_caller(identity)


def get_notifier(records: RecordStore = Depends(get_records)) -> NotificationDispatcher:
    return NotificationDispatcher(records)


def get_follow_service(
    records: RecordStore = Depends(get_records),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> FollowGraphService:
    return FollowGraphService(records, notifier)


def get_conversation_registry(
    records: RecordStore = Depends(get_records),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> ConversationRegistry:
    return ConversationRegistry(records, notifier)


def get_assignment_manager(
    records: RecordStore = Depends(get_records),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> AssignmentLifecycleManager:
    return AssignmentLifecycleManager(records, notifier)


def get_rating_aggregator(
    records: RecordStore = Depends(get_records),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> RatingAggregator:
    return RatingAggregator(records, notifier)


def get_upload_gate(
    blobs: BlobStorage = Depends(get_blob_storage),
    settings: Settings = Depends(get_settings),
) -> SubmissionUploadGate:
    return SubmissionUploadGate(
        blobs,
        bucket=settings.submissions_bucket,
        max_image_bytes=settings.max_image_bytes,
        max_video_bytes=settings.max_video_bytes,
        signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
    )
