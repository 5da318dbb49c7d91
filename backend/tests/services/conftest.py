"""Service test fixtures — in-memory KV store, fixed clock, wired services.

Invariants:
    - Every test gets a fresh FakeKeyValueStore (shuffled scans, JSON copies)
    - Clock and id factory are deterministic; tests advance the clock explicitly
    - Profiles are seeded as raw documents, the way other writers leave them

Design Decisions:
    - Fake store over SQLite here: service tests exercise ordering and
      interleaving, which the fake controls; SQL behaviour is covered in
      tests/infrastructure
"""

import pytest

from commonroom.core import keys
from commonroom.core.authorize import Caller
from commonroom.core.domain_types import Role, UserStatus
from commonroom.services.assignment_lifecycle import AssignmentLifecycleManager
from commonroom.services.conversation_registry import ConversationRegistry
from commonroom.services.follow_graph import FollowGraphService
from commonroom.services.notification_dispatcher import NotificationDispatcher
from commonroom.services.rating_aggregator import RatingAggregator
from commonroom.services.record_store import RecordStore
from commonroom.services.user_profiles import UserProfileService
from tests.services.fake_store import FakeClock, FakeKeyValueStore, SequentialIds


@pytest.fixture
def kv():
    return FakeKeyValueStore()


@pytest.fixture
def records(kv):
    return RecordStore(kv)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def notifier(records, clock):
    return NotificationDispatcher(records, clock, SequentialIds("n"))


@pytest.fixture
def profiles(records, clock):
    return UserProfileService(records, clock)


@pytest.fixture
def graph(records, notifier):
    return FollowGraphService(records, notifier)


@pytest.fixture
def registry(records, notifier, clock, ids):
    return ConversationRegistry(records, notifier, clock, ids)


@pytest.fixture
def lifecycle(records, notifier, clock, ids):
    return AssignmentLifecycleManager(records, notifier, clock, ids)


@pytest.fixture
def aggregator(records, notifier, clock, ids):
    return RatingAggregator(records, notifier, clock, ids)


@pytest.fixture
def seed_user(kv):
    """Store a raw profile document and return the matching Caller."""
    def _seed(
        user_id: str,
        role: Role = Role.STUDENT,
        status: UserStatus = UserStatus.ACTIVE,
        **fields,
    ) -> Caller:
        kv.put_raw(keys.user_key(user_id), {
            "id": user_id,
            "email": f"{user_id}@campus.test",
            "name": user_id.title(),
            "role": role.value,
            "status": status.value,
            **fields,
        })
        return Caller(user_id=user_id, role=role, status=status, email_verified=True)
    return _seed


@pytest.fixture
def alice(seed_user):
    return seed_user("alice")


@pytest.fixture
def bob(seed_user):
    return seed_user("bob")


@pytest.fixture
def instructor(seed_user):
    return seed_user("prof", Role.INSTRUCTOR)


@pytest.fixture
def admin(seed_user):
    return seed_user("root", Role.ADMIN)
