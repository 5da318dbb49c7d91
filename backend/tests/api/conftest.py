"""API test fixtures — the real app with store, identity and blobs replaced.

Invariants:
    - No lifespan runs: dependency_overrides supply every external collaborator
    - Overrides are cleared after each test
"""

import httpx
import pytest
from httpx import ASGITransport

from commonroom.api.dependencies import get_blob_storage, get_identity_provider, get_kv_store
from commonroom.core import keys
from commonroom.main import app
from tests.api.fake_identity import TokenIdentityProvider, auth
from tests.services.fake_store import FakeBlobStorage, FakeKeyValueStore


@pytest.fixture
def kv():
    return FakeKeyValueStore()


@pytest.fixture
def blobs():
    return FakeBlobStorage()


@pytest.fixture
async def client(kv, blobs):
    app.dependency_overrides[get_kv_store] = lambda: kv
    app.dependency_overrides[get_identity_provider] = TokenIdentityProvider
    app.dependency_overrides[get_blob_storage] = lambda: blobs
    async with httpx.AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def seed(kv):
    """Store a raw profile for user_id; returns its auth headers."""
    def _seed(user_id: str, role: str = "student", status: str = "active"):
        kv.put_raw(keys.user_key(user_id), {
            "id": user_id, "email": f"{user_id}@campus.test", "name": user_id.title(),
            "role": role, "status": status, "followers": [], "following": [],
        })
        return auth(user_id)
    return _seed
