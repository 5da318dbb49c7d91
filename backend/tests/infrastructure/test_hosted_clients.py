"""Hosted identity and blob clients — tests over httpx.MockTransport.

Tests cover:
    - resolve_token: 200 → ResolvedIdentity, 401 → None, 5xx/transport → StoreUnavailableError
    - put sends the bytes without upsert; signed_url returns an absolute URL
    - Blob errors map to StoreUnavailableError
"""

import httpx
import pytest

from commonroom.core.errors import StoreUnavailableError
from commonroom.core.repository_protocols import ResolvedIdentity
from commonroom.infrastructure.blob_storage import HostedBlobStorage
from commonroom.infrastructure.identity import HostedIdentityProvider

BASE = "http://hosted.test"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BASE, transport=httpx.MockTransport(handler))


# ─── Identity ────────────────────────────────────────────────────

async def test_valid_token_resolves():
    def handler(request):
        assert request.url.path == "/auth/v1/user"
        assert request.headers["authorization"] == "Bearer good"
        return httpx.Response(200, json={
            "id": "u1", "email": "u1@campus.test", "email_confirmed_at": "2026-01-01T00:00:00Z",
        })

    provider = HostedIdentityProvider(_client(handler))
    assert await provider.resolve_token("good") == ResolvedIdentity("u1", True, "u1@campus.test")


@pytest.mark.parametrize("status", [401, 403])
async def test_rejected_token_is_none(status):
    provider = HostedIdentityProvider(_client(lambda r: httpx.Response(status)))
    assert await provider.resolve_token("bad") is None


async def test_provider_failure_raises():
    provider = HostedIdentityProvider(_client(lambda r: httpx.Response(502)))
    with pytest.raises(StoreUnavailableError):
        await provider.resolve_token("any")


async def test_provider_unreachable_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    provider = HostedIdentityProvider(_client(handler))
    with pytest.raises(StoreUnavailableError):
        await provider.resolve_token("any")


# ─── Blob storage ────────────────────────────────────────────────

async def test_put_and_sign():
    seen = []

    def handler(request):
        seen.append(request)
        if "/sign/" in request.url.path:
            return httpx.Response(200, json={"signedURL": "/object/sign/sub/u/1-a.png?token=t"})
        return httpx.Response(200, json={"Key": "sub/u/1-a.png"})

    blobs = HostedBlobStorage(_client(handler), "svc")
    assert await blobs.put("sub", "u/1-a.png", b"png", "image/png") == "sub/u/1-a.png"
    url = await blobs.signed_url("sub", "u/1-a.png", 3600)

    assert url == f"{BASE}/storage/v1/object/sign/sub/u/1-a.png?token=t"
    put, sign = seen
    assert put.headers["x-upsert"] == "false"
    assert put.headers["content-type"] == "image/png"
    assert put.content == b"png"
    assert sign.headers["authorization"] == "Bearer svc"


async def test_blob_rejection_raises():
    blobs = HostedBlobStorage(_client(lambda r: httpx.Response(409, json={})), "svc")
    with pytest.raises(StoreUnavailableError):
        await blobs.put("sub", "u/a.png", b"x", "image/png")
