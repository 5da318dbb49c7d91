"""Hosted Identity Provider — resolves bearer tokens against the auth REST API.

Invariants:
    - A token the provider rejects (401/403) resolves to None, never raises
    - Transport failures and 5xx map to StoreUnavailableError (no retry here)
    - Only the subject id, verified flag and e-mail are read from the response
"""

import logging

import httpx

from commonroom.core.errors import StoreUnavailableError
from commonroom.core.repository_protocols import ResolvedIdentity

logger = logging.getLogger(__name__)


def hosted_client_factory(
    base_url: str, service_key: str, timeout: float,
) -> httpx.AsyncClient:
    """httpx client preconfigured for the hosted backend's REST endpoints."""
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        headers={"apikey": service_key},
        timeout=timeout,
    )


class HostedIdentityProvider:
    """IdentityProvider over `GET /auth/v1/user`."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def resolve_token(self, token: str) -> ResolvedIdentity | None:
        if not token:
            return None
        try:
            resp = await self.client.get(
                "/auth/v1/user", headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Identity provider unreachable: {e}")
            raise StoreUnavailableError(str(e), "resolve_token")

        if resp.status_code in (401, 403):
            return None
        if resp.status_code >= 400:
            raise StoreUnavailableError(
                f"identity provider returned {resp.status_code}", "resolve_token",
            )

        data = resp.json()
        user_id = data.get("id")
        if not isinstance(user_id, str) or not user_id:
            return None
        return ResolvedIdentity(
            user_id=user_id,
            email_verified=bool(data.get("email_confirmed_at")),
            email=data.get("email") or "",
        )

    async def aclose(self) -> None:
        await self.client.aclose()
