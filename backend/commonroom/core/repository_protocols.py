"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - KeyValueStore is atomic per key and offers no cross-key atomicity;
      scan_by_prefix order is unspecified
    - Every implementation raises StoreUnavailableError (core/errors.py) when the
      underlying call fails

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do IO; core rules that consume the
      loaded values stay synchronous
"""

from dataclasses import dataclass
from typing import Any, Protocol


class KeyValueStore(Protocol):
    """Raw document store — JSON values under string keys."""
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def scan_by_prefix(self, prefix: str) -> list[Any]: ...


@dataclass(frozen=True)
class ResolvedIdentity:
    """What the identity provider vouches for behind a bearer token."""
    user_id: str
    email_verified: bool
    email: str = ""


class IdentityProvider(Protocol):
    """Resolves opaque bearer tokens. Returns None for an invalid token."""
    async def resolve_token(self, token: str) -> ResolvedIdentity | None: ...


class BlobStorage(Protocol):
    """Object storage for uploaded files."""
    async def put(
        self, bucket: str, path: str, data: bytes, content_type: str,
    ) -> str: ...
    async def signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str: ...
