"""Hosted Blob Storage — BlobStorage protocol over the storage REST API.

Invariants:
    - put() never overwrites an existing object (x-upsert: false)
    - signed_url() returns an absolute URL
    - Every failure maps to StoreUnavailableError
"""

import logging
from urllib.parse import quote

import httpx

from commonroom.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class HostedBlobStorage:
    """BlobStorage implementation backed by `/storage/v1`."""

    def __init__(self, client: httpx.AsyncClient, service_key: str):
        self.client = client
        self._auth = {"Authorization": f"Bearer {service_key}"}

    async def put(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        resp = await self._request(
            "POST", f"/storage/v1/object/{bucket}/{quote(path)}", "put",
            content=data,
            headers={**self._auth, "Content-Type": content_type, "x-upsert": "false"},
        )
        logger.info(
            f"Stored {len(data)} bytes at {bucket}/{path}",
            extra={"operation": "blob_put"},
        )
        return resp.json().get("Key") or f"{bucket}/{path}"

    async def signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        resp = await self._request(
            "POST", f"/storage/v1/object/sign/{bucket}/{quote(path)}", "signed_url",
            json={"expiresIn": ttl_seconds},
            headers=self._auth,
        )
        signed = resp.json().get("signedURL") or resp.json().get("signedUrl")
        if not signed:
            raise StoreUnavailableError("no signed URL in response", "signed_url")
        if signed.startswith("http"):
            return signed
        return f"{str(self.client.base_url).rstrip('/')}/storage/v1{signed}"

    async def _request(self, method: str, url: str, operation: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.client.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Blob storage {operation} rejected: {e.response.status_code}")
            raise StoreUnavailableError(
                f"blob storage returned {e.response.status_code}", operation,
            )
        except httpx.HTTPError as e:
            logger.error(f"Blob storage {operation} failed: {e}")
            raise StoreUnavailableError(str(e), operation)
        return resp

    async def aclose(self) -> None:
        await self.client.aclose()
