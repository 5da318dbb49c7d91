"""In-memory KeyValueStore honouring the store contract.

- values are copied through JSON on set and get, like a real document store
- every call yields to the event loop, so gathered operations interleave
- scan_by_prefix returns values in shuffled order (seeded, reproducible)
- fail_writes_under makes set() raise StoreUnavailableError for matching keys
"""

import asyncio
import json
import random
from datetime import datetime, timedelta, timezone
from typing import Any

from commonroom.core.errors import StoreUnavailableError


class FakeKeyValueStore:
    def __init__(self, seed: int = 7):
        self.data: dict[str, str] = {}
        self.fail_writes_under: set[str] = set()
        self.writes: list[str] = []
        self._rng = random.Random(seed)

    async def get(self, key: str) -> Any | None:
        await asyncio.sleep(0)
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.sleep(0)
        if any(key.startswith(prefix) for prefix in self.fail_writes_under):
            raise StoreUnavailableError(f"write to {key} failed", "set")
        self.data[key] = json.dumps(value)
        self.writes.append(key)

    async def delete(self, key: str) -> None:
        await asyncio.sleep(0)
        self.data.pop(key, None)

    async def scan_by_prefix(self, prefix: str) -> list[Any]:
        await asyncio.sleep(0)
        values = [json.loads(v) for k, v in self.data.items() if k.startswith(prefix)]
        self._rng.shuffle(values)
        return values

    def raw(self, key: str) -> Any | None:
        """Synchronous peek for assertions."""
        value = self.data.get(key)
        return None if value is None else json.loads(value)

    def put_raw(self, key: str, value: Any) -> None:
        """Synchronous seed for arrange steps."""
        self.data[key] = json.dumps(value)


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


class SequentialIds:
    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count:04d}"


class FakeBlobStorage:
    def __init__(self):
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}

    async def put(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        self.objects[(bucket, path)] = (data, content_type)
        return path

    async def signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        return f"https://blobs.test/{bucket}/{path}?ttl={ttl_seconds}"
