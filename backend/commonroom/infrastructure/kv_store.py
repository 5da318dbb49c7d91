"""SQL Key-Value Store — the KeyValueStore protocol over the kv_store table.

Invariants:
    - Every call runs in its own session and commits on its own: atomicity is
      exactly one key, never wider
    - set() replaces the whole value in one upsert statement, no field merge
    - scan_by_prefix matches keys literally: '_' and '%' in a prefix are escaped
    - scan_by_prefix returns values in unspecified order
    - Failures surface as StoreUnavailableError via DatabaseSessionManager
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from commonroom.infrastructure.database import DatabaseSessionManager
from commonroom.models.kv_entry import KvEntry

logger = logging.getLogger(__name__)

# Single-statement upserts keep set() atomic for one key
_UPSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class SqlKeyValueStore:
    """KeyValueStore implementation — implements core/repository_protocols.KeyValueStore."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    async def get(self, key: str) -> Any | None:
        async with self._manager.session() as db:
            entry = await db.get(KvEntry, key)
            return None if entry is None else entry.value

    async def set(self, key: str, value: Any) -> None:
        async with self._manager.session() as db:
            insert = _UPSERTS.get(db.bind.dialect.name)
            if insert is None:
                await db.merge(KvEntry(key=key, value=value))
            else:
                stmt = insert(KvEntry).values(
                    key=key, value=value, updated_at=datetime.now(timezone.utc),
                )
                await db.execute(stmt.on_conflict_do_update(
                    index_elements=[KvEntry.key],
                    set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
                ))
            await db.commit()

    async def delete(self, key: str) -> None:
        async with self._manager.session() as db:
            await db.execute(delete(KvEntry).where(KvEntry.key == key))
            await db.commit()

    async def scan_by_prefix(self, prefix: str) -> list[Any]:
        async with self._manager.session() as db:
            result = await db.execute(
                select(KvEntry.value).where(
                    KvEntry.key.startswith(prefix, autoescape=True),
                ),
            )
            values = list(result.scalars().all())
        logger.debug(f"Scanned {len(values)} keys under '{prefix}'")
        return values
