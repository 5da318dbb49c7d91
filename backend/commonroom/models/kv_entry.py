"""KvEntry ORM — one row per key of the document store.

Invariants:
    - key is the primary key: one value per key, writes replace the whole value
    - value holds the JSON document verbatim (no schema enforced here)
    - No foreign keys, no triggers: relationships live inside the documents
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from commonroom.db.base import Base


class KvEntry(Base):
    """A single key/value document."""
    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
