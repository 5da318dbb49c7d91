"""ORM Models — the single table backing the key-value store.

Invariants:
    - All models inherit from Base (db/base.py)
"""

from commonroom.models.kv_entry import KvEntry  # noqa: F401
