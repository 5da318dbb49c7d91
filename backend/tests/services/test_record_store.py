"""Record Store Adapter — tests against the in-memory store.

Tests cover:
    - load returns None for absent keys; require raises ResourceNotFoundError
    - Malformed stored values are repaired on load, not rewritten
    - Scans skip values without an id and fill partition ids
    - The conversation index tolerates non-list values and duplicates
    - Index appends keep entries written by others, including concurrent appends
"""

import asyncio

import pytest

from commonroom.core import keys
from commonroom.core.errors import ResourceNotFoundError


async def test_absent_and_required(records):
    assert await records.load_user("nobody") is None
    with pytest.raises(ResourceNotFoundError) as exc:
        await records.require_assignment("a1")
    assert exc.value.resource_id == "a1"


async def test_repair_on_load_does_not_write(records, kv):
    kv.put_raw(keys.user_key("sam"), {"name": "Sam", "followers": "not-a-list"})
    profile = await records.load_user("sam")
    assert profile.id == "sam"
    assert profile.followers == []
    assert kv.writes == []
    assert kv.raw(keys.user_key("sam"))["followers"] == "not-a-list"


async def test_scan_skips_idless(records, kv):
    kv.put_raw("recipe:r1", {"id": "r1", "title": "Soup"})
    kv.put_raw("recipe:broken", {"title": "No id"})
    kv.put_raw("recipe:junk", "just a string")
    assert [r.id for r in await records.scan_recipes()] == ["r1"]


async def test_scan_messages_fills_conversation(records, kv):
    kv.put_raw(keys.message_key("c1", "m1"), {"id": "m1", "content": "hi"})
    kv.put_raw(keys.message_key("c10", "m2"), {"id": "m2", "content": "other"})
    messages = await records.scan_messages("c1")
    assert [(m.id, m.conversation_id) for m in messages] == [("m1", "c1")]


@pytest.mark.parametrize("raw,expected", [
    (None, []),
    ("c1", []),
    (["c1", "c2", "c1"], ["c1", "c2"]),
    (["c1", 7, None], ["c1"]),
])
async def test_conversation_index_tolerant(records, kv, raw, expected):
    if raw is not None:
        kv.put_raw(keys.user_conversations_key("u"), raw)
    assert await records.load_conversation_index("u") == expected


async def test_append_keeps_existing_entries(records, kv):
    kv.put_raw(keys.user_conversations_key("u"), ["c1"])
    await records.append_to_conversation_index("u", "c2")
    await records.append_to_conversation_index("u", "c2")
    assert kv.raw(keys.user_conversations_key("u")) == ["c1", "c2"]


async def test_concurrent_appends_both_land(records, kv):
    await asyncio.gather(
        records.append_to_conversation_index("u", "c1"),
        records.append_to_conversation_index("u", "c2"),
    )
    assert set(kv.raw(keys.user_conversations_key("u"))) == {"c1", "c2"}
