"""Follow Graph Rules — tests for pure edge toggling.

Tests cover:
    - apply_follow adds both sides; applying twice equals once
    - apply_unfollow removes both sides; absent edges are a no-op
    - A half edge is completed by follow and fully removed by unfollow
    - Self-follow is rejected; inputs are never mutated
"""

import pytest

from commonroom.core.errors import RequestValidationFailed
from commonroom.core.follow_graph import apply_follow, apply_unfollow, edge_complete
from commonroom.core.records import UserProfile


def _pair():
    return UserProfile(id="a"), UserProfile(id="b")


def test_follow_adds_both_sides():
    a, b = apply_follow(*_pair())
    assert a.following == ["b"]
    assert b.followers == ["a"]
    assert edge_complete(a, b)


def test_follow_is_idempotent():
    a, b = apply_follow(*_pair())
    a2, b2 = apply_follow(a, b)
    assert a2.following == ["b"]
    assert b2.followers == ["a"]


def test_unfollow_on_absent_edge_is_noop():
    a, b = apply_unfollow(*_pair())
    assert a.following == []
    assert b.followers == []


def test_follow_then_unfollow_restores_empty():
    a, b = apply_unfollow(*apply_follow(*_pair()))
    assert a.following == []
    assert b.followers == []


def test_half_edge_completed_by_follow():
    a = UserProfile(id="a", following=["b"])
    b = UserProfile(id="b")
    assert not edge_complete(a, b)
    a2, b2 = apply_follow(a, b)
    assert b2.followers == ["a"]
    assert edge_complete(a2, b2)


def test_half_edge_removed_by_unfollow():
    a = UserProfile(id="a")
    b = UserProfile(id="b", followers=["a", "c"])
    _, b2 = apply_unfollow(a, b)
    assert b2.followers == ["c"]


def test_inputs_untouched():
    a, b = _pair()
    apply_follow(a, b)
    assert a.following == []
    assert b.followers == []


def test_self_follow_rejected():
    with pytest.raises(RequestValidationFailed):
        apply_follow(UserProfile(id="a"), UserProfile(id="a"))
