"""Redis draft store for the branch slot flow."""

from __future__ import annotations

import json

import pytest

from manager.app.utils.state import FlowStateStore, get_flow_store


def test_save_uses_prefixed_key_and_ttl(redis_double) -> None:
    store = FlowStateStore(redis_double, ttl=30)
    store.save("abc", {"stage": "rooms"})

    redis_double.setex.assert_called_once_with(
        "branch_slot:flow:abc", 30, json.dumps({"stage": "rooms"})
    )
    assert store.load("abc") == {"stage": "rooms"}


def test_load_missing_draft(redis_double) -> None:
    assert FlowStateStore(redis_double).load("nope") is None


def test_corrupt_draft_is_dropped(redis_double) -> None:
    redis_double.data["branch_slot:flow:bad"] = "{not json"
    store = FlowStateStore(redis_double)

    assert store.load("bad") is None
    assert "branch_slot:flow:bad" not in redis_double.data


def test_delete(redis_double) -> None:
    store = FlowStateStore(redis_double)
    store.save("abc", {})
    store.delete("abc")
    redis_double.delete.assert_called_once_with("branch_slot:flow:abc")
    assert store.load("abc") is None


def test_store_requires_redis_url() -> None:
    with pytest.raises(RuntimeError):
        get_flow_store(url=None)
