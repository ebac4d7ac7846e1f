"""Unit tests for leasetrack.services.order_key."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from leasetrack.services.order_key import (
    MAX_KEY_LENGTH,
    first_key,
    key_after_all,
    key_before_all,
    key_between,
    n_keys_between,
    needs_reindexing,
    reindex_order_keys,
    sort_by_order_key,
)


def test_first_key():
    assert first_key() == "a0"


def test_key_before_all_empty_collection():
    assert key_before_all([]) == first_key()


def test_key_before_all_ignores_items_without_keys():
    assert key_before_all([{"order_key": None}, {"name": "x"}]) == first_key()


def test_key_before_all_sorts_before_every_existing_key():
    existing = [{"order_key": k} for k in n_keys_between(None, None, 25)]
    new = key_before_all(existing)
    assert all(new < item["order_key"] for item in existing)


@pytest.mark.parametrize("keys", [["a0"], ["Zz"], ["a0V", "a1", "b00"], ["a00V", "a1"]])
def test_key_before_all_various_sets(keys):
    new = key_before_all([{"order_key": k} for k in keys])
    assert new < min(keys)


def test_key_before_all_repeated_is_strictly_decreasing():
    items: list[dict] = []
    previous = None
    for _ in range(100):
        key = key_before_all(items)
        if previous is not None:
            assert key < previous
        items.append({"order_key": key})
        previous = key
    assert len({i["order_key"] for i in items}) == 100


def test_key_after_all_sorts_after_every_existing_key():
    existing = [{"order_key": k} for k in ("a0", "a5", "a1")]
    assert key_after_all(existing) > "a5"


def test_key_between_midpoint():
    key = key_between("a0", "a1")
    assert "a0" < key < "a1"


def test_key_between_rejects_unordered_bounds():
    with pytest.raises(ValueError):
        key_between("a1", "a0")
    with pytest.raises(ValueError):
        key_between("a1", "a1")


def test_key_between_rejects_malformed_key():
    with pytest.raises(ValueError):
        key_between(None, "a")
    with pytest.raises(ValueError):
        key_between("a00", None)


def test_n_keys_between_ascending_and_distinct():
    keys = n_keys_between("a0", "a1", 10)
    assert keys == sorted(keys)
    assert len(set(keys)) == 10
    assert all("a0" < k < "a1" for k in keys)


def test_sort_by_order_key_does_not_mutate_and_accepts_objects():
    items = [SimpleNamespace(order_key="a2", n=1), SimpleNamespace(order_key="a0", n=2)]
    result = sort_by_order_key(items)
    assert [i.n for i in result] == [2, 1]
    assert [i.n for i in items] == [1, 2]


def test_sort_by_order_key_is_stable():
    items = [{"order_key": "a1", "n": 1}, {"order_key": "a0", "n": 2}, {"order_key": "a1", "n": 3}]
    assert [i["n"] for i in sort_by_order_key(items)] == [2, 1, 3]


def test_needs_reindexing_and_reindex():
    long_key = "a0" + "V" * MAX_KEY_LENGTH
    items = [{"id": "x", "order_key": long_key}, {"id": "y", "order_key": "a1"}]
    assert needs_reindexing(items) is True
    fresh = reindex_order_keys(items)
    assert [i["id"] for i in fresh] == ["x", "y"]
    assert fresh[0]["order_key"] < fresh[1]["order_key"]
    assert not needs_reindexing(fresh)
    assert items[0]["order_key"] == long_key
