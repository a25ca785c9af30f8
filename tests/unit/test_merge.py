from __future__ import annotations

from ledger_indexer.decoding.merge import merge_two, merge_values


def test_merge_values_later_scalar_wins() -> None:
    assert merge_values([{"a": 1}, {"b": 2}, {"a": 3}]) == {"a": 3, "b": 2}


def test_merge_values_merges_nested_objects() -> None:
    assert merge_values([{"a": {"x": 1}}, {"a": {"y": 2}}]) == {"a": {"x": 1, "y": 2}}


def test_merge_values_non_object_replaces() -> None:
    assert merge_values([{"a": 1}, [9]]) == [9]
    assert merge_values([[1, 2], [3]]) == [3]
    assert merge_values(["0x1", {"a": 1}]) == {"a": 1}


def test_merge_values_empty_and_single() -> None:
    assert merge_values([]) is None
    assert merge_values([{"a": 1}]) == {"a": 1}


def test_merge_two_does_not_mutate_inputs() -> None:
    left = {"a": {"x": 1}}
    right = {"a": {"y": 2}, "b": 3}

    merged = merge_two(left, right)

    assert merged == {"a": {"x": 1, "y": 2}, "b": 3}
    assert left == {"a": {"x": 1}}
    assert right == {"a": {"y": 2}, "b": 3}


def test_merge_values_reconstructs_split_call_arguments() -> None:
    arguments = [
        {"creator": "0xAA", "collection_name": "C1"},
        {"token_name": "T1", "property_version": 0, "price": 500},
    ]

    assert merge_values(arguments) == {
        "creator": "0xAA",
        "collection_name": "C1",
        "token_name": "T1",
        "property_version": 0,
        "price": 500,
    }
