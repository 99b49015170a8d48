"""Unit tests for actorrun.browser.dedup: shape-based deduplication."""

from __future__ import annotations

from actorrun.browser.dedup import DedupIndex, dedup_array_fields, dedup_items, dedup_key


class TestDedupKey:
    def test_key_is_sorted_property_names(self) -> None:
        assert dedup_key({"name": "x", "id": 1}) == "id|name"

    def test_values_do_not_affect_key(self) -> None:
        assert dedup_key({"a": 1, "b": 2}) == dedup_key({"b": 8, "a": 9})

    def test_scalars_never_collide_with_mappings(self) -> None:
        assert dedup_key("a") != dedup_key({"a": 1})
        assert dedup_key(1) != dedup_key("1")


class TestDedupItems:
    def test_same_shape_collapses_to_first_seen(self) -> None:
        assert dedup_items([{"a": 1, "b": 2}, {"a": 9, "b": 8}]) == [{"a": 1, "b": 2}]

    def test_different_shapes_are_kept_in_order(self) -> None:
        items = [{"a": 1}, {"b": 2}, {"a": 3}, {"a": 1, "b": 1}]
        assert dedup_items(items) == [{"a": 1}, {"b": 2}, {"a": 1, "b": 1}]

    def test_idempotent(self) -> None:
        samples = [
            [],
            [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}, {"id": 3}],
            [1, 1, "1", {"x": None}, {"x": 0}, [1], [1]],
        ]
        for items in samples:
            once = dedup_items(items)
            assert dedup_items(once) == once

    def test_does_not_mutate_input(self) -> None:
        items = [{"a": 1}, {"a": 2}]
        dedup_items(items)
        assert items == [{"a": 1}, {"a": 2}]


class TestDedupArrayFields:
    def test_only_list_fields_are_deduplicated(self) -> None:
        payload = {"rows": [{"id": 1}, {"id": 2}], "total": 2, "meta": {"page": 1}}
        assert dedup_array_fields(payload) == {"rows": [{"id": 1}], "total": 2, "meta": {"page": 1}}


class TestDedupIndex:
    def test_running_index_across_batches(self) -> None:
        index = DedupIndex()
        assert not index

        assert index.add_all([{"id": 1, "name": "a"}]) == 1
        assert index.add_all([{"id": 2, "name": "b"}, {"slug": "c"}]) == 1

        assert len(index) == 2
        assert index.values() == [{"id": 1, "name": "a"}, {"slug": "c"}]
