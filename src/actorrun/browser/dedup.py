"""Shape-based deduplication of captured response items.

Two mappings are considered equivalent when they have the same set of
property names, regardless of their values; the first one seen wins.
This conflates "same shape" with "same entity" on purpose: records that
share a key set collapse into one.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def dedup_key(item: Any) -> str:
    """Return the deduplication key of *item*.

    Mappings are keyed by their sorted, ``|``-joined property names.
    Other values are keyed by type and ``repr`` so they never collide with
    a mapping's key.
    """
    if isinstance(item, Mapping):
        return "|".join(sorted(str(k) for k in item.keys()))
    return f"<{type(item).__name__}>{item!r}"


def dedup_items(items: Iterable[Any]) -> list[Any]:
    """Return *items* with later shape-duplicates removed, preserving order."""
    seen: set[str] = set()
    unique: list[Any] = []
    for item in items:
        key = dedup_key(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def dedup_array_fields(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *payload* with every list-valued field deduplicated."""
    return {
        key: dedup_items(value) if isinstance(value, list) else value
        for key, value in payload.items()
    }


class DedupIndex:
    """Running first-seen-wins store of unique items for one capture session."""

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    def add_all(self, items: Iterable[Any]) -> int:
        """Merge *items* into the index and return how many were new."""
        added = 0
        for item in dedup_items(items):
            key = dedup_key(item)
            if key not in self._items:
                self._items[key] = item
                added += 1
        return added

    def values(self) -> list[Any]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
