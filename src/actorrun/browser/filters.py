"""Post-capture shaping: selected-response ordering, path, whitelist, and cap."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from actorrun.models.actor import ResponseFilters

logger = logging.getLogger(__name__)


def move_selected_first(responses: list[dict[str, Any]], selected_id: str | None) -> list[dict[str, Any]]:
    """Return *responses* with the one whose ``_responseId`` is *selected_id* first.

    The relative order of the remaining responses is unchanged. Unknown or
    empty ids leave the list as-is.
    """
    if not selected_id:
        return list(responses)
    for idx, entry in enumerate(responses):
        if entry.get("_responseId") == selected_id:
            return [entry, *responses[:idx], *responses[idx + 1 :]]
    logger.debug("Selected response %s not present in capture", selected_id)
    return list(responses)


def resolve_path(payload: Any, path: str) -> Any:
    """Follow a dotted *path* (``"data.items"``, ``"results.0.rows"``) into *payload*.

    Returns ``None`` when any segment is missing.
    """
    current = payload
    for segment in (s for s in path.split(".") if s):
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def limit_value(value: Any, properties: list[str], cap: int | None) -> Any:
    """Apply the property whitelist and per-array cap to *value*.

    Lists are truncated to *cap* and each mapping item keeps only the
    whitelisted keys. A mapping has each of its list-valued fields limited
    the same way; its other fields are kept.
    """
    if isinstance(value, list):
        items = value[:cap] if cap is not None else list(value)
        if not properties:
            return items
        return [_project(item, properties) for item in items]
    if isinstance(value, Mapping):
        return {
            key: limit_value(field, properties, cap) if isinstance(field, list) else field
            for key, field in value.items()
        }
    return value


def apply_filters(responses: list[dict[str, Any]], filters: ResponseFilters | None) -> list[dict[str, Any]]:
    """Shape serialized captured responses according to *filters*.

    Order of operations: selected response to the front, then per response
    the ``path`` lookup, then whitelist and cap. Raw-text responses are
    only reordered.
    """
    if filters is None:
        return list(responses)

    ordered = move_selected_first(responses, filters.selected_response_id)
    shaped: list[dict[str, Any]] = []
    for entry in ordered:
        if "data" not in entry:
            shaped.append(entry)
            continue
        payload = entry["data"]
        if filters.path:
            resolved = resolve_path(payload, filters.path)
            if resolved is not None:
                payload = resolved
        shaped.append({**entry, "data": limit_value(payload, filters.properties, filters.default_result)})
    return shaped


def _project(item: Any, properties: list[str]) -> Any:
    if isinstance(item, Mapping):
        return {key: item[key] for key in properties if key in item}
    return item
