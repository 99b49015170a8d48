"""Next-page traversal and cross-page result merging.

:class:`PaginationController` runs the sandboxed script on the current
page, then repeatedly clicks a visible "next page" control, waits for the
navigation to settle, re-runs the script, and merges the new page's data
into the accumulator until ``max_pages`` is reached or no next control
remains.

Merge table (applied pairwise, left to right, per page)::

    accumulator   new page     merged
    -----------   ----------   ---------------------
    <absent>      v            v
    Sequence a    Sequence b   a + b
    Sequence a    x            a + [x]
    x             Sequence b   [x] + b
    x             y            [x, y]

Scalars and records (mappings) are both "not a sequence" for the table.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from actorrun.browser.navigation import click_and_wait
from actorrun.browser.sandbox import ScriptSandbox
from actorrun.exceptions import NavigationError
from actorrun.models.planning import PaginationSpec

logger = logging.getLogger(__name__)


class Shape(str, Enum):
    """Tag of a JSON-like value for the merge table."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    RECORD = "record"


def classify(value: Any) -> Shape:
    """Return the merge-table tag of *value*."""
    if isinstance(value, (list, tuple)):
        return Shape.SEQUENCE
    if isinstance(value, Mapping):
        return Shape.RECORD
    return Shape.SCALAR


def merge_values(existing: Any, new: Any) -> list[Any]:
    """Merge two values present under the same key."""
    existing_is_seq = classify(existing) is Shape.SEQUENCE
    new_is_seq = classify(new) is Shape.SEQUENCE

    if existing_is_seq and new_is_seq:
        return [*existing, *new]
    if existing_is_seq:
        return [*existing, new]
    if new_is_seq:
        return [existing, *new]
    return [existing, new]


def merge_page_data(existing: Mapping[str, Any], new: Mapping[str, Any]) -> dict[str, Any]:
    """Return *existing* merged with one more page of *new* data.

    Neither input is mutated.
    """
    merged = dict(existing)
    for key, value in new.items():
        if key not in merged:
            merged[key] = value
        else:
            merged[key] = merge_values(merged[key], value)
    return merged


class PaginationController:
    """Drive next-page navigation and accumulate sandbox results.

    Args:
        sandbox: Sandbox used to run the script on every page.
        navigation_timeout_ms: Timeout for the click-triggered navigation.
        max_pages_limit: Hard ceiling applied to any requested ``max_pages``.
    """

    def __init__(
        self,
        sandbox: ScriptSandbox,
        *,
        navigation_timeout_ms: int = 30_000,
        max_pages_limit: int = 50,
    ) -> None:
        self._sandbox = sandbox
        self._navigation_timeout_ms = navigation_timeout_ms
        self._max_pages_limit = max_pages_limit

    @classmethod
    def from_settings(cls, sandbox: ScriptSandbox | None = None) -> "PaginationController":
        from actorrun.settings import get_settings

        s = get_settings().pagination
        return cls(
            sandbox or ScriptSandbox.from_settings(),
            navigation_timeout_ms=s.navigation_timeout_ms,
            max_pages_limit=s.max_pages_limit,
        )

    def traverse(
        self,
        page: Page,
        script: str,
        pagination_spec: PaginationSpec | None = None,
        bindings: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run *script* on the current page and on each following page.

        Page-level script errors are merged as data (their ``error`` key
        survives the merge) and do not stop traversal. A next-page click
        that fails to navigate ends traversal with the data gathered so far.

        Returns:
            The merged data of every visited page.
        """
        merged = self._sandbox.run(page, script, bindings).payload()

        if pagination_spec is None or not pagination_spec.enabled:
            return merged

        selector = pagination_spec.next_page_selector or ""
        max_pages = min(pagination_spec.max_pages, self._max_pages_limit)
        current_page = 1

        while current_page < max_pages:
            if not self.has_next_page(page, selector):
                logger.debug("No visible next-page control %r after page %d", selector, current_page)
                break

            try:
                click_and_wait(page, selector, timeout_ms=self._navigation_timeout_ms)
            except NavigationError as exc:
                logger.warning("Stopping pagination after page %d: %s", current_page, exc)
                break

            merged = merge_page_data(merged, self._sandbox.run(page, script, bindings).payload())
            current_page += 1

        logger.info("Pagination visited %d page(s) (max %d)", current_page, max_pages)
        return merged

    @staticmethod
    def has_next_page(page: Page, selector: str) -> bool:
        """Return True if *selector* matches an element that is present, visible, and enabled."""
        if not selector:
            return False
        try:
            control = page.locator(selector).first
            return control.count() > 0 and control.is_visible() and control.is_enabled()
        except PlaywrightError as exc:
            logger.debug("Next-page check for %r failed: %s", selector, exc)
            return False
