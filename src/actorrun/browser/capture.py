"""Network response capture with shape-based deduplication.

A :class:`ResponseCapture` listens to every response a page receives while
it navigates to a target, keeps the API-like ones (URL predicate plus
GET/POST), parses their bodies, and folds array payloads into a running
deduplicated set. The result is a flat, arrival-ordered list of tagged
responses plus one synthetic summary of the unique items.

Usage::

    capture = ResponseCapture.from_settings()
    with manager.page_scope() as page:
        result = capture.capture(page, "https://jobs.example.com/search?q=python")
"""

from __future__ import annotations

import itertools
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Response

from actorrun.browser.dedup import DedupIndex, dedup_array_fields
from actorrun.browser.filters import apply_filters
from actorrun.browser.navigation import goto_settled
from actorrun.browser.session import release_page
from actorrun.exceptions import CaptureError, NavigationError
from actorrun.models.actor import ResponseFilters
from actorrun.models.capture import DEDUP_RESPONSE_ID, CapturedResponse, CaptureResult

logger = logging.getLogger(__name__)

UrlPredicate = Callable[[str], bool]


def url_contains(*patterns: str) -> UrlPredicate:
    """Return a predicate matching URLs that contain any of *patterns*."""
    lowered = [p.lower() for p in patterns if p]

    def _match(url: str) -> bool:
        candidate = url.lower()
        return any(p in candidate for p in lowered)

    return _match


@dataclass
class _Observed:
    """A matching response recorded at arrival time; parsed after navigation."""

    response: Response
    method: str
    timestamp: str


class CaptureSession:
    """Per-call state: response id counter, flat list, and dedup index."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.responses: list[CapturedResponse] = []
        self.index = DedupIndex()
        self.total_matched = 0

    def next_id(self) -> str:
        return f"resp_{next(self._ids)}"

    def add_payload(self, url: str, method: str, timestamp: str, body: str) -> None:
        """Parse *body* and record it according to its shape."""
        self.total_matched += 1
        response_id = self.next_id()
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, TypeError):
            self.responses.append(
                CapturedResponse(response_id, url, method, timestamp, text=body, is_json=False)
            )
            return

        data_field = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(data_field, list):
            added = self.index.add_all(data_field)
            logger.debug("%s: %d items, %d new unique", response_id, len(data_field), added)
            return
        if isinstance(data_field, dict) and any(isinstance(v, list) for v in data_field.values()):
            payload = {**payload, "data": dedup_array_fields(data_field)}
        self.responses.append(CapturedResponse(response_id, url, method, timestamp, data=payload))

    def summary(self, url: str) -> CapturedResponse | None:
        """Return the synthetic deduplicated response, or ``None`` if the index is empty."""
        if not self.index:
            return None
        items = self.index.values()
        return CapturedResponse(
            response_id=DEDUP_RESPONSE_ID,
            response_url=url,
            request_method="GET",
            timestamp=_now(),
            data={"data": items, "count": len(items), "deduplicated": True},
        )

    def serialized(self, url: str) -> list[dict[str, Any]]:
        entries = [r.to_dict() for r in self.responses]
        summary = self.summary(url)
        if summary is not None:
            entries.append(summary.to_dict())
        return entries


class ResponseCapture:
    """Capture and deduplicate API responses produced by a navigation.

    Args:
        url_patterns: Default URL substrings that mark a response as API-like.
        methods: Request methods to keep.
        navigation_timeout_ms: Navigation timeout per wait strategy.
        settle_ms: Extra wait after navigation for late asynchronous responses.
    """

    def __init__(
        self,
        *,
        url_patterns: list[str] | None = None,
        methods: list[str] | None = None,
        navigation_timeout_ms: int = 60_000,
        settle_ms: int = 3_000,
    ) -> None:
        self._default_match = url_contains(*(url_patterns or ["/api/"]))
        self._methods = {m.upper() for m in (methods or ["GET", "POST"])}
        self._navigation_timeout_ms = navigation_timeout_ms
        self._settle_ms = settle_ms

    @classmethod
    def from_settings(cls) -> "ResponseCapture":
        from actorrun.settings import get_settings

        s = get_settings().capture
        return cls(
            url_patterns=s.url_patterns,
            methods=s.methods,
            navigation_timeout_ms=s.navigation_timeout_ms,
            settle_ms=s.settle_ms,
        )

    def capture(
        self,
        page: Page,
        navigation_target: str,
        match_criteria: UrlPredicate | None = None,
        filters: ResponseFilters | None = None,
    ) -> CaptureResult:
        """Navigate *page* to *navigation_target* and return the captured responses.

        The page is released when this returns or raises.

        Args:
            page: A page owned exclusively by this call.
            navigation_target: URL to navigate to.
            match_criteria: URL predicate; defaults to the configured patterns.
            filters: Optional selected-response / path / whitelist / cap shaping.

        Raises:
            CaptureError: If navigation fails or times out. Carries the
                responses gathered before the failure.
        """
        match = match_criteria or self._default_match
        observed: list[_Observed] = []

        def on_response(response: Response) -> None:
            method = response.request.method.upper()
            if method in self._methods and match(response.url):
                observed.append(_Observed(response, method, _now()))

        session = CaptureSession()
        page.on("response", on_response)
        try:
            try:
                goto_settled(page, navigation_target, timeout_ms=self._navigation_timeout_ms)
                page.wait_for_timeout(self._settle_ms)
            except (NavigationError, PlaywrightError) as exc:
                self._drain(observed, session)
                partial = session.serialized(navigation_target)
                logger.warning("Capture of %s failed after %d responses: %s", navigation_target, len(partial), exc)
                raise CaptureError(f"Capture of {navigation_target} failed: {exc}", partial) from exc

            self._drain(observed, session)
        finally:
            page.remove_listener("response", on_response)
            release_page(page)

        responses = apply_filters(session.serialized(navigation_target), filters)
        logger.info(
            "Captured %d responses from %s (%d matched, %d unique items)",
            len(responses),
            navigation_target,
            session.total_matched,
            len(session.index),
        )
        return CaptureResult(
            responses=responses,
            total_matched=session.total_matched,
            unique_count=len(session.index),
        )

    @staticmethod
    def _drain(observed: list[_Observed], session: CaptureSession) -> None:
        """Read and record the bodies of *observed* responses in arrival order."""
        for item in observed:
            try:
                body = item.response.text()
            except PlaywrightError as exc:
                logger.debug("Body unavailable for %s: %s", item.response.url, exc)
                continue
            session.add_payload(item.response.url, item.method, item.timestamp, body)
        observed.clear()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
