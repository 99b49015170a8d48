"""Selector-based text scraping of a single page.

:class:`SelectorScraper` loads a URL and reads the trimmed text of the
first element matching each named CSS selector. A selector that never
appears yields ``""`` rather than failing the whole scrape. Results are
cached for an hour in the planner's cache backend.

Usage::

    scraper = SelectorScraper.from_settings()
    scraper.scrape("https://jobs.example.com/42", {"title": "h1", "salary": ".salary"})
"""

from __future__ import annotations

import hashlib
import json
import logging

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from actorrun.browser.navigation import goto_settled
from actorrun.browser.session import BrowserManager
from actorrun.exceptions import NavigationError
from actorrun.planner.cache import PlanCache

logger = logging.getLogger(__name__)


def read_selectors(page: Page, selectors: dict[str, str], *, timeout_ms: int = 5_000) -> dict[str, str]:
    """Return ``{name: text}`` for each selector on the already-loaded *page*.

    Each selector gets up to *timeout_ms* to appear; misses map to ``""``.
    """
    result: dict[str, str] = {}
    for name, selector in selectors.items():
        try:
            element = page.wait_for_selector(selector, timeout=timeout_ms)
            text = element.text_content() if element is not None else None
        except PlaywrightError as exc:
            logger.debug("Selector %r (%s) not found: %s", selector, name, exc)
            text = None
        result[name] = (text or "").strip()
    return result


class SelectorScraper:
    """Scrape named selectors from a URL, with a shared result cache.

    Args:
        browser: Shared browser manager; each scrape uses its own page.
        cache: Cache backend (shared with the content planner).
        navigation_timeout_ms: Timeout for loading the page.
        selector_timeout_ms: Wait per selector before treating it as missing.
        ttl_seconds: Lifetime of cached results.
        key_prefix: Cache key prefix.
    """

    def __init__(
        self,
        browser: BrowserManager,
        cache: PlanCache,
        *,
        navigation_timeout_ms: int = 30_000,
        selector_timeout_ms: int = 5_000,
        ttl_seconds: int = 3600,
        key_prefix: str = "scrape:",
    ) -> None:
        self.browser = browser
        self.cache = cache
        self.navigation_timeout_ms = navigation_timeout_ms
        self.selector_timeout_ms = selector_timeout_ms
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls, browser: BrowserManager | None = None) -> "SelectorScraper":
        from actorrun.browser.session import get_browser_manager
        from actorrun.planner.cache import build_plan_cache
        from actorrun.settings import get_settings

        s = get_settings().scrape
        return cls(
            browser or get_browser_manager(),
            build_plan_cache(),
            navigation_timeout_ms=s.navigation_timeout_ms,
            selector_timeout_ms=s.selector_timeout_ms,
            ttl_seconds=s.cache_ttl_seconds,
            key_prefix=s.key_prefix,
        )

    def cache_key(self, url: str, selectors: dict[str, str]) -> str:
        canonical = json.dumps({"url": url, "selectors": selectors}, sort_keys=True, separators=(",", ":"))
        return self.key_prefix + hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def scrape(self, url: str, selectors: dict[str, str]) -> dict[str, str]:
        """Return the trimmed text for each named selector on *url*.

        Raises:
            NavigationError: If the page cannot be loaded.
        """
        key = self.cache_key(url, selectors)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Scrape cache hit for %s", url)
            return cached

        with self.browser.page_scope() as page:
            try:
                goto_settled(page, url, timeout_ms=self.navigation_timeout_ms, wait_until="domcontentloaded")
            except PlaywrightError as exc:
                raise NavigationError(url, str(exc)) from exc
            result = read_selectors(page, selectors, timeout_ms=self.selector_timeout_ms)

        self.cache.set(key, result, ttl_seconds=self.ttl_seconds)
        found = sum(1 for text in result.values() if text)
        logger.info("Scraped %s: %d/%d selectors matched", url, found, len(selectors))
        return result
