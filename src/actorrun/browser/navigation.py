"""Page navigation helpers with a wait-strategy fallback.

Target sites often never reach ``networkidle`` (long-polling, analytics
beacons, websockets). :func:`goto_settled` tries ``networkidle`` first
and falls back to ``load`` then ``domcontentloaded`` on timeout.
:func:`click_and_wait` performs a click and waits for the navigation it
triggers as a single step.
"""

from __future__ import annotations

import logging
from typing import Literal

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Response
from playwright.sync_api import TimeoutError as PlaywrightTimeout

from actorrun.exceptions import NavigationError

logger = logging.getLogger(__name__)

# Playwright error substrings that indicate non-retryable navigation failures.
_NON_RETRYABLE_ERRORS: tuple[str, ...] = (
    "ERR_NAME_NOT_RESOLVED",
    "ERR_CONNECTION_REFUSED",
    "ERR_CONNECTION_RESET",
    "ERR_CONNECTION_CLOSED",
    "ERR_SSL_PROTOCOL_ERROR",
    "ERR_CERT_AUTHORITY_INVALID",
    "ERR_ADDRESS_UNREACHABLE",
    "ERR_INVALID_URL",
)

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]

_FALLBACK_STRATEGY: list[WaitUntil] = ["networkidle", "load", "domcontentloaded"]


def goto_settled(
    page: Page,
    url: str,
    *,
    timeout_ms: int = 60_000,
    wait_until: WaitUntil = "networkidle",
) -> Response | None:
    """Navigate to *url*, treating "network settled" as completion.

    Args:
        page: Playwright page instance.
        url: Target URL.
        timeout_ms: Timeout per attempt in milliseconds.
        wait_until: Preferred initial wait strategy.

    Returns:
        The main-frame ``Response``, or ``None``.

    Raises:
        NavigationError: On DNS / connection / TLS failures.
        PlaywrightTimeout: If every fallback strategy times out.
    """
    last_error: PlaywrightTimeout | None = None
    for strategy in _build_fallback_chain(wait_until):
        try:
            logger.debug("goto %s (wait_until=%s, timeout=%dms)", url, strategy, timeout_ms)
            return page.goto(url, wait_until=strategy, timeout=timeout_ms)
        except PlaywrightError as exc:
            _raise_if_non_retryable(exc, url)
            if isinstance(exc, PlaywrightTimeout):
                logger.warning("Navigation to %s timed out with wait_until=%s, retrying", url, strategy)
                last_error = exc
            else:
                raise

    raise last_error  # type: ignore[misc]


def click_and_wait(
    page: Page,
    selector: str,
    *,
    timeout_ms: int = 30_000,
    wait_until: WaitUntil = "networkidle",
) -> None:
    """Click *selector* and block until the navigation it causes has settled.

    The navigation waiter is armed before the click so a fast navigation
    cannot be missed.

    Raises:
        NavigationError: If the click does not produce a settled navigation.
    """
    try:
        with page.expect_navigation(wait_until=wait_until, timeout=timeout_ms):
            page.click(selector, timeout=timeout_ms)
    except PlaywrightError as exc:
        raise NavigationError(page.url, f"click on {selector!r} did not navigate: {exc}") from exc


def _raise_if_non_retryable(exc: PlaywrightError, url: str) -> None:
    message = str(exc)
    for pattern in _NON_RETRYABLE_ERRORS:
        if pattern in message:
            reason = pattern.replace("ERR_", "").replace("_", " ").lower()
            logger.warning("Navigation to %s failed (non-retryable): %s", url, pattern)
            raise NavigationError(url, reason) from exc


def _build_fallback_chain(preferred: WaitUntil) -> list[WaitUntil]:
    """Return the fallback chain starting from *preferred*."""
    if preferred in _FALLBACK_STRATEGY:
        idx = _FALLBACK_STRATEGY.index(preferred)
        return _FALLBACK_STRATEGY[idx:]
    return [preferred, *_FALLBACK_STRATEGY]
