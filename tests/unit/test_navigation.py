"""Unit tests for actorrun.browser.navigation: settled goto and click-and-wait."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout

from actorrun.browser.navigation import _build_fallback_chain, click_and_wait, goto_settled
from actorrun.exceptions import NavigationError


# ---------------------------------------------------------------------------
# _build_fallback_chain
# ---------------------------------------------------------------------------

class TestBuildFallbackChain:
    """Tests for the internal fallback-chain builder."""

    def test_networkidle_produces_full_chain(self) -> None:
        assert _build_fallback_chain("networkidle") == ["networkidle", "load", "domcontentloaded"]

    def test_load_skips_networkidle(self) -> None:
        assert _build_fallback_chain("load") == ["load", "domcontentloaded"]

    def test_unknown_strategy_prepends_to_chain(self) -> None:
        chain = _build_fallback_chain("commit")
        assert chain[0] == "commit"
        assert "networkidle" in chain


# ---------------------------------------------------------------------------
# goto_settled
# ---------------------------------------------------------------------------

class TestGotoSettled:
    def test_success_on_first_try(self) -> None:
        page = MagicMock()
        sentinel = MagicMock(name="response")
        page.goto.return_value = sentinel

        assert goto_settled(page, "https://example.com", timeout_ms=5000) is sentinel
        page.goto.assert_called_once_with("https://example.com", wait_until="networkidle", timeout=5000)

    def test_fallback_to_load_on_timeout(self) -> None:
        page = MagicMock()
        sentinel = MagicMock(name="response")
        page.goto.side_effect = [PlaywrightTimeout("timeout"), sentinel]

        assert goto_settled(page, "https://example.com", timeout_ms=5000) is sentinel
        page.goto.assert_any_call("https://example.com", wait_until="load", timeout=5000)

    def test_all_strategies_exhausted_raises_last_timeout(self) -> None:
        page = MagicMock()
        page.goto.side_effect = [PlaywrightTimeout("t1"), PlaywrightTimeout("t2"), PlaywrightTimeout("t3")]

        with pytest.raises(PlaywrightTimeout, match="t3"):
            goto_settled(page, "https://example.com")

    def test_dns_failure_is_non_retryable(self) -> None:
        page = MagicMock()
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://nope.invalid")

        with pytest.raises(NavigationError, match="name not resolved"):
            goto_settled(page, "https://nope.invalid")
        assert page.goto.call_count == 1

    def test_other_errors_propagate(self) -> None:
        page = MagicMock()
        page.goto.side_effect = PlaywrightError("Protocol error")

        with pytest.raises(PlaywrightError, match="Protocol error"):
            goto_settled(page, "https://example.com")


# ---------------------------------------------------------------------------
# click_and_wait
# ---------------------------------------------------------------------------

class TestClickAndWait:
    def test_click_inside_navigation_wait(self) -> None:
        page = MagicMock()
        click_and_wait(page, "#next", timeout_ms=1000)

        page.expect_navigation.assert_called_once_with(wait_until="networkidle", timeout=1000)
        page.click.assert_called_once_with("#next", timeout=1000)

    def test_failure_raises_navigation_error(self) -> None:
        page = MagicMock()
        page.url = "https://x.com/page1"
        page.expect_navigation.side_effect = PlaywrightTimeout("Timeout 1000ms exceeded")

        with pytest.raises(NavigationError) as exc_info:
            click_and_wait(page, "#next", timeout_ms=1000)
        assert exc_info.value.url == "https://x.com/page1"
