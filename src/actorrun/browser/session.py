"""Shared browser process with scoped page acquisition.

One Chromium process is launched lazily and reused by every caller.
Each page gets its own browser context configured with the default
viewport and user agent, and is released by :meth:`BrowserManager.page_scope`
on every exit path.

Usage::

    manager = get_browser_manager()
    with manager.page_scope() as page:
        page.goto("https://example.com")
    manager.release_all()
"""

from __future__ import annotations

import atexit
import logging
import sys
import threading
from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from actorrun.exceptions import LaunchError

logger = logging.getLogger(__name__)

# Sentinel for ``executable_path`` meaning "use the installed Google Chrome".
SYSTEM_CHROME = "system"

_SYSTEM_CHROME_PATHS: dict[str, str] = {
    "win32": "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "darwin": "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "linux": "/usr/bin/google-chrome",
}


def system_chrome_path(platform: str | None = None) -> str:
    """Return the default Google Chrome path for *platform*.

    Raises:
        LaunchError: If the platform has no known Chrome location.
    """
    key = platform or sys.platform
    if key.startswith("linux"):
        key = "linux"
    try:
        return _SYSTEM_CHROME_PATHS[key]
    except KeyError:
        raise LaunchError(f"Unsupported platform: {key}") from None


class BrowserManager:
    """Owns the single shared browser process.

    Args:
        headless: Launch Chromium without a window.
        executable_path: Explicit browser binary; ``""`` uses Playwright's
            bundled Chromium and ``"system"`` resolves the platform's
            Google Chrome install.
        args: Extra Chromium command-line flags.
        viewport: Default page viewport.
        user_agent: Default page user agent.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        executable_path: str = "",
        args: list[str] | None = None,
        viewport: dict[str, int] | None = None,
        user_agent: str = "",
    ) -> None:
        self._headless = headless
        self._executable_path = executable_path
        self._args = list(args or [])
        self._viewport = viewport or {"width": 1280, "height": 800}
        self._user_agent = user_agent

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = threading.Lock()
        self._exit_hook_registered = False

    @classmethod
    def from_settings(cls) -> "BrowserManager":
        """Create a manager from ``BrowserSettings``."""
        from actorrun.settings import get_settings

        s = get_settings().browser
        return cls(
            headless=s.headless,
            executable_path=s.executable_path,
            args=s.args,
            viewport={"width": s.viewport_width, "height": s.viewport_height},
            user_agent=s.user_agent,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    def _ensure_browser(self) -> Browser:
        """Launch the browser on first use; later calls reuse it."""
        with self._lock:
            if self._browser is not None:
                return self._browser

            executable = self._executable_path
            if executable == SYSTEM_CHROME:
                executable = system_chrome_path()

            launch_args: dict = {"headless": self._headless, "args": self._args}
            if executable:
                launch_args["executable_path"] = executable

            try:
                self._playwright = sync_playwright().start()
                self._browser = self._playwright.chromium.launch(**launch_args)
            except PlaywrightError as exc:
                logger.error("Failed to launch browser: %s", exc)
                self._stop_driver()
                raise LaunchError(f"Failed to initialize browser: {exc}") from exc

            logger.info("Launched browser (headless=%s, executable=%s)", self._headless, executable or "bundled")

            if not self._exit_hook_registered:
                atexit.register(self.release_all)
                self._exit_hook_registered = True

            return self._browser

    def acquire_page(self) -> Page:
        """Open a new page in its own context with the default viewport and user agent.

        The page's Content-Security-Policy is bypassed so sandboxed scripts
        and selector lookups run on strict-CSP sites.

        The caller owns the page and must close it; prefer :meth:`page_scope`.

        Raises:
            LaunchError: If the browser process cannot be started.
        """
        browser = self._ensure_browser()
        context_args: dict = {"viewport": self._viewport, "bypass_csp": True}
        if self._user_agent:
            context_args["user_agent"] = self._user_agent
        context = browser.new_context(**context_args)
        return context.new_page()

    @contextmanager
    def page_scope(self) -> Iterator[Page]:
        """Yield a fresh page and always release it and its context."""
        page = self.acquire_page()
        try:
            yield page
        finally:
            release_page(page)

    def release_all(self) -> None:
        """Close the browser and stop the Playwright driver. Safe to call repeatedly."""
        with self._lock:
            if self._browser is not None:
                try:
                    self._browser.close()
                except Exception as exc:
                    # Also covers the greenlet error raised when called off the launching thread.
                    logger.debug("Browser close failed (already gone?): %s", exc)
                self._browser = None
                logger.info("Browser released")
            self._stop_driver()

    def _stop_driver(self) -> None:
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as exc:
                logger.debug("Playwright stop failed: %s", exc)
            self._playwright = None


def release_page(page: Page) -> None:
    """Close *page* and the context that owns it, ignoring already-closed targets."""
    context: BrowserContext | None = None
    try:
        context = page.context
        page.close()
    except PlaywrightError as exc:
        logger.debug("Page close failed: %s", exc)
    if context is not None:
        try:
            context.close()
        except PlaywrightError as exc:
            logger.debug("Context close failed: %s", exc)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_manager: BrowserManager | None = None
_manager_lock = threading.Lock()


def get_browser_manager(*, force_new: bool = False) -> BrowserManager:
    """Return the process-wide ``BrowserManager`` built from settings.

    Args:
        force_new: Bypass the cached instance (the old one is not released).
    """
    global _manager  # noqa: PLW0603
    with _manager_lock:
        if _manager is None or force_new:
            _manager = BrowserManager.from_settings()
        return _manager
