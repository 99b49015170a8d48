"""Integration tests: sandbox, capture, pagination and scraping against real Chromium.

Pages are served with ``page.route`` so no network access is needed.
Skipped when no Playwright Chromium build is installed.
"""

from __future__ import annotations

import json
import time
from urllib.parse import quote

import pytest

from actorrun.browser.capture import ResponseCapture
from actorrun.browser.navigation import goto_settled
from actorrun.browser.pagination import PaginationController
from actorrun.browser.sandbox import ScriptSandbox
from actorrun.browser.scrape import SelectorScraper
from actorrun.browser.session import BrowserManager
from actorrun.exceptions import LaunchError
from actorrun.models.planning import PaginationSpec
from actorrun.planner.cache import InMemoryPlanCache

pytestmark = pytest.mark.integration

ITEMS_SCRIPT = "data.items = [...document.querySelectorAll('li')].map((li) => Number(li.textContent));"


@pytest.fixture(scope="module")
def manager():
    manager = BrowserManager(headless=True, args=["--no-sandbox", "--disable-dev-shm-usage"])
    try:
        with manager.page_scope():
            pass
    except LaunchError as exc:
        pytest.skip(f"Chromium not available: {exc}")
    yield manager
    manager.release_all()


@pytest.fixture()
def page(manager):
    with manager.page_scope() as page:
        page.set_content("<ul><li>1</li><li>2</li></ul>")
        yield page


def _html(body: str, head: str = "") -> str:
    return f"<!doctype html><html><head>{head}</head><body>{body}</body></html>"


class TestSandboxInChromium:
    def test_data_from_dom(self, page) -> None:
        assert ScriptSandbox().run(page, ITEMS_SCRIPT).data == {"items": [1, 2]}

    def test_bindings_visible_and_frozen(self, page) -> None:
        script = "data.q = bindings.q; try { bindings.q = 'x'; } catch (e) {} data.after = bindings.q;"
        result = ScriptSandbox().run(page, script, {"q": "python"})
        assert result.data == {"q": "python", "after": "python"}

    def test_thrown_error_is_result(self, page) -> None:
        assert ScriptSandbox().run(page, "throw new Error('boom');").error == "boom"

    def test_unset_data_is_empty(self, page) -> None:
        assert ScriptSandbox().run(page, "const unused = 1;").data == {}

    def test_script_may_declare_its_own_data(self, page) -> None:
        assert ScriptSandbox().run(page, "var data = {a: 1};").data == {"a": 1}
        assert ScriptSandbox().run(page, "const data = {b: 2};").data == {"b": 2}

    def test_syntax_error_named(self, page) -> None:
        assert ScriptSandbox().run(page, "data.a = ;").error.startswith("SyntaxError")

    def test_async_hang_times_out(self, page) -> None:
        started = time.monotonic()
        result = ScriptSandbox(timeout_ms=500).run(page, "await new Promise(() => {});")
        assert result.error == "Script timed out after 500ms"
        assert time.monotonic() - started < 5

    def test_synchronous_loop_times_out_and_page_survives(self, page) -> None:
        started = time.monotonic()
        result = ScriptSandbox(timeout_ms=500).run(page, "while (true) {}")
        assert result.error == "Script timed out after 500ms"
        assert time.monotonic() - started < 5
        assert page.evaluate("1 + 1") == 2

    def test_loop_after_await_times_out(self, page) -> None:
        started = time.monotonic()
        result = ScriptSandbox(timeout_ms=500).run(page, "await null; while (true) {}")
        assert result.error == "Script timed out after 500ms"
        assert time.monotonic() - started < 10

    def test_strict_csp_page(self, manager) -> None:
        with manager.page_scope() as page:
            page.route(
                "https://csp.test/**",
                lambda route: route.fulfill(
                    status=200,
                    content_type="text/html",
                    headers={"Content-Security-Policy": "script-src 'self'"},
                    body=_html("<ul><li>7</li></ul>"),
                ),
            )
            goto_settled(page, "https://csp.test/", timeout_ms=10_000)
            assert ScriptSandbox().run(page, ITEMS_SCRIPT).data == {"items": [7]}


class TestCaptureInChromium:
    def test_same_shape_responses_collapse(self, manager) -> None:
        bodies = {
            "/api/jobs?page=1": {"data": [{"id": 1, "name": "a"}]},
            "/api/jobs?page=2": {"data": [{"id": 2, "name": "b"}]},
            "/api/status": {"status": "ok"},
        }
        script = (
            "<script>(async () => {"
            "for (const u of ['/api/jobs?page=1', '/api/jobs?page=2', '/api/status']) { await fetch(u); }"
            "})();</script>"
        )

        def serve(route):
            path = route.request.url.removeprefix("https://jobs.test")
            if path in bodies:
                route.fulfill(status=200, content_type="application/json", body=json.dumps(bodies[path]))
            else:
                route.fulfill(status=200, content_type="text/html", body=_html("<h1>jobs</h1>" + script))

        page = manager.acquire_page()
        page.route("https://jobs.test/**", serve)
        capture = ResponseCapture(url_patterns=["/api/"], navigation_timeout_ms=15_000, settle_ms=500)

        result = capture.capture(page, "https://jobs.test/search")

        summaries = [r for r in result.responses if r["_responseId"] == "resp_dedup"]
        assert len(summaries) == 1
        assert summaries[0]["data"]["count"] == 1
        assert result.unique_count == 1
        assert result.total_matched == 3
        assert [r["data"] for r in result.responses if r["_responseId"] != "resp_dedup"] == [{"status": "ok"}]
        assert page.is_closed()


class TestPaginationInChromium:
    def test_stops_at_max_pages(self, manager) -> None:
        pages = {
            "/p1": "<ul><li>1</li><li>2</li></ul><a id='next' href='/p2'>next</a>",
            "/p2": "<ul><li>3</li></ul><a id='next' href='/p3'>next</a>",
            "/p3": "<ul><li>4</li></ul>",
        }

        def serve(route):
            path = route.request.url.removeprefix("https://shop.test")
            route.fulfill(status=200, content_type="text/html", body=_html(pages.get(path, "")))

        controller = PaginationController(ScriptSandbox(timeout_ms=5_000), navigation_timeout_ms=10_000)
        with manager.page_scope() as page:
            page.route("https://shop.test/**", serve)
            goto_settled(page, "https://shop.test/p1", timeout_ms=10_000)
            result = controller.traverse(page, ITEMS_SCRIPT, PaginationSpec(next_page_selector="#next", max_pages=2))

        assert result == {"items": [1, 2, 3]}


class TestScrapeInChromium:
    def test_selector_text_and_miss(self, manager) -> None:
        url = "data:text/html," + quote(_html("<h1>  Python Engineer </h1>"))
        scraper = SelectorScraper(manager, InMemoryPlanCache(), navigation_timeout_ms=10_000, selector_timeout_ms=300)

        assert scraper.scrape(url, {"title": "h1", "salary": ".salary"}) == {"title": "Python Engineer", "salary": ""}
