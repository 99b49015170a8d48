"""actorrun test configuration: shared fixtures for unit tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from actorrun.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_actorrun.db"


@pytest.fixture()
def stores(db_path: Path):
    """Actor, execution and prompt stores sharing a temporary SQLite DB."""
    from actorrun.store import build_stores

    return build_stores(db_path=db_path)


@pytest.fixture()
def actor_store(stores):
    return stores[0]


@pytest.fixture()
def execution_store(stores):
    return stores[1]


@pytest.fixture()
def prompt_store(stores):
    return stores[2]


@pytest.fixture()
def actor(actor_store):
    """A persisted actor with a platform URL and no saved script."""
    return actor_store.create_actor(
        title="Job Board",
        user_id="user-1",
        url="https://jobs.example.com/search",
        tags=["jobs"],
    )


# ---------------------------------------------------------------------------
# Mock LLM
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_llm_provider():
    """Return a ``MagicMock`` conforming to the ``LLMProvider`` interface.

    Default behaviour: returns a valid plan so planner and engine tests
    can run without a real LLM.
    """
    from actorrun.llm.base import LLMProvider, LLMResult

    mock = MagicMock(spec=LLMProvider)
    mock.model = "mock"
    mock.check_connectivity.return_value = True
    mock.chat.return_value = LLMResult(
        content='{"url": "https://jobs.example.com/search?q=python", '
        '"script": "data.titles = [...document.querySelectorAll(\'h2\')].map(e => e.textContent);", '
        '"selectors": {"title": "h2"}, '
        '"pagination": {"nextPageSelector": "#next", "maxPages": 3}}',
        input_tokens=100,
        output_tokens=50,
        model="mock",
    )
    mock.close.return_value = None
    return mock


# ---------------------------------------------------------------------------
# Fake Playwright objects
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_response():
    """Return a factory for mock Playwright ``Response`` objects with a text body."""

    def _build(url: str, body: str, method: str = "GET") -> MagicMock:
        response = MagicMock(name=f"response:{url}")
        response.url = url
        response.request.method = method
        response.text.return_value = body
        return response

    return _build


@pytest.fixture()
def make_capture_page():
    """Build a mock page whose ``goto`` fires the given responses at listeners.

    Pass ``error`` to make ``goto`` raise after the responses are delivered.
    """

    def _build(responses: list[MagicMock], error: Exception | None = None) -> MagicMock:
        page = MagicMock(name="page")
        listeners: dict[str, list] = {}

        def on(event, handler):
            listeners.setdefault(event, []).append(handler)

        def remove_listener(event, handler):
            listeners.get(event, []).remove(handler)

        def goto(url, **kwargs):
            for response in responses:
                for handler in list(listeners.get("response", [])):
                    handler(response)
            if error is not None:
                raise error
            return MagicMock(name="main-response")

        page.on.side_effect = on
        page.remove_listener.side_effect = remove_listener
        page.goto.side_effect = goto
        page.listeners = listeners
        return page

    return _build


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require a real browser or external services")
    config.addinivalue_line("markers", "slow: marks tests that take more than a few seconds")
