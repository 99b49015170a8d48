"""Single-thread owner of the extraction engine for the API process.

Playwright's sync API is bound to the thread that started it, while
FastAPI runs sync endpoints on a thread pool. Every engine call is
therefore funnelled through one dedicated worker thread.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from actorrun.engine.executor import ExtractionEngine, ExtractionOutput, ExtractionRequest

logger = logging.getLogger(__name__)


class EngineRunner:
    """Run engine calls serially on a private browser thread.

    Args:
        factory: Builds the engine; called lazily on the worker thread.
    """

    def __init__(self, factory: Callable[[], ExtractionEngine] = ExtractionEngine.from_settings) -> None:
        self._factory = factory
        self._engine: ExtractionEngine | None = None
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="actorrun-browser")

    def execute(self, request: ExtractionRequest) -> ExtractionOutput:
        return self._submit(lambda engine: engine.execute(request))

    def generate_url(self, actor_ref: str, intent: str, *, user_id: str, context: dict[str, Any]) -> str:
        return self._submit(
            lambda engine: engine.generate_actor_url(actor_ref, intent, user_id=user_id, context=context)
        )

    def scrape(self, url: str, selectors: dict[str, str]) -> dict[str, str]:
        return self._submit(lambda engine: engine.scrape(url, selectors))

    def shutdown(self) -> None:
        """Release the browser on its own thread and stop the worker."""
        if self._engine is not None:
            self._pool.submit(self._engine.browser.release_all).result()
        self._pool.shutdown(wait=True)
        logger.info("Engine runner stopped")

    def _submit(self, call: Callable[[ExtractionEngine], Any]) -> Any:
        return self._pool.submit(lambda: call(self._get_engine())).result()

    def _get_engine(self) -> ExtractionEngine:
        if self._engine is None:
            logger.info("Starting extraction engine on %s", threading.current_thread().name)
            self._engine = self._factory()
        return self._engine


_runner: EngineRunner | None = None
_runner_lock = threading.Lock()


def get_runner() -> EngineRunner:
    """Return the process-wide runner (FastAPI dependency)."""
    global _runner  # noqa: PLW0603
    with _runner_lock:
        if _runner is None:
            _runner = EngineRunner()
        return _runner


def shutdown_runner() -> None:
    global _runner  # noqa: PLW0603
    with _runner_lock:
        if _runner is not None:
            _runner.shutdown()
            _runner = None
