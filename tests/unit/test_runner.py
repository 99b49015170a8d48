"""Unit tests for actorrun.api.runner: single-thread engine ownership."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

from actorrun.api.runner import EngineRunner
from actorrun.engine.executor import ExtractionRequest


def test_engine_built_and_used_on_one_worker_thread() -> None:
    threads: set[str] = set()
    engine = MagicMock()

    def factory():
        threads.add(threading.current_thread().name)
        return engine

    def execute(request):
        threads.add(threading.current_thread().name)
        return request.actor_ref

    engine.execute.side_effect = execute
    runner = EngineRunner(factory)
    try:
        assert runner.execute(ExtractionRequest(actor_ref="a", intent="x")) == "a"
        assert runner.execute(ExtractionRequest(actor_ref="b", intent="x")) == "b"
    finally:
        runner.shutdown()

    assert len(threads) == 1
    assert threading.current_thread().name not in threads
    engine.browser.release_all.assert_called_once()
