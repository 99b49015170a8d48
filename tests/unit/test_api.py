"""Unit tests for actorrun.api: routes and error mapping."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from actorrun.api.app import create_app
from actorrun.api.routes import get_actor_store, get_execution_store
from actorrun.api.runner import EngineRunner, get_runner
from actorrun.engine.executor import ExtractionOutput
from actorrun.exceptions import ActorNotFoundError, NavigationError
from actorrun.models.execution import ExecutionStatus


@pytest.fixture()
def runner() -> MagicMock:
    return MagicMock(spec=EngineRunner)


@pytest.fixture()
def client(actor_store, execution_store, runner) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_actor_store] = lambda: actor_store
    app.dependency_overrides[get_execution_store] = lambda: execution_store
    app.dependency_overrides[get_runner] = lambda: runner
    return TestClient(app)


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


class TestActors:
    def test_create_and_get(self, client) -> None:
        resp = client.post("/actors", json={"title": "Job Board", "user_id": "u1", "url": "https://jobs.example.com"})
        assert resp.status_code == 201
        assert resp.json()["namespace"] == "job-board"

        assert client.get("/actors/job-board").json()["url"] == "https://jobs.example.com"

    def test_duplicate_namespace_conflict(self, client, actor) -> None:
        resp = client.post("/actors", json={"title": "Job Board", "user_id": "u2"})
        assert resp.status_code == 409

    def test_unknown_actor_not_found(self, client) -> None:
        resp = client.get("/actors/ghost")
        assert resp.status_code == 404
        assert "ghost" in resp.json()["detail"]


    def test_owner_deletes_actor_and_history(self, client, actor, execution_store) -> None:
        execution_store.create_execution(actor.id)

        resp = client.delete("/actors/job-board", params={"user_id": "user-1"})

        assert resp.status_code == 204
        assert client.get("/actors/job-board").status_code == 404
        assert execution_store.list_executions(actor.id) == []

    def test_other_user_cannot_delete(self, client, actor) -> None:
        resp = client.delete("/actors/job-board", params={"user_id": "intruder"})
        assert resp.status_code == 404
        assert client.get("/actors/job-board").status_code == 200


class TestExecute:
    def test_execute_returns_output(self, client, runner) -> None:
        runner.execute.return_value = ExtractionOutput(
            execution_id="ex-1", status=ExecutionStatus.COMPLETED, url="https://x", result={"items": [1]}
        )

        resp = client.post("/actors/job-board/execute", json={"intent": "python jobs", "context": {"q": 1}})

        assert resp.status_code == 200
        assert resp.json()["result"] == {"items": [1]}
        request = runner.execute.call_args.args[0]
        assert request.actor_ref == "job-board"
        assert request.context == {"q": 1}

    def test_failed_execution_is_still_ok(self, client, runner) -> None:
        runner.execute.return_value = ExtractionOutput(
            execution_id="ex-1", status=ExecutionStatus.FAILED, error="PlanningError: bad"
        )
        resp = client.post("/actors/job-board/execute", json={"intent": "x"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "failed"

    def test_unknown_actor_404(self, client, runner) -> None:
        runner.execute.side_effect = ActorNotFoundError("ghost")
        assert client.post("/actors/ghost/execute", json={"intent": "x"}).status_code == 404


class TestExecutions:
    def test_list_for_actor(self, client, actor, execution_store) -> None:
        ids = [execution_store.create_execution(actor.id).id for _ in range(3)]

        resp = client.get("/actors/job-board/executions", params={"limit": 2})

        assert resp.status_code == 200
        assert [e["id"] for e in resp.json()] == [ids[2], ids[1]]

    def test_get_execution(self, client, actor, execution_store) -> None:
        execution = execution_store.create_execution(actor.id)
        body = client.get(f"/executions/{execution.id}").json()
        assert body["status"] == "pending"
        assert body["actor_id"] == actor.id

    def test_missing_execution(self, client) -> None:
        assert client.get("/executions/nope").status_code == 404


class TestScrape:
    def test_scrape_returns_selector_text(self, client, runner) -> None:
        runner.scrape.return_value = {"title": "Senior Python Engineer", "salary": ""}

        resp = client.post(
            "/scrape",
            json={"url": "https://jobs.example.com/42", "selectors": {"title": "h1", "salary": ".salary"}},
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "url": "https://jobs.example.com/42",
            "data": {"title": "Senior Python Engineer", "salary": ""},
        }
        runner.scrape.assert_called_once_with("https://jobs.example.com/42", {"title": "h1", "salary": ".salary"})

    def test_invalid_url_rejected(self, client, runner) -> None:
        resp = client.post("/scrape", json={"url": "not a url", "selectors": {"title": "h1"}})
        assert resp.status_code == 422
        runner.scrape.assert_not_called()

    def test_unreachable_page_is_bad_gateway(self, client, runner) -> None:
        runner.scrape.side_effect = NavigationError("https://down.example.com/x", "name not resolved")
        resp = client.post("/scrape", json={"url": "https://down.example.com/x", "selectors": {"title": "h1"}})
        assert resp.status_code == 502
        assert "name not resolved" in resp.json()["detail"]
