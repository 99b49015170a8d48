"""Unit tests for actorrun.store: actors, executions, prompts."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from actorrun.exceptions import DuplicateNamespaceError, StoreError
from actorrun.models.actor import ResponseFilters
from actorrun.models.execution import ExecutionStatus


class TestActorStore:
    def test_create_derives_namespace(self, actor) -> None:
        assert actor.namespace == "job-board"
        assert actor.tags == ["jobs"]

    def test_find_by_id_or_namespace(self, actor_store, actor) -> None:
        assert actor_store.find_actor(actor.id).namespace == "job-board"
        assert actor_store.find_actor("job-board").id == actor.id
        assert actor_store.find_actor("unknown") is None

    def test_duplicate_namespace_rejected(self, actor_store, actor) -> None:
        with pytest.raises(DuplicateNamespaceError):
            actor_store.create_actor(title="job   board", user_id="user-2")

    def test_response_filters_round_trip(self, actor_store, actor) -> None:
        filters = ResponseFilters(selected_response_id="resp_2", properties=["id"], path="data.items", default_result=5)
        actor_store.update_response_filters(actor.id, filters)
        assert actor_store.get_actor(actor.id).response_filters == filters

        actor_store.update_response_filters(actor.id, None)
        assert actor_store.get_actor(actor.id).response_filters is None

    def test_update_script(self, actor_store, actor) -> None:
        actor_store.update_script(actor.id, "data.x = 1;")
        assert actor_store.get_actor(actor.id).script == "data.x = 1;"

    def test_list_actors_by_owner(self, actor_store, actor) -> None:
        actor_store.create_actor(title="Other", user_id="user-2")
        assert [a.namespace for a in actor_store.list_actors(user_id="user-1")] == ["job-board"]
        assert len(actor_store.list_actors()) == 2

    def test_delete_removes_actor_and_executions(self, actor_store, execution_store, actor) -> None:
        execution_store.create_execution(actor.id)

        assert actor_store.delete_actor(actor.id) is True
        assert actor_store.find_actor("job-board") is None
        assert execution_store.list_executions(actor.id) == []
        assert actor_store.delete_actor(actor.id) is False

    def test_database_failure_becomes_store_error(self, actor_store) -> None:
        actor_store._session_factory = MagicMock(side_effect=OperationalError("SELECT", {}, Exception("locked")))
        with pytest.raises(StoreError, match="OperationalError"):
            actor_store.find_actor("job-board")


class TestExecutionStore:
    def test_create_and_update(self, execution_store, actor) -> None:
        execution = execution_store.create_execution(actor.id)
        execution_store.update_execution(execution.id, status=ExecutionStatus.FAILED, logs="boom")

        stored = execution_store.get_execution(execution.id)
        assert stored.status is ExecutionStatus.FAILED
        assert stored.logs == "boom"

    def test_list_newest_first_with_limit(self, execution_store, actor) -> None:
        ids = [execution_store.create_execution(actor.id).id for _ in range(3)]
        execution_store.create_execution("other-actor")

        listed = execution_store.list_executions(actor.id, limit=2)

        assert [e.id for e in listed] == [ids[2], ids[1]]

    def test_missing_execution(self, execution_store) -> None:
        assert execution_store.get_execution("nope") is None


class TestPromptStore:
    def test_record_and_list(self, prompt_store) -> None:
        prompt_store.record_prompt(
            namespace="job-board", user_id="user-1", prompt="python in berlin", response_url="https://x/?q=python"
        )
        rows = prompt_store.list_prompts("job-board")
        assert len(rows) == 1
        assert rows[0]["response_url"] == "https://x/?q=python"
        assert prompt_store.list_prompts("other") == []
