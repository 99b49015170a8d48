"""Unit tests for actorrun.engine.lifecycle: monotonic execution states."""

from __future__ import annotations

import pytest

from actorrun.engine.lifecycle import ExecutionTracker, describe_error
from actorrun.exceptions import ActorNotFoundError, CaptureError, InvalidTransitionError, StoreError
from actorrun.models.execution import ExecutionStatus, can_transition


@pytest.fixture()
def tracker(actor_store, execution_store) -> ExecutionTracker:
    return ExecutionTracker(actor_store, execution_store)


class TestTransitions:
    @pytest.mark.parametrize(
        ("current", "target", "allowed"),
        [
            (ExecutionStatus.PENDING, ExecutionStatus.RUNNING, True),
            (ExecutionStatus.PENDING, ExecutionStatus.FAILED, True),
            (ExecutionStatus.PENDING, ExecutionStatus.COMPLETED, False),
            (ExecutionStatus.RUNNING, ExecutionStatus.COMPLETED, True),
            (ExecutionStatus.RUNNING, ExecutionStatus.PENDING, False),
            (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, False),
            (ExecutionStatus.FAILED, ExecutionStatus.RUNNING, False),
        ],
    )
    def test_table(self, current, target, allowed) -> None:
        assert can_transition(current, target) is allowed


class TestExecutionTracker:
    def test_happy_path(self, tracker, actor) -> None:
        execution = tracker.start(actor.namespace)
        assert execution.status is ExecutionStatus.PENDING

        running = tracker.mark_running(execution.id)
        assert running.status is ExecutionStatus.RUNNING
        assert running.start_time is not None

        tracker.complete(execution.id, {"result": {"items": [1]}})

        stored = tracker.get(execution.id)
        assert stored.status is ExecutionStatus.COMPLETED
        assert stored.results == {"result": {"items": [1]}}
        assert stored.end_time is not None
        assert stored.is_terminal

    def test_start_unknown_actor(self, tracker) -> None:
        with pytest.raises(ActorNotFoundError, match='"ghost" not found'):
            tracker.start("ghost")

    def test_terminal_states_are_immutable(self, tracker, actor) -> None:
        execution = tracker.start(actor)
        tracker.mark_running(execution.id)
        tracker.complete(execution.id, {})

        with pytest.raises(InvalidTransitionError):
            tracker.fail(execution.id, RuntimeError("late"))
        with pytest.raises(InvalidTransitionError):
            tracker.mark_running(execution.id)
        assert tracker.get(execution.id).status is ExecutionStatus.COMPLETED

    def test_complete_requires_running(self, tracker, actor) -> None:
        execution = tracker.start(actor)
        with pytest.raises(InvalidTransitionError):
            tracker.complete(execution.id, {})

    def test_pending_may_fail(self, tracker, actor) -> None:
        execution = tracker.start(actor)
        failed = tracker.fail(execution.id, ValueError("bad input"))
        assert failed.status is ExecutionStatus.FAILED
        assert tracker.get(execution.id).logs == "ValueError: bad input"

    def test_unknown_execution(self, tracker) -> None:
        with pytest.raises(StoreError):
            tracker.mark_running("missing")

    def test_guard_records_failure_and_reraises(self, tracker, actor) -> None:
        execution = tracker.start(actor)
        tracker.mark_running(execution.id)

        with pytest.raises(RuntimeError):
            with tracker.guard(execution.id):
                raise RuntimeError("page crashed")

        stored = tracker.get(execution.id)
        assert stored.status is ExecutionStatus.FAILED
        assert stored.logs == "RuntimeError: page crashed"

    def test_guard_keeps_partial_capture(self, tracker, actor) -> None:
        execution = tracker.start(actor)
        tracker.mark_running(execution.id)
        partial = [{"_responseId": "resp_1", "data": {"a": 1}}]

        with pytest.raises(CaptureError):
            with tracker.guard(execution.id):
                raise CaptureError("navigation timed out", partial)

        assert tracker.get(execution.id).results == {"scraped_data": partial}

    def test_guard_leaves_terminal_record_alone(self, tracker, actor) -> None:
        execution = tracker.start(actor)
        tracker.mark_running(execution.id)

        with pytest.raises(RuntimeError):
            with tracker.guard(execution.id):
                tracker.complete(execution.id, {"ok": True})
                raise RuntimeError("after completion")

        assert tracker.get(execution.id).status is ExecutionStatus.COMPLETED

    def test_observed_states_are_monotonic(self, tracker, actor) -> None:
        execution = tracker.start(actor)
        observed = [tracker.get(execution.id).status]
        tracker.mark_running(execution.id)
        observed.append(tracker.get(execution.id).status)
        tracker.fail(execution.id, "stopped")
        observed.append(tracker.get(execution.id).status)

        assert observed == [ExecutionStatus.PENDING, ExecutionStatus.RUNNING, ExecutionStatus.FAILED]


def test_describe_error() -> None:
    assert describe_error(KeyError("x")) == "KeyError: 'x'"
    assert describe_error("plain") == "plain"
