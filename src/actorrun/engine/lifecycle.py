"""Execution lifecycle tracker.

Every status change of an execution goes through ``ExecutionTracker`` so
that transitions are validated against ``EXECUTION_TRANSITIONS`` before
anything is written.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any

from actorrun.exceptions import ActorNotFoundError, InvalidTransitionError, StoreError
from actorrun.models.actor import Actor
from actorrun.models.execution import ActorExecution, ExecutionStatus, can_transition
from actorrun.store.actor_store import ActorStore
from actorrun.store.execution_store import ExecutionStore

logger = logging.getLogger(__name__)


def describe_error(error: BaseException | str) -> str:
    """Render *error* as ``"<ErrorType>: <message>"`` for the execution log."""
    if isinstance(error, BaseException):
        return f"{type(error).__name__}: {error}"
    return str(error)


class ExecutionTracker:
    """Create execution records and move them through their lifecycle.

    Args:
        actors: Store used to resolve actor ids / namespaces.
        executions: Store holding the execution records.
    """

    def __init__(self, actors: ActorStore, executions: ExecutionStore) -> None:
        self.actors = actors
        self.executions = executions

    def resolve_actor(self, actor_ref: str) -> Actor:
        """Return the actor for an id or namespace.

        Raises:
            ActorNotFoundError: If *actor_ref* does not resolve.
        """
        actor = self.actors.find_actor(actor_ref)
        if actor is None:
            raise ActorNotFoundError(actor_ref)
        return actor

    def start(self, actor_ref: str | Actor) -> ActorExecution:
        """Create a pending execution for an actor (or actor id / namespace)."""
        actor = actor_ref if isinstance(actor_ref, Actor) else self.resolve_actor(actor_ref)
        execution = self.executions.create_execution(actor.id)
        logger.info("Execution %s created for actor %s", execution.id, actor.namespace)
        return execution

    def get(self, execution_id: str) -> ActorExecution | None:
        return self.executions.get_execution(execution_id)

    def mark_running(self, execution_id: str) -> ActorExecution:
        """Move pending → running and stamp ``start_time``."""
        return self._transition(
            execution_id,
            ExecutionStatus.RUNNING,
            start_time=datetime.now(timezone.utc),
        )

    def complete(self, execution_id: str, results: Any) -> ActorExecution:
        """Move running → completed with *results*."""
        return self._transition(
            execution_id,
            ExecutionStatus.COMPLETED,
            end_time=datetime.now(timezone.utc),
            results=results,
        )

    def fail(self, execution_id: str, error: BaseException | str, *, results: Any = None) -> ActorExecution:
        """Move pending or running → failed, logging a readable error line."""
        fields: dict[str, Any] = {"end_time": datetime.now(timezone.utc), "logs": describe_error(error)}
        if results is not None:
            fields["results"] = results
        execution = self._transition(execution_id, ExecutionStatus.FAILED, **fields)
        logger.warning("Execution %s failed: %s", execution_id, fields["logs"])
        return execution

    @contextlib.contextmanager
    def guard(self, execution_id: str) -> Iterator[None]:
        """Record any exception raised in the block as a failure, then re-raise it.

        A ``CaptureError``'s partial responses are kept on the failed record.
        """
        try:
            yield
        except Exception as exc:
            current = self.get(execution_id)
            if current is not None and not current.is_terminal:
                partial = getattr(exc, "partial_responses", None)
                self.fail(execution_id, exc, results={"scraped_data": partial} if partial else None)
            raise

    def _transition(self, execution_id: str, target: ExecutionStatus, **fields: Any) -> ActorExecution:
        current = self.get(execution_id)
        if current is None:
            raise StoreError(f"Execution {execution_id} does not exist")
        if not can_transition(current.status, target):
            raise InvalidTransitionError(execution_id, current.status.value, target.value)

        self.executions.update_execution(execution_id, status=target, **fields)
        return current.model_copy(update={"status": target, **fields})
