"""Execution lifecycle states and the persisted execution record."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


class ExecutionStatus(str, Enum):
    """Lifecycle states of one actor execution."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = {ExecutionStatus.COMPLETED, ExecutionStatus.FAILED}

# Legal forward transitions. A pending record may fail directly when the
# error happens before it is marked running.
EXECUTION_TRANSITIONS: dict[ExecutionStatus, set[ExecutionStatus]] = {
    ExecutionStatus.PENDING: {ExecutionStatus.RUNNING, ExecutionStatus.FAILED},
    ExecutionStatus.RUNNING: {ExecutionStatus.COMPLETED, ExecutionStatus.FAILED},
    ExecutionStatus.COMPLETED: set(),
    ExecutionStatus.FAILED: set(),
}


def can_transition(current: ExecutionStatus, target: ExecutionStatus) -> bool:
    """Return True if *current* may move to *target*."""
    return target in EXECUTION_TRANSITIONS[current]


class ActorExecution(BaseModel):
    """One attempt to run an actor."""

    id: str
    actor_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    start_time: datetime | None = None
    end_time: datetime | None = None
    results: Any = None
    logs: str | None = None
    created_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ActorExecution":
        """Build an ``ActorExecution`` from an ``actor_executions`` row mapping."""
        return cls(
            id=row["execution_id"],
            actor_id=row["actor_id"],
            status=ExecutionStatus(row["status"]),
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
            results=row.get("results"),
            logs=row.get("logs"),
            created_at=row.get("created_at"),
        )
