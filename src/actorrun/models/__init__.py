"""Domain models for actors, executions, captured responses, and plans."""

from actorrun.models.actor import Actor, ResponseFilters
from actorrun.models.capture import CapturedResponse, CaptureResult
from actorrun.models.execution import ActorExecution, ExecutionStatus
from actorrun.models.planning import PaginationSpec, PlanningResult

__all__ = [
    "Actor",
    "ActorExecution",
    "CaptureResult",
    "CapturedResponse",
    "ExecutionStatus",
    "PaginationSpec",
    "PlanningResult",
    "ResponseFilters",
]
