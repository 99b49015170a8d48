"""actorrun exception hierarchy."""

from __future__ import annotations

from typing import Any


class ActorRunError(Exception):
    """Base exception for all actorrun errors."""


class LaunchError(ActorRunError):
    """Raised when the shared browser process cannot be started.

    This is a configuration problem (missing executable, unsupported
    platform) and is never retried.
    """


class NavigationError(ActorRunError):
    """Raised when a navigation fails for a non-retryable reason."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}")


class CaptureError(ActorRunError):
    """Raised when a response capture fails.

    Attributes:
        partial_responses: Serialised responses gathered before the failure.
    """

    def __init__(self, message: str, partial_responses: list[dict[str, Any]] | None = None) -> None:
        self.partial_responses = list(partial_responses or [])
        super().__init__(f"{message} ({len(self.partial_responses)} partial responses)")


class PlanningError(ActorRunError):
    """Raised when the content planner returns an unusable plan."""


class ActorNotFoundError(ActorRunError):
    """Raised when an actor id or namespace does not resolve."""

    def __init__(self, actor_ref: str) -> None:
        self.actor_ref = actor_ref
        super().__init__(f'Actor with ID or namespace "{actor_ref}" not found')


class DuplicateNamespaceError(ActorRunError):
    """Raised when an actor namespace is already taken."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        super().__init__(f"Actor namespace {namespace!r} already exists")


class InvalidTransitionError(ActorRunError):
    """Raised on an illegal execution status transition (programming error)."""

    def __init__(self, execution_id: str, current: str, target: str) -> None:
        self.execution_id = execution_id
        self.current = current
        self.target = target
        super().__init__(f"Execution {execution_id} cannot move from {current} to {target}")


class StoreError(ActorRunError):
    """Raised on transient persistence failures (distinct from 'not found')."""
