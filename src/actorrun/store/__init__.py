"""Actor store: SQL schema, engine helpers, and the three stores.

``actors``, ``actor_executions`` and ``actor_prompts`` live in one
database; the factories below share a single ``sessionmaker``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from actorrun.store.actor_store import ActorStore
    from actorrun.store.execution_store import ExecutionStore
    from actorrun.store.prompt_store import PromptStore


def build_stores(db_path: str | Path | None = None) -> tuple["ActorStore", "ExecutionStore", "PromptStore"]:
    """Factory: return actor, execution and prompt stores on one engine.

    Args:
        db_path: Optional override for the SQLite file path.
    """
    from actorrun.store.actor_store import ActorStore
    from actorrun.store.execution_store import ExecutionStore
    from actorrun.store.prompt_store import PromptStore
    from actorrun.store.sql import build_session_factory

    factory = build_session_factory(db_path=db_path)
    return (
        ActorStore(session_factory=factory),
        ExecutionStore(session_factory=factory),
        PromptStore(session_factory=factory),
    )
