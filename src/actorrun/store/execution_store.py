"""Execution record persistence (``actor_executions``)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import sqlalchemy as sa

from actorrun.models.execution import ActorExecution, ExecutionStatus
from actorrun.store import sql as sql_schema
from actorrun.store.base import SQLStore

logger = logging.getLogger(__name__)


class ExecutionStore(SQLStore):
    """CRUD for execution records.

    Status validation lives in ``ExecutionTracker``; this store writes
    whatever it is given.
    """

    def create_execution(self, actor_id: str) -> ActorExecution:
        """Insert a pending execution for *actor_id*."""
        execution = ActorExecution(
            id=str(uuid4()),
            actor_id=actor_id,
            status=ExecutionStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        with self._session() as session:
            session.execute(
                sa.insert(sql_schema.actor_executions).values(
                    execution_id=execution.id,
                    actor_id=actor_id,
                    status=execution.status.value,
                    created_at=execution.created_at,
                )
            )
            session.commit()
        logger.debug("Created execution %s for actor %s", execution.id, actor_id)
        return execution

    def get_execution(self, execution_id: str) -> ActorExecution | None:
        with self._session() as session:
            row = (
                session.execute(
                    sa.select(sql_schema.actor_executions).where(
                        sql_schema.actor_executions.c.execution_id == execution_id
                    )
                )
                .mappings()
                .first()
            )
        return ActorExecution.from_row(dict(row)) if row else None

    def update_execution(self, execution_id: str, **fields: Any) -> None:
        """Update arbitrary columns on an ``actor_executions`` row."""
        if isinstance(fields.get("status"), ExecutionStatus):
            fields["status"] = fields["status"].value
        with self._session() as session:
            session.execute(
                sa.update(sql_schema.actor_executions)
                .where(sql_schema.actor_executions.c.execution_id == execution_id)
                .values(**fields)
            )
            session.commit()

    def list_executions(self, actor_id: str | None = None, *, limit: int = 20) -> list[ActorExecution]:
        """Return executions newest first, optionally for one actor."""
        table = sql_schema.actor_executions
        stmt = sa.select(table).order_by(table.c.created_at.desc())
        if actor_id is not None:
            stmt = stmt.where(table.c.actor_id == actor_id)
        stmt = stmt.limit(limit)
        with self._session() as session:
            rows = session.execute(stmt).mappings().all()
        return [ActorExecution.from_row(dict(r)) for r in rows]
