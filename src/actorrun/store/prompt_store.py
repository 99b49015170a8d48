"""History of generated actor URLs (``actor_prompts``)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import sqlalchemy as sa

from actorrun.store import sql as sql_schema
from actorrun.store.base import SQLStore


class PromptStore(SQLStore):
    """Record which URL the planner produced for a user's prompt."""

    def record_prompt(self, *, namespace: str, user_id: str, prompt: str, response_url: str) -> str:
        """Insert a prompt record and return its ``prompt_id``."""
        prompt_id = str(uuid4())
        with self._session() as session:
            session.execute(
                sa.insert(sql_schema.actor_prompts).values(
                    prompt_id=prompt_id,
                    namespace=namespace,
                    user_id=user_id,
                    prompt=prompt,
                    response_url=response_url,
                    created_at=datetime.now(timezone.utc),
                )
            )
            session.commit()
        return prompt_id

    def list_prompts(self, namespace: str) -> list[dict[str, Any]]:
        """Return prompt records for *namespace*, newest first."""
        table = sql_schema.actor_prompts
        with self._session() as session:
            rows = (
                session.execute(
                    sa.select(table).where(table.c.namespace == namespace).order_by(table.c.created_at.desc())
                )
                .mappings()
                .all()
            )
        return [dict(r) for r in rows]
