"""Actor persistence: create, resolve by id or namespace, update filters."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from actorrun.exceptions import DuplicateNamespaceError, StoreError
from actorrun.models.actor import Actor, ResponseFilters, namespace_from_title
from actorrun.store import sql as sql_schema
from actorrun.store.base import SQLStore

logger = logging.getLogger(__name__)


class ActorStore(SQLStore):
    """Persist actors in the ``actors`` table."""

    def create_actor(
        self,
        *,
        title: str,
        user_id: str,
        description: str = "",
        icon: str = "",
        url: str = "",
        tags: list[str] | None = None,
        script: str | None = None,
        response_filters: ResponseFilters | None = None,
    ) -> Actor:
        """Insert a new actor; the namespace is derived from *title*.

        Raises:
            DuplicateNamespaceError: If the derived namespace is taken.
        """
        namespace = namespace_from_title(title)
        now = datetime.now(timezone.utc)
        actor = Actor(
            id=str(uuid4()),
            namespace=namespace,
            title=title,
            description=description,
            icon=icon,
            url=url,
            tags=list(tags or []),
            script=script,
            response_filters=response_filters,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        if self.get_by_namespace(namespace) is not None:
            raise DuplicateNamespaceError(namespace)

        try:
            with self._session_factory() as session:
                session.execute(
                    sa.insert(sql_schema.actors).values(
                        actor_id=actor.id,
                        namespace=actor.namespace,
                        title=actor.title,
                        description=actor.description,
                        icon=actor.icon,
                        url=actor.url,
                        tags=actor.tags,
                        script=actor.script,
                        response_filters=_filters_json(response_filters),
                        user_id=actor.user_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
                session.commit()
        except IntegrityError as exc:
            raise DuplicateNamespaceError(namespace) from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"{type(exc).__name__}: {exc}") from exc

        logger.info("Created actor %s (%s)", actor.namespace, actor.id)
        return actor

    def get_actor(self, actor_id: str) -> Actor | None:
        """Return the actor with *actor_id*, or ``None``."""
        return self._select_one(sql_schema.actors.c.actor_id == actor_id)

    def get_by_namespace(self, namespace: str) -> Actor | None:
        """Return the actor with *namespace*, or ``None``."""
        return self._select_one(sql_schema.actors.c.namespace == namespace)

    def find_actor(self, ref: str) -> Actor | None:
        """Resolve *ref* as an actor id first, then as a namespace.

        Raises:
            StoreError: On transient database failures.
        """
        return self.get_actor(ref) or self.get_by_namespace(ref)

    def list_actors(self, *, user_id: str | None = None, limit: int = 100) -> list[Actor]:
        """Return actors newest first, optionally for one owner."""
        stmt = sa.select(sql_schema.actors).order_by(sql_schema.actors.c.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(sql_schema.actors.c.user_id == user_id)
        stmt = stmt.limit(limit)
        with self._session() as session:
            rows = session.execute(stmt).mappings().all()
        return [Actor.from_row(dict(r)) for r in rows]

    def update_response_filters(self, actor_id: str, filters: ResponseFilters | None) -> None:
        """Replace the saved response filters of an actor."""
        self._update(actor_id, response_filters=_filters_json(filters))

    def update_script(self, actor_id: str, script: str | None) -> None:
        """Replace (or clear) the user-supplied extraction script."""
        self._update(actor_id, script=script)

    def delete_actor(self, actor_id: str) -> bool:
        """Delete an actor and its execution history. Returns False if it did not exist."""
        with self._session() as session:
            session.execute(
                sa.delete(sql_schema.actor_executions).where(sql_schema.actor_executions.c.actor_id == actor_id)
            )
            deleted = session.execute(sa.delete(sql_schema.actors).where(sql_schema.actors.c.actor_id == actor_id))
            session.commit()
        return deleted.rowcount > 0

    # ------------------------------------------------------------------

    def _select_one(self, clause: Any) -> Actor | None:
        with self._session() as session:
            row = session.execute(sa.select(sql_schema.actors).where(clause)).mappings().first()
        return Actor.from_row(dict(row)) if row else None

    def _update(self, actor_id: str, **fields: Any) -> None:
        fields["updated_at"] = datetime.now(timezone.utc)
        with self._session() as session:
            session.execute(
                sa.update(sql_schema.actors).where(sql_schema.actors.c.actor_id == actor_id).values(**fields)
            )
            session.commit()


def _filters_json(filters: ResponseFilters | None) -> dict[str, Any] | None:
    return filters.model_dump(mode="json") if filters is not None else None
