"""Shared constructor and error translation for the SQL stores."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from actorrun.exceptions import StoreError
from actorrun.store.sql import METADATA, build_session_factory

logger = logging.getLogger(__name__)


class SQLStore:
    """Base for stores that accept a *db_path* or a pre-built *session_factory*.

    Args:
        db_path: Convenience path for a local SQLite file.  Mutually
            exclusive with *session_factory*.
        session_factory: Pre-configured ``sessionmaker`` (e.g. PostgreSQL
            or a shared test fixture).
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        session_factory: sessionmaker | None = None,
    ) -> None:
        if session_factory is not None:
            self._session_factory = session_factory
        elif db_path is not None:
            self._session_factory = build_session_factory(db_path=db_path)
        else:
            self._session_factory = build_session_factory()

        # Ensure schema exists (auto-create for SQLite / local dev)
        with self._session_factory() as session:
            METADATA.create_all(session.connection())
            session.commit()

    @contextlib.contextmanager
    def _session(self) -> Iterator[Session]:
        """Open a session, converting driver failures into ``StoreError``."""
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Database error in %s: %s", type(self).__name__, exc)
            raise StoreError(f"{type(exc).__name__}: {exc}") from exc
