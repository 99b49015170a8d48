"""SQLAlchemy table definitions for actor persistence.

All tables share the same ``METADATA`` instance used by ``create_all``.
"""

from __future__ import annotations

from pathlib import Path

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")
TIMESTAMP = sa.DateTime(timezone=True)
UUID_TYPE = sa.String(length=64)

METADATA = sa.MetaData()

# ---------------------------------------------------------------------------
# actors: user-defined extraction agents
# ---------------------------------------------------------------------------

actors = sa.Table(
    "actors",
    METADATA,
    sa.Column("actor_id", UUID_TYPE, primary_key=True),
    sa.Column("namespace", sa.Text(), nullable=False, unique=True),
    sa.Column("title", sa.Text(), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("icon", sa.Text(), nullable=True),
    sa.Column("url", sa.Text(), nullable=True),
    sa.Column("tags", JSON_TYPE, nullable=True),
    sa.Column("script", sa.Text(), nullable=True),
    sa.Column("response_filters", JSON_TYPE, nullable=True),
    sa.Column("user_id", sa.Text(), nullable=False),
    sa.Column("created_at", TIMESTAMP, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    sa.Column("updated_at", TIMESTAMP, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
)
sa.Index("idx_actors_user_id", actors.c.user_id)

# ---------------------------------------------------------------------------
# actor_executions: one row per execution attempt
# ---------------------------------------------------------------------------

actor_executions = sa.Table(
    "actor_executions",
    METADATA,
    sa.Column("execution_id", UUID_TYPE, primary_key=True),
    sa.Column("actor_id", UUID_TYPE, nullable=False),
    sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
    sa.Column("start_time", TIMESTAMP, nullable=True),
    sa.Column("end_time", TIMESTAMP, nullable=True),
    sa.Column("results", JSON_TYPE, nullable=True),
    sa.Column("logs", sa.Text(), nullable=True),
    sa.Column("created_at", TIMESTAMP, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
)
sa.Index("idx_executions_actor_id", actor_executions.c.actor_id, actor_executions.c.created_at)
sa.Index("idx_executions_status", actor_executions.c.status)

# ---------------------------------------------------------------------------
# actor_prompts: generated URLs per (namespace, user, prompt)
# ---------------------------------------------------------------------------

actor_prompts = sa.Table(
    "actor_prompts",
    METADATA,
    sa.Column("prompt_id", UUID_TYPE, primary_key=True),
    sa.Column("namespace", sa.Text(), nullable=False),
    sa.Column("user_id", sa.Text(), nullable=False),
    sa.Column("prompt", sa.Text(), nullable=False),
    sa.Column("response_url", sa.Text(), nullable=True),
    sa.Column("created_at", TIMESTAMP, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
)
sa.Index("idx_actor_prompts_namespace", actor_prompts.c.namespace)


# ---------------------------------------------------------------------------
# Engine / session helpers
# ---------------------------------------------------------------------------


def build_engine(*, db_path: str | Path | None = None, echo: bool = False) -> sa.Engine:
    """Create a SQLAlchemy engine for the actor database.

    ``storage.database_url`` wins when set (e.g. a PostgreSQL DSN);
    otherwise a local SQLite file at *db_path* or
    ``settings.storage.sqlite_path`` is used.

    Args:
        db_path: Override path for the SQLite file.
        echo: When True, log all SQL statements.
    """
    from actorrun.settings import get_settings

    storage = get_settings().storage

    if db_path is None and storage.database_url:
        return sa.create_engine(storage.database_url, echo=echo, pool_pre_ping=True)

    if db_path is None:
        db_path = storage.sqlite_path

    resolved = Path(db_path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    url = f"sqlite:///{resolved.as_posix()}"
    return sa.create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )


def build_session_factory(*, db_path: str | Path | None = None) -> sessionmaker:
    """Return a ``sessionmaker`` bound to the actor engine."""
    engine = build_engine(db_path=db_path)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)
