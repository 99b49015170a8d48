"""Actor definitions and their saved response filters."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

_WHITESPACE = re.compile(r"\s+")


def namespace_from_title(title: str) -> str:
    """Derive an actor namespace from its title (``"Job Board"`` → ``"job-board"``)."""
    return _WHITESPACE.sub("-", title.strip().lower())


class ResponseFilters(BaseModel):
    """A previously chosen response-shape descriptor.

    ``selected_response_id`` marks the captured response the owner cares
    about; ``properties`` whitelists keys per item; ``path`` is a dotted
    path into each response payload; ``default_result`` caps every array.
    """

    selected_response_id: str | None = None
    properties: list[str] = Field(default_factory=list)
    path: str = ""
    default_result: int | None = Field(20, ge=0)


class Actor(BaseModel):
    """A user-defined extraction agent."""

    id: str
    namespace: str
    title: str
    description: str = ""
    icon: str = ""
    url: str = ""
    tags: list[str] = Field(default_factory=list)
    script: str | None = None
    response_filters: ResponseFilters | None = None
    user_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Actor":
        """Build an ``Actor`` from an ``actors`` table row mapping."""
        filters = row.get("response_filters")
        return cls(
            id=row["actor_id"],
            namespace=row["namespace"],
            title=row["title"],
            description=row.get("description") or "",
            icon=row.get("icon") or "",
            url=row.get("url") or "",
            tags=list(row.get("tags") or []),
            script=row.get("script"),
            response_filters=ResponseFilters(**filters) if filters else None,
            user_id=row["user_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
