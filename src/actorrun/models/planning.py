"""Planner output models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PaginationSpec(BaseModel):
    """How to page through results: which control to click and how far."""

    next_page_selector: str | None = None
    max_pages: int = Field(1, ge=1)

    @property
    def enabled(self) -> bool:
        return bool(self.next_page_selector) and self.max_pages > 1


class PlanningResult(BaseModel):
    """Validated plan: target URL, extraction script, and selectors."""

    url: str
    script: str
    selectors: dict[str, str] = Field(default_factory=dict)
    pagination: PaginationSpec | None = None
