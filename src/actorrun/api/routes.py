"""API routes for actorrun."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, HttpUrl

from actorrun.api.runner import EngineRunner, get_runner
from actorrun.engine.executor import ExtractionOutput, ExtractionRequest
from actorrun.exceptions import ActorNotFoundError
from actorrun.models.actor import Actor, ResponseFilters
from actorrun.models.execution import ActorExecution
from actorrun.store.actor_store import ActorStore
from actorrun.store.execution_store import ExecutionStore

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class ExecuteRequest(BaseModel):
    """Body of ``POST /actors/{ref}/execute``."""

    intent: str = Field("", description="Natural-language description of the data to extract.")
    context: dict[str, Any] = Field(default_factory=dict, description="Opaque values passed to the planner and script.")


class GenerateUrlRequest(BaseModel):
    intent: str
    user_id: str
    context: dict[str, Any] = Field(default_factory=dict)


class ScrapeRequest(BaseModel):
    """Body of ``POST /scrape``."""

    url: HttpUrl
    selectors: dict[str, str] = Field(..., description="Result name to CSS selector.")


class CreateActorRequest(BaseModel):
    title: str
    user_id: str
    description: str = ""
    icon: str = ""
    url: str = ""
    tags: list[str] = Field(default_factory=list)
    script: str | None = None
    response_filters: ResponseFilters | None = None


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def _stores() -> tuple[ActorStore, ExecutionStore]:
    from actorrun.store import build_stores

    actors, executions, _ = build_stores()
    return actors, executions


def get_actor_store() -> ActorStore:
    return _stores()[0]


def get_execution_store() -> ExecutionStore:
    return _stores()[1]


def _resolve(actors: ActorStore, ref: str) -> Actor:
    actor = actors.find_actor(ref)
    if actor is None:
        raise ActorNotFoundError(ref)
    return actor


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/actors", response_model=Actor, status_code=201)
def create_actor(req: CreateActorRequest, actors: ActorStore = Depends(get_actor_store)) -> Actor:
    """Register a new actor; its namespace is derived from the title."""
    return actors.create_actor(**req.model_dump(exclude={"response_filters"}), response_filters=req.response_filters)


@router.get("/actors/{ref}", response_model=Actor)
def get_actor(ref: str, actors: ActorStore = Depends(get_actor_store)) -> Actor:
    return _resolve(actors, ref)


@router.delete("/actors/{ref}", status_code=204)
def delete_actor(ref: str, user_id: str = Query(...), actors: ActorStore = Depends(get_actor_store)) -> None:
    """Delete an actor owned by *user_id*; other owners see a 404."""
    actor = _resolve(actors, ref)
    if actor.user_id != user_id:
        raise ActorNotFoundError(ref)
    actors.delete_actor(actor.id)


@router.post("/actors/{ref}/execute", response_model=ExtractionOutput)
def execute_actor(ref: str, req: ExecuteRequest, runner: EngineRunner = Depends(get_runner)) -> ExtractionOutput:
    """Run an actor synchronously and return its output.

    A failed execution is still a 200 with ``status="failed"``; only an
    unknown actor is a 404.
    """
    return runner.execute(ExtractionRequest(actor_ref=ref, intent=req.intent, context=req.context))


@router.post("/actors/{ref}/url")
def generate_actor_url(
    ref: str, req: GenerateUrlRequest, runner: EngineRunner = Depends(get_runner)
) -> dict[str, str]:
    """Rewrite the actor's platform URL for a prompt and record it."""
    url = runner.generate_url(ref, req.intent, user_id=req.user_id, context=req.context)
    return {"url": url}


@router.post("/scrape")
def scrape(req: ScrapeRequest, runner: EngineRunner = Depends(get_runner)) -> dict[str, Any]:
    """Return the trimmed text of each named selector on a page (cached for an hour)."""
    data = runner.scrape(str(req.url), req.selectors)
    return {"url": str(req.url), "data": data}


@router.get("/actors/{ref}/executions", response_model=list[ActorExecution])
def list_actor_executions(
    ref: str,
    limit: int = Query(20, ge=1, le=200),
    actors: ActorStore = Depends(get_actor_store),
    executions: ExecutionStore = Depends(get_execution_store),
) -> list[ActorExecution]:
    """Return an actor's executions, newest first."""
    actor = _resolve(actors, ref)
    return executions.list_executions(actor.id, limit=limit)


@router.get("/executions/{execution_id}", response_model=ActorExecution)
def get_execution(execution_id: str, executions: ExecutionStore = Depends(get_execution_store)) -> ActorExecution:
    execution = executions.get_execution(execution_id)
    if execution is None:
        raise HTTPException(status_code=404, detail="Execution not found.")
    return execution
