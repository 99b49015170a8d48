"""FastAPI app for actorrun: REST API over the extraction engine."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from actorrun.api.routes import router
from actorrun.api.runner import shutdown_runner
from actorrun.exceptions import (
    ActorNotFoundError,
    DuplicateNamespaceError,
    NavigationError,
    PlanningError,
    StoreError,
)
from actorrun.logging_setup import configure_logging
from actorrun.settings import get_settings

try:
    from importlib.metadata import version

    VERSION = version("actorrun")
except Exception:
    VERSION = "0.0.0"


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    yield
    shutdown_runner()


def _error_handler(status_code: int):
    def handler(_request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.env)

    application = FastAPI(
        title="actorrun",
        description="Execution engine for marketplace extraction actors.",
        version=VERSION,
        lifespan=_lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(ActorNotFoundError, _error_handler(404))
    application.add_exception_handler(DuplicateNamespaceError, _error_handler(409))
    application.add_exception_handler(PlanningError, _error_handler(422))
    application.add_exception_handler(NavigationError, _error_handler(502))
    application.add_exception_handler(StoreError, _error_handler(503))

    application.include_router(router)
    return application


app = create_app()
