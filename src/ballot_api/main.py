"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from ballot_api import __version__
from ballot_api.core.config import get_settings
from ballot_api.core.database import create_database
from ballot_api.core.logging import setup_logging
from ballot_api.lib.ballot import (
    AlreadyVotedError,
    BallotRejection,
    ElectionClosedError,
    ElectionNotFoundError,
    InvalidSelectionError,
    NotAssignedError,
    TransientStoreFailure,
    VoterNotFoundError,
)

REJECTION_STATUS_CODES: dict[type[BallotRejection], int] = {
    VoterNotFoundError: 404,
    ElectionNotFoundError: 404,
    NotAssignedError: 403,
    AlreadyVotedError: 409,
    ElectionClosedError: 409,
    InvalidSelectionError: 422,
    TransientStoreFailure: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: create the database handle on startup, dispose on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir, json_logs=settings.log_json)
    app.state.database = create_database(settings.database_url, schema=settings.database_schema, echo=False)
    logger.info(f"Ballot API {__version__} started ({settings.environment})")

    yield

    await app.state.database.dispose()
    app.state.database = None


def rejection_status_code(exc: BallotRejection) -> int:
    """Map a ballot rejection to its HTTP status code."""
    for cls in type(exc).__mro__:
        if cls in REJECTION_STATUS_CODES:
            return REJECTION_STATUS_CODES[cls]
    return 400


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Ballot API",
        description="Election administration with atomic ballot submission",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(BallotRejection)
    async def ballot_rejection_handler(request: Request, exc: BallotRejection) -> JSONResponse:
        status_code = rejection_status_code(exc)
        if status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.code}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
            headers={"Retry-After": "1"} if isinstance(exc, TransientStoreFailure) else None,
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    from ballot_api.api.router import create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router(settings))

    return app
