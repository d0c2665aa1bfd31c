"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from ballot_api.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, setup_cors
from ballot_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included."""
    from ballot_api.api.v1.auth import router as auth_router
    from ballot_api.api.v1.ballot import ballot_router
    from ballot_api.api.v1.elections import elections_router
    from ballot_api.api.v1.voters import voters_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(auth_router)
    root_router.include_router(elections_router)
    root_router.include_router(voters_router)
    root_router.include_router(ballot_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app."""
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
