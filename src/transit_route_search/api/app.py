"""FastAPI application for route search."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..core.exceptions import AuthError, TransitSearchError, ValidationError
from ..core.search import RouteSearcher
from ..store.database import RouteStore
from .rate_limit import RateLimiter, RateLimitMiddleware
from .responses import (
    server_error_response,
    unauthorized_response,
    validation_error_response,
)
from .routes import router as search_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    store: RouteStore | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Service settings; read from the environment if omitted
        store: Route store; opened from ``settings.db_path`` if omitted
        rate_limiter: Gate in front of every endpoint; built from settings if omitted

    Raises:
        StoreNotFoundError: If no store is given and the database file is missing
    """
    settings = settings or Settings.from_env()
    store = store or RouteStore(settings.db_path)
    limiter = rate_limiter or RateLimiter(
        settings.rate_limit,
        window=settings.rate_limit_window,
        exempt_keys=settings.rate_limit_exempt_keys,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Route search API starting (store: {store.db_path})")
        limiter.start()
        yield
        limiter.stop()
        logger.info("Route search API stopped")

    app = FastAPI(
        title="Transit Route Search API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.searcher = RouteSearcher(store)
    app.state.rate_limiter = limiter

    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.include_router(search_router)

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
        return unauthorized_response()

    @app.exception_handler(ValidationError)
    async def handle_validation_error(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        logger.debug(f"Invalid {exc.field} on {request.url.path}: {exc.message}")
        return validation_error_response(exc.to_field_errors())

    @app.exception_handler(TransitSearchError)
    async def handle_search_error(
        request: Request, exc: TransitSearchError
    ) -> JSONResponse:
        logger.error(
            f"{type(exc).__name__} on {request.url.path}: {exc}", exc_info=exc
        )
        return server_error_response()

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unexpected error on {request.url.path}")
        return server_error_response()

    @app.get("/healthz", tags=["ops"], summary="Health check")
    async def healthz():
        return {"status": "ok"}

    return app
