from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from linksite import __version__
from linksite.app.api import (
    admin_router,
    auth_router,
    links_router,
    profile_router,
    public_profile_router,
    settings_router,
)
from linksite.app.core.config import settings
from linksite.app.core.logging import get_log_context, get_logger, setup_logging
from linksite.app.db.async_session import close_async_engine
from linksite.app.db.dependencies import SessionDep
from linksite.app.db.init_db import create_all_tables, verify_connection
from linksite.app.exceptions import LinksiteException, RateLimitExceededError
from linksite.app.middleware.rate_limit import RateLimiter, get_client_key
from linksite.app.middleware.request_id import RequestIdMiddleware, get_request_id


def create_app(
    rate_limiter: RateLimiter | None = None,
    manage_database: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        rate_limiter: Limiter to use; built from settings when omitted
        manage_database: Create tables on startup and dispose the engine on
            shutdown. Tests that override ``get_db`` pass False.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    limiter = rate_limiter or RateLimiter.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Prepare the database on startup; release limiter and engine on shutdown."""
        if manage_database:
            if not await verify_connection():
                logger.error("Database connection failed!")
                raise RuntimeError("Cannot connect to database")
            await create_all_tables()

        logger.info(
            "Application startup complete",
            extra=get_log_context(
                buckets={
                    name: limiter.policy(name).max_requests for name in limiter.buckets
                },
                dev_mode=limiter.dev_mode,
            ),
        )

        yield

        app.state.rate_limiter.close()
        if manage_database:
            await close_async_engine()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="linksite",
        description="Link-in-bio profiles with per-client rate limiting",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.rate_limiter = limiter

    # Middleware order matters: last added = first executed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
        max_age=600,
    )
    app.add_middleware(RequestIdMiddleware)

    @app.get("/health")
    async def health(session: SessionDep) -> dict[str, Any]:
        """Health check with database and rate limiter status."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}

        try:
            await session.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "ok"}
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {
                "status": "error",
                "error": str(e)[:100],
            }

        limiter_state = app.state.rate_limiter
        health_status["components"]["rate_limiter"] = {
            "status": "disabled" if limiter_state.dev_mode else "ok",
            "buckets": {
                name: {
                    "max_requests": limiter_state.policy(name).max_requests,
                    "window_seconds": limiter_state.policy(name).window_seconds,
                }
                for name in limiter_state.buckets
            },
        }
        return health_status

    app.include_router(auth_router)
    app.include_router(settings_router)
    app.include_router(links_router)
    app.include_router(profile_router)
    app.include_router(admin_router)
    # Catch-all /{username}; keep last
    app.include_router(public_profile_router)

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        """Handle RateLimitExceededError and return HTTP 429 response."""
        headers = {}
        if exc.retry_after is not None:
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error_code, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(LinksiteException)
    async def linksite_exception_handler(request: Request, exc: LinksiteException) -> JSONResponse:
        """Map application exceptions to their status codes."""
        if exc.status_code >= 500:
            logger.error(
                f"{type(exc).__name__}: {exc.message}",
                extra=get_log_context(request_id=get_request_id(request)),
            )
            message = exc.message if settings.debug else "Internal server error"
        else:
            message = exc.message
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error_code, "message": message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log unhandled exceptions; never return a traceback to the client."""
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra=get_log_context(
                request_id=request_id,
                client_key=get_client_key(request.headers),
                path=request.url.path,
                method=request.method,
            ),
        )

        content = {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()
