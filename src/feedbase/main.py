"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Lifespan manages
startup/shutdown, middleware and routers are registered here, and one
exception handler maps every FeedbaseError to {"message", "status"}.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedbase import __version__
from feedbase.api import api_router
from feedbase.config import settings
from feedbase.errors import FeedbaseError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "feedbase.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("feedbase.shutdown")

    from feedbase.db.engine import engine
    await engine.dispose()


async def feedbase_error_handler(request: Request, exc: FeedbaseError) -> JSONResponse:
    if exc.status >= 500:
        logger.error("request.failed", error=exc.message)
    return JSONResponse(status_code=exc.status, content=exc.to_dict())


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Feedbase",
        description="Feedback boards — identity, tenant authorization, filtering and ranking",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from feedbase.middleware.request_id import RequestIdMiddleware
    from feedbase.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(FeedbaseError, feedbase_error_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: feedbase.main:app)
app = create_app()
