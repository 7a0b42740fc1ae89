"""FastAPI application factory.

Main entry point for the coursehub Web API.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursehub import __version__
from coursehub.config import ApiConfig, load_app_config
from coursehub.db.database import get_db_path, init_db
from coursehub.web.dispatch import failure
from coursehub.web.routes import (
    assignments_router,
    discussion_router,
    health_router,
    students_router,
    weekly_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    logger.info("api_startup", version=__version__, database=str(get_db_path()))
    yield
    logger.info("api_shutdown")


def preflight_headers(request: Request, api_config: ApiConfig) -> dict[str, str]:
    """CORS headers for a preflight answer."""
    origin = request.headers.get("origin")
    if "*" in api_config.cors_origins:
        allow_origin = "*"
    elif origin in api_config.cors_origins:
        allow_origin = origin
    else:
        allow_origin = api_config.cors_origins[0] if api_config.cors_origins else ""

    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ", ".join(api_config.cors_methods),
        "Access-Control-Allow-Headers": ", ".join(api_config.cors_headers),
    }


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite file to serve. Defaults to the configured path.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()
    init_db(db_path or Path(config.database.path))

    app = FastAPI(
        title="coursehub API",
        description="Course management API: students, assignments, discussion, weekly breakdown",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=config.api.cors_methods,
        allow_headers=config.api.cors_headers,
    )

    # Registered last so it runs first: OPTIONS never reaches routing or the store
    @app.middleware("http")
    async def answer_preflight(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=preflight_headers(request, config.api))
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        logger.info(
            "api.http_error",
            method=request.method,
            path=request.url.path,
            status=exc.status_code,
        )
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return failure(message, exc.status_code)

    # Include routers
    app.include_router(health_router)
    app.include_router(students_router)
    app.include_router(assignments_router)
    app.include_router(discussion_router)
    app.include_router(weekly_router)

    return app
