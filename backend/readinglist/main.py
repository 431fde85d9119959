"""FastAPI application entry point."""

import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from readinglist.api.v1.router import api_router
from readinglist.config import get_settings
from readinglist.errors import ReadingListError
from readinglist.logging_utils import setup_logging
from readinglist.services.metadata_extractor import MetadataExtractor

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


async def handle_reading_list_error(request: Request, exc: ReadingListError) -> JSONResponse:
    """Render a core error as ``{"error": {"message": ...}}``."""
    status_code = exc.http_status
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(status_code, exc.message)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed input with the same envelope as core validation errors."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return error_response(400, "; ".join(parts) or "Invalid request")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("Starting %s in %s mode", settings.app_name, settings.environment)

    if settings.storage_backend == "sql":
        from readinglist.db.session import init_db

        await init_db()
        logger.info("Database tables initialized")
    else:
        logger.info("Using in-memory article storage")

    app.state.metadata_extractor = MetadataExtractor(settings)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.metadata_extractor.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Personal reading list: save article URLs and track reading progress",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_request_timing(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Log how long each request took."""
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s took %.0fms", request.method, request.url.path, elapsed_ms)
        return response

    app.add_exception_handler(ReadingListError, handle_reading_list_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    return app


app = create_app()
