"""
FastAPI main application for the Library API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from library_api.caching import HttpCacheHeadersMiddleware, ValidatorStore
from library_api.config import LibrarySettings, config
from library_api.database import InMemoryLibraryRepository, InMemoryLibraryStore, MongoLibraryRepository
from library_api.exceptions import PersistenceError, UnprocessableEntityError, format_validation_errors
from library_api.mappers import LibraryMapper, create_property_mapping_service
from library_api.models import ErrorResponse, HealthResponse, ValidationErrorResponse
from library_api.routers import ROUTERS
from library_api.seed import ensure_seed_data
from library_api.throttling import RateLimiter, ThrottlingMiddleware, parse_rate_limit_rules
from utilities.logger import bind_request_context, clear_request_context, get_logger, setup_logging

# Setup logging
logger = get_logger(__name__)

DESCRIPTION = """
A REST API for a library of authors and their books.

## Features

* **Authors**: Paging, sorting, filtering, searching and data shaping
* **Books**: Create, replace, patch (JSON Patch) and delete, with upserts
* **Content negotiation**: `application/vnd.marvin.hateoas+json` adds hypermedia links
* **Caching**: ETags, `If-None-Match` and `If-Match` (optimistic concurrency)
* **Rate Limiting**: 1000 requests per 5 minutes and 200 per 10 seconds per client

## Pagination

Author listings report paging metadata in the `X-Pagination` response header.
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: LibrarySettings = app.state.settings
    setup_logging(settings.log_level, settings.log_format, settings.log_file, settings.debug)

    # Startup
    logger.info("Starting Library API", storage_backend=settings.storage_backend)

    property_mapping_service = app.state.property_mapping_service
    client = None

    if settings.storage_backend == "mongodb":
        try:
            client = AsyncIOMotorClient(settings.mongodb_url)
            database = client[settings.mongodb_database]

            # Test connection
            await database.command("ping")
            logger.info("Database connection established", database=settings.mongodb_database)
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

        app.state.repository_factory = lambda: MongoLibraryRepository(database, property_mapping_service)
    else:
        store = InMemoryLibraryStore()
        app.state.store = store
        app.state.repository_factory = lambda: InMemoryLibraryRepository(store, property_mapping_service)

    if settings.seed_data:
        await ensure_seed_data(app.state.repository_factory())

    yield

    # Shutdown
    logger.info("Shutting down Library API")
    app.state.repository_factory = None
    if client:
        client.close()


def register_exception_handlers(app: FastAPI, settings: LibrarySettings) -> None:
    """Map exceptions to ErrorResponse bodies."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                status_code=exc.status_code
            ).model_dump(),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Invalid bodies are 422; invalid query, path or header values are 400."""
        errors = exc.errors()
        in_body = any(error.get("loc", ("",))[0] == "body" for error in errors)
        status_code = 422 if in_body else status.HTTP_400_BAD_REQUEST
        return JSONResponse(
            status_code=status_code,
            content=ValidationErrorResponse(
                error="Validation failed",
                status_code=status_code,
                errors=format_validation_errors(errors)
            ).model_dump()
        )

    @app.exception_handler(UnprocessableEntityError)
    async def unprocessable_entity_handler(request: Request, exc: UnprocessableEntityError):
        return JSONResponse(
            status_code=exc.status_code,
            content=ValidationErrorResponse(
                error="Validation failed",
                status_code=exc.status_code,
                errors=exc.errors
            ).model_dump()
        )

    @app.exception_handler(PersistenceError)
    async def persistence_exception_handler(request: Request, exc: PersistenceError):
        logger.error("Persistence failure", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="An unexpected fault happened. Try again later.",
                detail=str(exc) if settings.debug else None,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            ).model_dump()
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal server error",
                detail=str(exc) if settings.debug else None,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            ).model_dump()
        )


def create_app(settings: Optional[LibrarySettings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: configuration; defaults to the environment-driven config

    Returns:
        Configured FastAPI application
    """
    settings = settings or config

    app = FastAPI(
        title=settings.api_title,
        description=DESCRIPTION,
        version=settings.api_version,
        license_info={
            "name": "MIT",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.property_mapping_service = create_property_mapping_service()
    app.state.mapper = LibraryMapper()
    app.state.repository_factory = None
    app.state.validator_store = ValidatorStore(max_size=settings.cache_store_size)
    app.state.rate_limiter = RateLimiter(
        parse_rate_limit_rules(settings.rate_limit_rules) if settings.rate_limiting_enabled else []
    )

    # Innermost first: cache headers see the final body, throttling sees every request
    app.add_middleware(
        HttpCacheHeadersMiddleware,
        store=app.state.validator_store,
        max_age=settings.cache_max_age,
        must_revalidate=settings.cache_must_revalidate,
        path_prefix=settings.api_prefix
    )
    app.add_middleware(ThrottlingMiddleware, limiter=app.state.rate_limiter)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid4().hex
        bind_request_context(request_id, request.method, request.url.path)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.info("Request completed", status_code=response.status_code, duration_ms=duration_ms)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=["X-Pagination", "ETag", "Location", "Retry-After"],
    )

    register_exception_handlers(app, settings)

    for router in ROUTERS:
        app.include_router(router, prefix=settings.api_prefix)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        factory = request.app.state.repository_factory
        db_status = "unavailable"
        if factory:
            health_info = await factory().health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=settings.api_version,
            database_status=db_status
        )

    return app


# Create FastAPI application
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "library_api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
