"""
Media Discovery API entry point.
Builds the FastAPI app: logging, error envelopes, search and health routers,
telemetry, and HTTP client shutdown.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from media_discovery.api.dependencies import close_clients
from media_discovery.api.routers import health_router, search_router
from media_discovery.config import Settings, get_settings
from media_discovery.config.logging import configure_logging
from media_discovery.core.exceptions import AppException
from media_discovery.core.telemetry import current_trace_id, setup_telemetry

logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Turn a free-text request ("feel-good movies like Forrest Gump from the 90s")
into a ranked, explained list of movies and shows from the TMDb catalog.

- Named titles are looked up exactly and short-circuit to a single result
- Otherwise genre, mood, person and similar-title discovery run concurrently
- Every result carries a relevance score and a one-line reason
"""


def describe_backends(settings: Settings) -> str:
    """One-line summary of the collaborators this process will use."""
    extractor = f"llm/{settings.LLM_PROVIDER}" if settings.LLM_API_KEY else "rule-based"
    return f"catalog={settings.CATALOG_BACKEND}, intent_extractor={extractor}"


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log the configured backends; close catalog and model HTTP clients on the way out."""
    settings = get_settings()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({describe_backends(settings)})")

    yield

    await close_clients()
    logger.info("HTTP clients closed, shutdown complete")


# =============================================================================
# Exception Handlers
# =============================================================================


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Application errors keep their own status and code."""
    if exc.status_code >= 500:
        logger.warning(
            f"{exc.error_code} on {request.url.path}: {exc.message}",
            extra={"trace_id": current_trace_id()},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies use the same envelope as every other error."""
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": "INVALID_REQUEST",
                "message": "Request body failed validation",
                "details": {"errors": [
                    {"field": ".".join(str(p) for p in error["loc"]), "message": error["msg"]}
                    for error in exc.errors()
                ]},
            }
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a 500 with no internals leaked."""
    logger.exception(
        f"Unhandled exception on {request.url.path}: {exc}",
        extra={"trace_id": current_trace_id()},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(debug=settings.DEBUG, service=settings.APP_NAME)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=API_DESCRIPTION,
        lifespan=lifespan,
    )

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(search_router)

    setup_telemetry(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("media_discovery.main:app", host="0.0.0.0", port=8000, reload=True)
