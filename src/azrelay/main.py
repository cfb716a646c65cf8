"""FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from azrelay import __version__
from azrelay.api.routes import api_router
from azrelay.config import Settings, get_settings
from azrelay.middleware.logging import LoggingMiddleware, configure_logging
from azrelay.middleware.request_id import RequestIdMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown events."""
    settings: Settings = app.state.settings

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
    )

    # Validate required settings
    try:
        settings.validate_required()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise

    logger.info(
        f"Proxy server is running on http://{settings.server.host}:{settings.listen_port}",
        extra={"version": __version__},
    )
    logger.info(f"Proxying requests to: {settings.azure_api_endpoint}")

    yield

    logger.info("Shutting down azrelay")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="azrelay",
        description="OpenAI-compatible FastAPI relay for Azure chat completions",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Last added = first executed: CORS wraps request IDs, which wrap logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors.allowed_origins,
        allow_methods=settings.server.cors.allowed_methods,
        allow_headers=settings.server.cors.allowed_headers,
    )

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    app.include_router(api_router)

    return app


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "errors": exc.errors(),
        },
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle value errors."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": str(exc),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "request_id": request_id,
        },
    )


def run() -> None:
    """Console entry point: validate configuration, then serve.

    Exits with status 1 before binding a socket when a required setting
    is missing.
    """
    settings = get_settings()

    try:
        settings.validate_required()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.listen_port,
        log_config=None,
    )


# Create the default app instance
app = create_app()
