"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics, health
checks and the product routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from vectorcart import __version__
from vectorcart.api.dependencies import ServiceContainer
from vectorcart.api.routes import router
from vectorcart.config import get_settings
from vectorcart.exceptions import ConfigurationError, ErrorCode, VectorCartError
from vectorcart.logging_config import get_logger, setup_logging
from vectorcart.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.ITEM_NOT_FOUND: 404,
    ErrorCode.COLLECTION_NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_ITEMS: 404,
    ErrorCode.LLM_RATE_LIMIT: 429,
    ErrorCode.MALFORMED_RESPONSE: 502,
    ErrorCode.EMBEDDING_SERVICE_ERROR: 503,
    ErrorCode.EMBEDDING_UNAVAILABLE: 503,
    ErrorCode.LLM_TIMEOUT: 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the service container on startup and closes it on shutdown.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting VectorCart",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    try:
        app.state.services = ServiceContainer.from_settings(settings)
    except ConfigurationError as e:
        logger.warning(f"Product search disabled: {e.message}", extra=e.details)
        app.state.services = None

    yield

    # Shutdown
    logger.info("Shutting down VectorCart")
    services: ServiceContainer | None = getattr(app.state, "services", None)
    if services is not None:
        await services.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="VectorCart",
        description="Semantic product search with AI-generated explanations",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(VectorCartError, vectorcart_exception_handler)

    # Register routes
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Metrics"])
    app.include_router(router)

    return app


async def vectorcart_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle VectorCartError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, VectorCartError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    status_code = get_status_code(exc.code)
    log = logger.warning if status_code < 500 else logger.error
    log(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
    )


def get_status_code(error_code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    return STATUS_BY_CODE.get(error_code, 500)


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> dict[str, Any]:
    """Readiness check.

    Reports whether the product search services were configured at startup.
    """
    services = getattr(request.app.state, "services", None)
    checks: dict[str, str] = {
        "config": "ok",
        "services": "ok" if services is not None else "not_configured",
    }

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def liveness_check() -> dict[str, str]:
    """Liveness check."""
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
