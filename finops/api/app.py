"""Main FastAPI application for the operations service

This module creates and configures the FastAPI application with all
endpoints, middleware, and error handling.
"""

from typing import Optional
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finops import __version__
from finops.api.auth import router as auth_router
from finops.api.dependencies import ServiceContainer, build_container
from finops.api.endpoints import router as service_router
from finops.api.operation_endpoints import router as operations_router
from finops.api.setup_endpoints import router as setup_router
from finops.config.settings import Settings, load_settings
from finops.services.exceptions import (
    AuthenticationError,
    BusinessRuleError,
    FinOpsError,
    PermissionDenied,
    TransactionError,
    ValidationError,
)
from finops.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    container: ServiceContainer = app.state.container
    settings = container.settings

    logger.info(f"Starting operations API in {settings.environment.value} mode")

    if settings.database.create_schema:
        await container.database.create_schema()

    yield

    logger.info("Shutting down operations API")
    await container.database.close()
    logger.info("Operations API shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Without arguments, settings are loaded from the environment and a missing
    ``DATABASE_URL`` aborts startup.
    """
    if container is not None:
        settings = container.settings
    elif settings is None:
        settings = load_settings()
        setup_logging(settings.logging)

    app = FastAPI(
        title="Financial Operations API",
        description="Authenticated bookkeeping of BUY/SELL operations.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )
    app.state.container = container or build_container(settings)

    setup_middleware(app, settings)
    setup_exception_handlers(app, settings)

    app.include_router(service_router)
    app.include_router(setup_router)
    app.include_router(auth_router)
    app.include_router(operations_router)

    return app


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Setup middleware for the FastAPI app"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id_and_timing(request: Request, call_next):
        """Add request ID and measure request timing"""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        metrics = request.app.state.container.metrics

        try:
            response = await call_next(request)
        except Exception as e:
            metrics.increment_counter(
                "http_requests_errors_total",
                1,
                {
                    "method": _method_tag(request),
                    "endpoint": _route_template(request),
                    "error_type": type(e).__name__
                }
            )
            raise

        process_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)

        metrics.record_timer(
            "http_request_duration_seconds",
            process_time,
            {
                "method": _method_tag(request),
                "endpoint": _route_template(request),
                "status_code": str(response.status_code)
            }
        )
        return response


_KNOWN_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"}


def _route_template(request: Request) -> str:
    """Matched route path (``/api/operations/stats``), never the raw URL."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def _method_tag(request: Request) -> str:
    return request.method if request.method in _KNOWN_METHODS else "OTHER"


def _error_response(request: Request, status_code: int, content: dict, headers: Optional[dict] = None) -> JSONResponse:
    content["requestId"] = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def setup_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Map domain errors to one HTTP status and message each"""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Schema-level failures on request bodies and query parameters"""
        logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")

        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return _error_response(request, 400, {"message": "Validation error", "errors": errors})

    @app.exception_handler(FinOpsError)
    async def domain_exception_handler(request: Request, exc: FinOpsError):
        if isinstance(exc, ValidationError):
            return _error_response(request, 400, {"message": "Validation failed", "details": exc.message})

        if isinstance(exc, BusinessRuleError):
            return _error_response(request, 422, {"message": "Business rule violation", "details": exc.message})

        if isinstance(exc, AuthenticationError):
            logger.info(f"Authentication failed for {request.url.path}: {exc.message}")
            return _error_response(
                request, 401, {"message": exc.message}, headers={"WWW-Authenticate": "Bearer"}
            )

        if isinstance(exc, PermissionDenied):
            return _error_response(request, 403, {"message": exc.message})

        if isinstance(exc, TransactionError):
            details = exc.message if settings.is_development else "Internal server error"
            return _error_response(request, 500, {"message": "Transaction failed", "details": details})

        logger.error(f"Unmapped domain error for {request.url.path}: {exc}")
        return _error_response(request, 500, {"message": "Internal server error"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions (unknown routes, wrong methods)"""
        return _error_response(request, exc.status_code, {"message": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions"""
        logger.error(f"Unhandled error for {request.url.path}: {exc}", exc_info=True)

        content = {"message": "Internal server error"}
        if settings.is_development:
            content["details"] = str(exc)
        return _error_response(request, 500, content)

