"""
FastAPI application factory with CORS, error handlers, and middleware.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.src.api.health import APP_VERSION
from storefront.src.api.health import router as health_router
from storefront.src.api.routes.categories import router as categories_router
from storefront.src.api.routes.products import router as products_router
from storefront.src.core.config import settings
from storefront.src.core.exceptions import APIException
from storefront.src.core.logging import (
    clear_request_id,
    get_logger,
    set_request_id,
    setup_logging,
)
from storefront.src.services.catalog_service import catalog_service

# Initialize logging
setup_logging()
logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    logger.info(
        "Starting Storefront API",
        extra={
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG,
            "database_configured": settings.database_configured,
        },
    )

    yield

    logger.info("Shutting down application")
    await catalog_service.close()
    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Storefront API",
        description="Product catalog: listing, filtering, sorting and product details",
        version=APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    configure_cors(app)
    register_middleware(app)
    register_exception_handlers(app)
    register_routes(app)

    return app


def configure_cors(app: FastAPI) -> None:
    """
    Configure CORS middleware.

    Args:
        app: FastAPI application
    """
    if isinstance(settings.CORS_ORIGINS, str):
        origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
    else:
        origins = settings.CORS_ORIGINS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    logger.info(
        "CORS configured",
        extra={"allowed_origins": origins},
    )


def register_middleware(app: FastAPI) -> None:
    """
    Register application middleware.

    Args:
        app: FastAPI application
    """

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log all requests with timing information."""
        start_time = time.time()

        logger.info(
            "Request started",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None,
            },
        )

        response = await call_next(request)

        duration_ms = round((time.time() - start_time) * 1000, 2)

        logger.info(
            "Request completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Response-Time"] = f"{duration_ms}ms"

        return response

    # Registered last so it runs first and the ID is set for the logging middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add request ID to all requests for tracing."""
        request_id = set_request_id(request.headers.get("X-Request-ID"))
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        finally:
            clear_request_id()

        response.headers["X-Request-ID"] = request_id
        return response

    logger.info("Middleware registered")


def _error_response(request: Request, status_code: int, message: str, error_code: str) -> JSONResponse:
    """Build the error envelope shared by all handlers."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "error_code": error_code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        """Handle custom API exceptions."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "API exception occurred",
            extra={
                "error_code": exc.error_code,
                "status_code": exc.status_code,
                "error": exc.message,
                "details": exc.details,
                "path": request.url.path,
            },
        )

        return _error_response(request, exc.status_code, exc.message, exc.error_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning(
            "HTTP exception occurred",
            extra={
                "status_code": exc.status_code,
                "detail": exc.detail,
                "path": request.url.path,
            },
        )

        return _error_response(request, exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning(
            "Validation error occurred",
            extra={
                "errors": exc.errors(),
                "path": request.url.path,
            },
        )

        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error",
            "VALIDATION_ERROR",
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "Unexpected exception occurred",
            extra={
                "error": str(exc),
                "path": request.url.path,
            },
            exc_info=True,
        )

        # Don't expose internal errors in production
        message = str(exc) if settings.DEBUG else GENERIC_ERROR_MESSAGE

        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            message,
            "INTERNAL_SERVER_ERROR",
        )

    logger.info("Exception handlers registered")


def register_routes(app: FastAPI) -> None:
    """
    Register API routes.

    Args:
        app: FastAPI application
    """
    app.include_router(health_router)
    app.include_router(products_router)
    app.include_router(categories_router)

    logger.info("Routes registered")


# Create application instance
app = create_application()


# Root endpoint
@app.get("/", tags=["Root"])
async def root() -> Dict[str, Any]:
    """
    Root endpoint with API information.

    Returns:
        API information
    """
    return {
        "name": "Storefront API",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


# Export app
__all__ = ["app", "create_application"]
