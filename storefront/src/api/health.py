"""
Health check endpoints for monitoring service status.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.src.api.routes.products import provide_catalog_service
from storefront.src.core.config import settings
from storefront.src.core.exceptions import ConfigurationError, DataAccessError
from storefront.src.core.logging import get_logger
from storefront.src.models.base import DetailedHealthStatus, HealthStatus
from storefront.src.services.catalog_service import CatalogQueryService

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])

APP_VERSION = "0.1.0"


@router.get(
    "/health",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthStatus:
    """
    Basic health check endpoint.

    Example:
        ```bash
        curl http://localhost:8000/health
        ```
    """
    return HealthStatus(
        status="healthy",
        timestamp=datetime.utcnow(),
    )


async def check_database_health(service: CatalogQueryService) -> Dict[str, Any]:
    """
    Check database connectivity and status.

    Args:
        service: Catalog service whose database is checked

    Returns:
        Health status dictionary
    """
    try:
        if await service.ping():
            return {"status": "healthy", "service": "postgresql"}
        return {
            "status": "unhealthy",
            "service": "postgresql",
            "error": "Invalid response from database",
        }

    except ConfigurationError as e:
        return {"status": "unconfigured", "service": "postgresql", "error": e.message}

    except DataAccessError as e:
        logger.error(
            "Database health check failed",
            extra={"error": e.details.get("original_error")},
        )
        return {
            "status": "unhealthy",
            "service": "postgresql",
            "error": e.details.get("error_type", "DataAccessError"),
        }


@router.get(
    "/api/health/detailed",
    response_model=DetailedHealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check(
    service: CatalogQueryService = Depends(provide_catalog_service),
) -> DetailedHealthStatus:
    """
    Detailed health check with component status.

    Checks:
    - Database connectivity
    - Application configuration
    """
    components: Dict[str, Any] = {}
    overall_status = "healthy"

    db_status = await check_database_health(service)
    components["database"] = db_status
    if db_status["status"] != "healthy":
        overall_status = "degraded"
        logger.warning("Database health check failed", extra={"database": db_status})

    components["application"] = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
    }

    return DetailedHealthStatus(
        status=overall_status,
        timestamp=datetime.utcnow(),
        components=components,
        version=APP_VERSION,
        environment=settings.ENVIRONMENT,
    )


@router.get(
    "/api/health/ready",
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
)
async def readiness_check(
    service: CatalogQueryService = Depends(provide_catalog_service),
) -> Dict[str, str]:
    """
    Readiness check for container orchestration.

    Raises:
        HTTPException: If the database is unavailable or unconfigured
    """
    db_status = await check_database_health(service)

    if db_status["status"] != "healthy":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready - database unavailable",
        )

    return {"status": "ready"}


@router.get(
    "/api/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def liveness_check() -> Dict[str, str]:
    """Liveness check: the process is up and serving requests."""
    return {"status": "alive"}


# Export router
__all__ = ["router"]
