"""Data models package."""

from storefront.src.models.base import (
    BaseModel,
    DetailedHealthStatus,
    ErrorResponse,
    HealthStatus,
    IDMixin,
    TimestampMixin,
)
from storefront.src.models.product import Product

__all__ = [
    "BaseModel",
    "IDMixin",
    "TimestampMixin",
    "ErrorResponse",
    "HealthStatus",
    "DetailedHealthStatus",
    "Product",
]
