"""Core utilities package."""

from storefront.src.core.config import settings
from storefront.src.core.database import Base, bind_identity
from storefront.src.core.logging import get_logger, set_request_id

__all__ = [
    "settings",
    "Base",
    "bind_identity",
    "get_logger",
    "set_request_id",
]
