"""
Product catalog API endpoints.
"""

import re
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from storefront.src.api.schemas.catalog_schemas import PageResult, ProductOut, SortOption
from storefront.src.core.auth import get_access_token
from storefront.src.core.categories import resolve_category_filter
from storefront.src.core.config import settings
from storefront.src.core.exceptions import ResourceNotFoundError
from storefront.src.core.logging import get_logger
from storefront.src.models.base import ErrorResponse
from storefront.src.services.catalog_service import CatalogQueryService, catalog_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int_param(value: Optional[str], default: int) -> int:
    """
    Parse the leading base-10 integer of a query value.

    Args:
        value: Raw query string value
        default: Value used when nothing numeric is present

    Returns:
        Parsed integer or the default
    """
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else default


def provide_catalog_service() -> CatalogQueryService:
    """Dependency returning the shared catalog service."""
    return catalog_service


def require_catalog_service(
    service: CatalogQueryService = Depends(provide_catalog_service),
) -> CatalogQueryService:
    """
    Dependency returning the catalog service, failing when it is unconfigured.

    Raises:
        ConfigurationError: If DATABASE_URL is missing
    """
    service.ensure_configured()
    return service


@router.get(
    "",
    response_model=PageResult,
    summary="List products with filtering, sorting and pagination",
    responses={500: {"model": ErrorResponse}},
)
async def list_products(
    category: Optional[str] = Query(None, description="Category path or value"),
    sort: Optional[str] = Query(None, description="price_asc, price_desc, newest, oldest or name_asc"),
    limit: Optional[str] = Query(None, description="Page size"),
    offset: Optional[str] = Query(None, description="Rows to skip"),
    access_token: Optional[str] = Depends(get_access_token),
    service: CatalogQueryService = Depends(require_catalog_service),
) -> PageResult:
    """
    List active products, optionally filtered by category.

    Non-numeric or out-of-range ``limit``/``offset`` values fall back to the
    defaults; unknown ``sort`` values sort newest first.

    Example:
        ```bash
        curl "http://localhost:8000/api/products?category=bath&sort=price_asc&limit=12&offset=12"
        ```
    """
    page_size = parse_int_param(limit, settings.DEFAULT_PAGE_SIZE)
    if page_size <= 0:
        page_size = settings.DEFAULT_PAGE_SIZE
    page_size = min(page_size, settings.MAX_PAGE_SIZE)

    start = parse_int_param(offset, 0)
    if start < 0:
        start = 0

    return await service.fetch_page(
        category=resolve_category_filter(category),
        sort_by=SortOption.parse(sort),
        limit=page_size,
        offset=start,
        access_token=access_token,
    )


@router.get(
    "/featured",
    response_model=List[ProductOut],
    summary="Newest products for the landing page",
)
async def list_featured_products(
    limit: int = Query(settings.FEATURED_LIMIT, ge=1, le=settings.MAX_PAGE_SIZE),
    access_token: Optional[str] = Depends(get_access_token),
    service: CatalogQueryService = Depends(provide_catalog_service),
) -> List[ProductOut]:
    """
    Get featured products. Returns an empty list instead of failing.

    Example:
        ```bash
        curl http://localhost:8000/api/products/featured?limit=6
        ```
    """
    return await service.fetch_featured(limit=limit, access_token=access_token)


@router.get(
    "/{product_id}",
    response_model=ProductOut,
    summary="Get product details",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_product(
    product_id: UUID,
    access_token: Optional[str] = Depends(get_access_token),
    service: CatalogQueryService = Depends(require_catalog_service),
) -> ProductOut:
    """
    Get a single active product.

    Example:
        ```bash
        curl http://localhost:8000/api/products/<product-id>
        ```
    """
    product = await service.fetch_by_id(product_id, access_token=access_token)
    if product is None:
        raise ResourceNotFoundError("Product", str(product_id))
    return product


# Export router
__all__ = ["router"]
