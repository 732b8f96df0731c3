"""
Category reference endpoints.
"""

from typing import List

from fastapi import APIRouter

from storefront.src.api.schemas.catalog_schemas import CategoryOut
from storefront.src.core.categories import CATEGORIES

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryOut], summary="List product categories")
async def list_categories() -> List[CategoryOut]:
    """Get the fixed list of product categories in navigation order."""
    return [
        CategoryOut(path=cat.path, db_value=cat.db_value, label=cat.label)
        for cat in CATEGORIES
    ]


# Export router
__all__ = ["router"]
