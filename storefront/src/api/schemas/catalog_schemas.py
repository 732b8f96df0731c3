"""
Pydantic schemas for catalog browsing: products, sorting and pagination.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import Field, field_serializer, field_validator

from storefront.src.core.config import settings
from storefront.src.models.base import BaseModel, IDMixin, TimestampMixin

# Below this many units a product is shown as running low
LOW_STOCK_THRESHOLD = 10


class SortOption(str, Enum):
    """Supported catalog orderings."""

    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME_ASC = "name_asc"

    @classmethod
    def parse(cls, value: Optional[Any]) -> "SortOption":
        """
        Resolve a raw sort value, falling back to NEWEST.

        Args:
            value: Sort value from a query string or caller, possibly None

        Returns:
            Matching SortOption, or NEWEST for anything unrecognised
        """
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST

    @property
    def ordering(self) -> Tuple[str, bool]:
        """Column name and whether it sorts descending."""
        return _SORT_ORDERINGS[self]


_SORT_ORDERINGS = {
    SortOption.PRICE_ASC: ("price", False),
    SortOption.PRICE_DESC: ("price", True),
    SortOption.NEWEST: ("created_at", True),
    SortOption.OLDEST: ("created_at", False),
    SortOption.NAME_ASC: ("name", False),
}


class ProductOut(IDMixin, TimestampMixin):
    """Product as returned to shoppers."""

    name: str = Field(..., description="Display name", min_length=1)
    description: Optional[str] = Field(None, description="Long description")
    price: Decimal = Field(..., description="Price in the store currency", ge=0)
    category: Optional[str] = Field(None, description="Category value, or null when uncategorized")
    stock_quantity: int = Field(..., description="Units in stock", ge=0)
    is_active: bool = Field(..., description="Whether the product is visible to shoppers")

    @field_serializer("price", when_used="json")
    def serialize_price(self, price: Decimal) -> float:
        """Emit prices as JSON numbers."""
        return float(price)

    @property
    def in_stock(self) -> bool:
        """Whether the product can be purchased."""
        return self.stock_quantity > 0

    @property
    def stock_status(self) -> str:
        """Stock badge: sold_out, low_stock or in_stock."""
        if self.stock_quantity == 0:
            return "sold_out"
        if self.stock_quantity < LOW_STOCK_THRESHOLD:
            return "low_stock"
        return "in_stock"


class PageRequest(BaseModel):
    """One page of a browsing context."""

    category: Optional[str] = Field(None, description="Category value to filter on")
    sort_by: SortOption = Field(default=SortOption.NEWEST, description="Ordering")
    limit: int = Field(default=settings.DEFAULT_PAGE_SIZE, description="Page size", gt=0)
    offset: int = Field(default=0, description="Rows to skip", ge=0)

    @field_validator("sort_by", mode="before")
    @classmethod
    def parse_sort(cls, v: Any) -> SortOption:
        """Unknown sort values behave like NEWEST."""
        return SortOption.parse(v)


class PageResult(BaseModel):
    """A page of products plus the size of the whole filtered set."""

    products: List[ProductOut] = Field(default_factory=list, description="Products on this page")
    total: int = Field(..., description="Active products matching the filter", ge=0)


class CategoryOut(BaseModel):
    """Category reference entry."""

    path: str = Field(..., description="URL slug")
    db_value: str = Field(..., description="Value stored on products")
    label: str = Field(..., description="Display label")
