"""
Catalog query service for shopper-facing product reads.

Every read path filters on ``is_active`` and runs inside its own
transaction with the caller's access token bound for row-level security.
Listing, category and detail queries surface store failures as
DataAccessError; the landing-page featured query degrades to an empty list.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Union
from uuid import UUID

from sqlalchemy import Select, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.src.api.schemas.catalog_schemas import (
    PageResult,
    ProductOut,
    SortOption,
)
from storefront.src.core.config import Settings, settings
from storefront.src.core.database import (
    bind_identity,
    create_engine_for_url,
    create_session_factory,
)
from storefront.src.core.exceptions import ConfigurationError, DataAccessError
from storefront.src.core.logging import get_logger
from storefront.src.models.product import Product

logger = get_logger(__name__)

# PostgreSQL / PostgREST codes for a missing table or schema
_MISSING_RELATION_CODES = {"42P01", "3F000", "PGRST301"}
_MISSING_RELATION_MARKERS = ("relation", "does not exist", "no such table")

# Failures of the store or of the connection to it
_STORE_ERRORS = (SQLAlchemyError, OSError)


def is_missing_relation(exc: BaseException) -> bool:
    """
    Check whether an error means the products table (or its schema) is absent.

    Args:
        exc: Error raised by the data store, possibly wrapped in DataAccessError

    Returns:
        True if the error points at a missing relation
    """
    original = getattr(exc, "original_error", None) or exc
    driver_error = getattr(original, "orig", None)
    code = getattr(driver_error, "sqlstate", None) or getattr(driver_error, "pgcode", None)
    if code in _MISSING_RELATION_CODES:
        return True
    message = str(original).lower()
    return any(marker in message for marker in _MISSING_RELATION_MARKERS)


class CatalogQueryService:
    """Service for filtered, sorted and paginated reads of active products."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        """
        Initialize catalog query service.

        Args:
            session_factory: Factory for database sessions, or None when no
                database is configured
        """
        self._session_factory = session_factory

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "CatalogQueryService":
        """
        Build a service from application settings.

        A missing DATABASE_URL does not fail here; primary queries raise
        ConfigurationError when called, while featured queries return [].

        Args:
            config: Application settings

        Returns:
            Catalog query service
        """
        if not config.DATABASE_URL:
            logger.warning(
                "DATABASE_URL is not set; catalog queries are unavailable",
                extra={"environment": config.ENVIRONMENT},
            )
            return cls(session_factory=None)

        engine = create_engine_for_url(config.DATABASE_URL)
        return cls(session_factory=create_session_factory(engine))

    @property
    def is_configured(self) -> bool:
        """Check whether the service can reach a database."""
        return self._session_factory is not None

    def ensure_configured(self) -> None:
        """
        Raise if no database connection is configured.

        Raises:
            ConfigurationError: If DATABASE_URL is missing
        """
        if self._session_factory is None:
            raise ConfigurationError(
                "Product catalog is not configured",
                config_key="DATABASE_URL",
            )

    async def close(self) -> None:
        """Dispose the engine behind the session factory."""
        if self._session_factory is None:
            return
        engine = self._session_factory.kw.get("bind")
        if engine is not None:
            await engine.dispose()

    @asynccontextmanager
    async def _session(self, access_token: Optional[str]) -> AsyncIterator[AsyncSession]:
        """Open a read transaction carrying the caller's identity."""
        self.ensure_configured()
        async with self._session_factory() as session:
            async with session.begin():
                await bind_identity(session, access_token)
                yield session

    @staticmethod
    def _active_products() -> Select:
        """Base query: shoppers only ever see active products."""
        return select(Product).where(Product.is_active.is_(True))

    @staticmethod
    def _apply_sort(query: Select, sort_by: SortOption) -> Select:
        """Order by the sort option's column; id breaks ties so ranges never overlap."""
        column_name, descending = sort_by.ordering
        column = getattr(Product, column_name)
        return query.order_by(column.desc() if descending else column.asc(), Product.id.asc())

    async def _fetch_products(
        self,
        query: Select,
        access_token: Optional[str],
        operation: str,
    ) -> List[ProductOut]:
        """Run a product query and convert rows to ProductOut."""
        try:
            async with self._session(access_token) as session:
                result = await session.execute(query)
                return [ProductOut.model_validate(p) for p in result.scalars().all()]
        except _STORE_ERRORS as e:
            logger.error(
                "Product query failed",
                extra={"operation": operation, "error": str(e)},
                exc_info=True,
            )
            raise DataAccessError(original_error=e, operation=operation) from e

    async def fetch_all(self, access_token: Optional[str] = None) -> List[ProductOut]:
        """
        Get all active products, newest first.

        Args:
            access_token: Caller token for row-level security

        Returns:
            Active products

        Raises:
            ConfigurationError: If the database is not configured
            DataAccessError: If the store fails to serve the query
        """
        query = self._apply_sort(self._active_products(), SortOption.NEWEST)
        return await self._fetch_products(query, access_token, "fetch_all")

    async def fetch_by_category(
        self,
        category: str,
        access_token: Optional[str] = None,
    ) -> List[ProductOut]:
        """
        Get active products of one category, newest first.

        Args:
            category: Category value stored on products
            access_token: Caller token for row-level security

        Returns:
            Active products in the category

        Raises:
            ConfigurationError: If the database is not configured
            DataAccessError: If the store fails to serve the query
        """
        query = self._active_products().where(Product.category == category)
        query = self._apply_sort(query, SortOption.NEWEST)
        return await self._fetch_products(query, access_token, "fetch_by_category")

    async def fetch_featured(
        self,
        limit: int = settings.FEATURED_LIMIT,
        access_token: Optional[str] = None,
    ) -> List[ProductOut]:
        """
        Get the newest active products for the landing page.

        Never raises: the featured section is cosmetic, so missing
        configuration and store failures are logged and yield [].

        Args:
            limit: Maximum number of products
            access_token: Caller token for row-level security

        Returns:
            Up to ``limit`` products, or [] on any failure
        """
        try:
            query = self._apply_sort(self._active_products(), SortOption.NEWEST).limit(limit)
            return await self._fetch_products(query, access_token, "fetch_featured")

        except ConfigurationError as e:
            logger.warning(
                "Catalog is not configured; returning no featured products",
                extra={"config_key": e.details.get("config_key")},
            )
            return []

        except DataAccessError as e:
            logger.error(
                "Error fetching featured products",
                extra={"error_code": e.error_code, **e.details},
            )
            if is_missing_relation(e):
                logger.warning(
                    "Products table may not exist. Please run migrations or create the table."
                )
            return []

        except Exception as e:
            logger.error(
                "Unexpected error fetching featured products",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return []

    async def fetch_page(
        self,
        category: Optional[str] = None,
        sort_by: Union[SortOption, str, None] = SortOption.NEWEST,
        limit: int = settings.DEFAULT_PAGE_SIZE,
        offset: int = 0,
        access_token: Optional[str] = None,
    ) -> PageResult:
        """
        Get one page of active products with the total matching count.

        The range covers rows ``offset`` through ``offset + limit - 1`` of
        the filtered, sorted set. The total ignores limit and offset.

        Args:
            category: Category value to filter on; empty means all categories
            sort_by: Sort option; unknown values sort newest first
            limit: Page size (> 0)
            offset: Rows to skip (>= 0)
            access_token: Caller token for row-level security

        Returns:
            PageResult with products and total

        Raises:
            ValueError: If limit or offset is out of range
            ConfigurationError: If the database is not configured
            DataAccessError: If the store fails to serve the query
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if offset < 0:
            raise ValueError(f"offset must not be negative, got {offset}")

        sort_option = SortOption.parse(sort_by)

        query = self._active_products()
        if category:
            query = query.where(Product.category == category)

        count_query = select(func.count()).select_from(query.subquery())
        page_query = self._apply_sort(query, sort_option).offset(offset).limit(limit)

        try:
            async with self._session(access_token) as session:
                total = (await session.execute(count_query)).scalar_one()
                result = await session.execute(page_query)
                products = [ProductOut.model_validate(p) for p in result.scalars().all()]
        except _STORE_ERRORS as e:
            logger.error(
                "Error fetching products with pagination",
                extra={
                    "category": category,
                    "sort_by": sort_option.value,
                    "limit": limit,
                    "offset": offset,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise DataAccessError(original_error=e, operation="fetch_page") from e

        logger.debug(
            "Product page fetched",
            extra={
                "category": category,
                "sort_by": sort_option.value,
                "offset": offset,
                "returned": len(products),
                "total": total,
            },
        )

        return PageResult(products=products, total=total)

    async def fetch_by_id(
        self,
        product_id: Union[UUID, str],
        access_token: Optional[str] = None,
    ) -> Optional[ProductOut]:
        """
        Get a single active product.

        Args:
            product_id: Product identifier
            access_token: Caller token for row-level security

        Returns:
            The product, or None when no active product has this id

        Raises:
            ConfigurationError: If the database is not configured
            DataAccessError: If the identifier is malformed or the store fails
        """
        try:
            product_uuid = product_id if isinstance(product_id, UUID) else UUID(str(product_id))
        except ValueError as e:
            logger.warning(
                "Malformed product identifier",
                extra={"product_id": str(product_id)},
            )
            raise DataAccessError(
                "Invalid product identifier",
                original_error=e,
                operation="fetch_by_id",
            ) from e

        query = self._active_products().where(Product.id == product_uuid)

        try:
            async with self._session(access_token) as session:
                result = await session.execute(query)
                product = result.scalar_one_or_none()
        except _STORE_ERRORS as e:
            logger.error(
                "Error fetching product by id",
                extra={"product_id": str(product_uuid), "error": str(e)},
                exc_info=True,
            )
            raise DataAccessError(original_error=e, operation="fetch_by_id") from e

        if product is None:
            return None
        return ProductOut.model_validate(product)

    async def ping(self) -> bool:
        """
        Check database connectivity.

        Returns:
            True if the database answered ``SELECT 1``

        Raises:
            ConfigurationError: If the database is not configured
            DataAccessError: If the database cannot be reached
        """
        try:
            async with self._session(None) as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar_one() == 1
        except _STORE_ERRORS as e:
            raise DataAccessError(original_error=e, operation="ping") from e


# Global instance
catalog_service = CatalogQueryService.from_settings()
