"""
Incremental "load more" controller for one browsing context.

A browsing context is a (category, sort) pair. The host creates a new
controller whenever either changes and seeds it with the first page it
already rendered; the controller then appends further pages on demand.
"""

from typing import Awaitable, Callable, Optional, Sequence, Tuple

from storefront.src.api.schemas.catalog_schemas import (
    PageRequest,
    PageResult,
    ProductOut,
    SortOption,
)
from storefront.src.core.config import settings
from storefront.src.core.exceptions import APIException
from storefront.src.core.logging import get_logger

logger = get_logger(__name__)

PageFetcher = Callable[[PageRequest], Awaitable[PageResult]]
Notifier = Callable[[str], None]

LOAD_MORE_ERROR_MESSAGE = "Failed to load products. Please try again."


class ListingController:
    """
    Accumulates pages of products for a single browsing context.

    ``items`` is an immutable snapshot replaced on every successful load, so
    a renderer can compare snapshots by identity. At most one page request
    is in flight at a time: ``load_more`` is a no-op while ``pending``.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        category: Optional[str] = None,
        sort_by: SortOption = SortOption.NEWEST,
        increment: int = settings.DEFAULT_PAGE_SIZE,
        notify: Optional[Notifier] = None,
    ):
        if increment <= 0:
            raise ValueError(f"increment must be positive, got {increment}")
        self._fetch_page = fetch_page
        self.category = category or None
        self.sort_by = SortOption.parse(sort_by)
        self.increment = increment
        self._notify = notify

        self._items: Tuple[ProductOut, ...] = ()
        self.total = 0
        self.requested_count = 0
        self.pending = False
        self.error: Optional[str] = None

    @property
    def items(self) -> Tuple[ProductOut, ...]:
        """Products loaded so far, in display order."""
        return self._items

    def initialize(self, products: Sequence[ProductOut], total: int) -> None:
        """
        Seed the controller with the first page.

        Args:
            products: Products already rendered for this context
            total: Total matching products reported with the first page
        """
        self._items = tuple(products)
        self.total = total
        self.requested_count = len(self._items)
        self.pending = False
        self.error = None

    def has_more(self) -> bool:
        """Whether more products exist beyond those loaded."""
        return len(self._items) < self.total

    def dismiss_error(self) -> None:
        """Hide the last load failure."""
        self.error = None

    def next_request(self) -> PageRequest:
        """Page request that continues after the loaded items."""
        return PageRequest(
            category=self.category,
            sort_by=self.sort_by,
            limit=self.increment,
            offset=len(self._items),
        )

    async def load_more(self) -> bool:
        """
        Load the next page and append it.

        Returns:
            True if a page was loaded; False if the call was a no-op or failed
        """
        if self.pending or not self.has_more():
            return False

        # Set before the first await so overlapping calls see it
        self.pending = True
        request = self.next_request()
        try:
            page = await self._fetch_page(request)
        except Exception as e:
            self._report_failure(request, e)
            return False
        else:
            self._items = self._items + tuple(page.products)
            self.total = page.total
            self.requested_count += self.increment
            self.error = None
            logger.debug(
                "Loaded more products",
                extra={
                    "offset": request.offset,
                    "returned": len(page.products),
                    "loaded": len(self._items),
                    "total": self.total,
                },
            )
            return True
        finally:
            self.pending = False

    def _report_failure(self, request: PageRequest, error: Exception) -> None:
        """Log a failed load and show the user a notification."""
        logger.error(
            "Error loading more products",
            extra={
                "category": request.category,
                "sort_by": request.sort_by.value,
                "offset": request.offset,
                "error": str(error),
            },
            exc_info=error,
        )
        if isinstance(error, APIException) and error.message:
            self.error = error.message
        else:
            self.error = LOAD_MORE_ERROR_MESSAGE
        if self._notify is not None:
            self._notify(self.error)
