"""
Tests for the incremental "load more" listing controller.
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List
from uuid import uuid4

import httpx
import pytest

from storefront.src.api.main import app
from storefront.src.api.schemas.catalog_schemas import (
    PageRequest,
    PageResult,
    ProductOut,
    SortOption,
)
from storefront.src.core.exceptions import ExternalServiceError
from storefront.src.services.catalog_client import CatalogClient
from storefront.src.services.listing_controller import (
    LOAD_MORE_ERROR_MESSAGE,
    ListingController,
)


def make_products(count: int) -> List[ProductOut]:
    start = datetime(2025, 3, 1)
    return [
        ProductOut(
            id=uuid4(),
            name=f"Item {i:02d}",
            description=None,
            price=Decimal("10.00") + i,
            category="bath",
            stock_quantity=5,
            is_active=True,
            created_at=start - timedelta(days=i),
            updated_at=start - timedelta(days=i),
        )
        for i in range(count)
    ]


class FakeCatalog:
    """Serves slices of a fixed product list and records requests."""

    def __init__(self, total: int):
        self.products = make_products(total)
        self.requests: List[PageRequest] = []
        self.fail_next = False

    async def fetch_page(self, request: PageRequest) -> PageResult:
        self.requests.append(request)
        if self.fail_next:
            self.fail_next = False
            raise ExternalServiceError("Catalog is down", service_name="catalog")
        window = self.products[request.offset:request.offset + request.limit]
        return PageResult(products=window, total=len(self.products))


def seeded_controller(fake: FakeCatalog, **kwargs) -> ListingController:
    controller = ListingController(fake.fetch_page, category="bath", sort_by=SortOption.PRICE_ASC, **kwargs)
    controller.initialize(fake.products[:12], total=len(fake.products))
    return controller


def test_initialize_seeds_state():
    fake = FakeCatalog(30)
    controller = seeded_controller(fake)

    assert len(controller.items) == 12
    assert controller.total == 30
    assert controller.requested_count == 12
    assert controller.pending is False
    assert controller.has_more()


async def test_load_more_until_exhausted():
    fake = FakeCatalog(30)
    controller = seeded_controller(fake)

    assert await controller.load_more() is True
    assert fake.requests[0] == PageRequest(
        category="bath", sort_by=SortOption.PRICE_ASC, limit=12, offset=12
    )
    assert len(controller.items) == 24
    assert controller.has_more()
    assert controller.requested_count == 24

    assert await controller.load_more() is True
    assert fake.requests[1].offset == 24
    assert len(controller.items) == 30
    assert not controller.has_more()

    assert await controller.load_more() is False
    assert len(fake.requests) == 2
    assert list(controller.items) == fake.products


async def test_load_more_is_noop_for_empty_context():
    fake = FakeCatalog(0)
    controller = ListingController(fake.fetch_page)
    controller.initialize([], total=0)

    assert await controller.load_more() is False
    assert fake.requests == []


async def test_overlapping_load_more_issues_one_request():
    release = asyncio.Event()
    requests = []
    products = make_products(30)

    async def slow_fetch(request: PageRequest) -> PageResult:
        requests.append(request)
        await release.wait()
        return PageResult(products=products[request.offset:request.offset + request.limit], total=30)

    controller = ListingController(slow_fetch)
    controller.initialize(products[:12], total=30)

    first = asyncio.create_task(controller.load_more())
    await asyncio.sleep(0)
    assert controller.pending is True

    assert await controller.load_more() is False
    assert await controller.load_more() is False

    release.set()
    assert await first is True
    assert len(requests) == 1
    assert len(controller.items) == 24
    assert controller.pending is False


async def test_failed_load_keeps_state_and_allows_retry():
    fake = FakeCatalog(30)
    notifications = []
    controller = seeded_controller(fake, notify=notifications.append)
    before = controller.items

    fake.fail_next = True
    assert await controller.load_more() is False

    assert controller.items is before
    assert controller.total == 30
    assert controller.requested_count == 12
    assert controller.pending is False
    assert controller.error == "Catalog is down"
    assert notifications == ["Catalog is down"]

    assert await controller.load_more() is True
    assert len(controller.items) == 24
    assert controller.error is None
    assert [r.offset for r in fake.requests] == [12, 12]


async def test_unexpected_failure_uses_generic_message():
    async def broken_fetch(request: PageRequest) -> PageResult:
        raise RuntimeError("socket closed")

    controller = ListingController(broken_fetch)
    controller.initialize(make_products(12), total=20)

    assert await controller.load_more() is False
    assert controller.error == LOAD_MORE_ERROR_MESSAGE

    controller.dismiss_error()
    assert controller.error is None


async def test_items_are_replaced_with_new_snapshots():
    fake = FakeCatalog(30)
    controller = seeded_controller(fake)
    first_snapshot = controller.items

    await controller.load_more()

    assert isinstance(controller.items, tuple)
    assert controller.items is not first_snapshot
    assert len(first_snapshot) == 12
    assert controller.items[:12] == first_snapshot


def test_invalid_increment_rejected():
    with pytest.raises(ValueError):
        ListingController(FakeCatalog(0).fetch_page, increment=0)


def test_unknown_sort_falls_back_to_newest():
    controller = ListingController(FakeCatalog(0).fetch_page, sort_by="whatever")

    assert controller.sort_by is SortOption.NEWEST
    assert controller.next_request().sort_by is SortOption.NEWEST


async def test_controller_pages_through_api(catalog, use_catalog, active_products):
    use_catalog(catalog)
    first_page = await catalog.fetch_page(category=None, sort_by=SortOption.NAME_ASC, limit=12)

    async with CatalogClient("http://test", transport=httpx.ASGITransport(app=app)) as client:
        controller = ListingController(client.fetch_page, sort_by=SortOption.NAME_ASC)
        controller.initialize(first_page.products, first_page.total)

        while controller.has_more():
            assert await controller.load_more() is True

        assert await controller.load_more() is False

    names = [p.name for p in controller.items]
    assert names == sorted(p.name for p in active_products)
    assert len({p.id for p in controller.items}) == len(active_products)
