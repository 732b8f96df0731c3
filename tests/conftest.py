"""
Shared fixtures: an aiosqlite-backed catalog seeded with products.
"""

import os

# Settings are read at import time; keep tests off any real database
os.environ["DATABASE_URL"] = ""
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import List  # noqa: E402
from uuid import uuid4  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from storefront.src.api.main import app  # noqa: E402
from storefront.src.api.routes.products import provide_catalog_service  # noqa: E402
from storefront.src.core.database import Base, create_session_factory  # noqa: E402
from storefront.src.models.product import Product  # noqa: E402
from storefront.src.services.catalog_service import CatalogQueryService  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)

ACTIVE_COUNT = 30
INACTIVE_COUNT = 5

_CATEGORY_CYCLE = ["shower", "bath", "sink", "accessories", None]
_NAME_WORDS = ["Towel", "Basin", "Faucet", "Mirror", "Soap Dish", "Bath Mat", "Shower Head"]


def build_product(index: int, is_active: bool = True) -> Product:
    """Deterministic product whose price, name and age orderings all differ."""
    created = BASE_TIME + timedelta(hours=(index * 11) % (ACTIVE_COUNT + INACTIVE_COUNT))
    return Product(
        id=uuid4(),
        name=f"{_NAME_WORDS[index % len(_NAME_WORDS)]} {index:02d}",
        description=None if index % 3 == 0 else f"Description for item {index}",
        price=Decimal(f"{(index * 37) % 97 + 1}.99"),
        category=_CATEGORY_CYCLE[index % len(_CATEGORY_CYCLE)],
        stock_quantity=(index * 3) % 15,
        is_active=is_active,
        created_at=created,
        updated_at=created,
    )


@pytest.fixture
async def engine(tmp_path):
    """Async engine over a fresh SQLite file with the products table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def empty_engine(tmp_path):
    """Async engine over a database where the products table was never created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
async def seeded_products(engine) -> List[Product]:
    """Insert active and inactive products; returns them all."""
    products = [build_product(i) for i in range(ACTIVE_COUNT)]
    products += [
        build_product(i, is_active=False)
        for i in range(ACTIVE_COUNT, ACTIVE_COUNT + INACTIVE_COUNT)
    ]

    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        session.add_all(products)
        await session.commit()

    return products


@pytest.fixture
def active_products(seeded_products) -> List[Product]:
    return [p for p in seeded_products if p.is_active]


@pytest.fixture
def catalog(engine, seeded_products) -> CatalogQueryService:
    """Catalog service over the seeded database."""
    return CatalogQueryService(create_session_factory(engine))


@pytest.fixture
def broken_catalog(empty_engine) -> CatalogQueryService:
    """Catalog service whose database has no products table."""
    return CatalogQueryService(create_session_factory(empty_engine))


@pytest.fixture
def use_catalog():
    """Route API requests to the given catalog service."""

    def _use(service: CatalogQueryService) -> None:
        app.dependency_overrides[provide_catalog_service] = lambda: service

    yield _use
    app.dependency_overrides.pop(provide_catalog_service, None)


@pytest.fixture
async def api_client():
    """HTTP client bound to the ASGI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
