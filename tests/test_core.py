"""
Tests for configuration, schemas, categories and request parsing helpers.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from storefront.src.api.routes.products import parse_int_param
from storefront.src.api.schemas.catalog_schemas import (
    PageRequest,
    ProductOut,
    SortOption,
)
from storefront.src.core.categories import (
    CATEGORIES,
    get_category_by_db_value,
    get_category_by_path,
    resolve_category_filter,
)
from storefront.src.core.config import Settings, settings
from storefront.src.core.database import to_async_url
from storefront.src.core.logging import StructuredFormatter, clear_request_id, set_request_id


def make_product(stock_quantity: int) -> ProductOut:
    now = datetime(2025, 1, 1)
    return ProductOut(
        id=uuid4(),
        name="Pedestal Sink",
        price=Decimal("129.50"),
        category="sink",
        stock_quantity=stock_quantity,
        is_active=True,
        created_at=now,
        updated_at=now,
    )


class TestSortOption:
    @pytest.mark.parametrize("value", list(SortOption))
    def test_known_values_round_trip(self, value):
        assert SortOption.parse(value.value) is value

    @pytest.mark.parametrize("raw", [None, "", "cheapest", "NEWEST", 3])
    def test_unknown_values_fall_back_to_newest(self, raw):
        assert SortOption.parse(raw) is SortOption.NEWEST

    def test_orderings(self):
        assert SortOption.PRICE_DESC.ordering == ("price", True)
        assert SortOption.OLDEST.ordering == ("created_at", False)
        assert SortOption.NAME_ASC.ordering == ("name", False)


class TestPageRequest:
    def test_defaults(self):
        request = PageRequest()

        assert request.limit == 12
        assert request.offset == 0
        assert request.sort_by is SortOption.NEWEST
        assert request.category is None

    def test_unknown_sort_is_newest(self):
        assert PageRequest(sort_by="bogus").sort_by is SortOption.NEWEST

    @pytest.mark.parametrize("limit,offset", [(0, 0), (-5, 0), (12, -1)])
    def test_rejects_invalid_range(self, limit, offset):
        with pytest.raises(ValidationError):
            PageRequest(limit=limit, offset=offset)


class TestProductOut:
    @pytest.mark.parametrize(
        "quantity,status,in_stock",
        [(0, "sold_out", False), (1, "low_stock", True), (9, "low_stock", True), (10, "in_stock", True)],
    )
    def test_stock_status(self, quantity, status, in_stock):
        product = make_product(quantity)

        assert product.stock_status == status
        assert product.in_stock is in_stock

    def test_price_serializes_as_number(self):
        data = json.loads(make_product(3).model_dump_json())

        assert data["price"] == 129.5

    def test_price_stays_decimal_in_python(self):
        assert make_product(3).model_dump()["price"] == Decimal("129.50")


class TestCategories:
    def test_reference_data(self):
        assert [c.label for c in CATEGORIES] == ["Shower", "Bath", "Sink", "Accessories"]

    def test_lookups(self):
        assert get_category_by_path("bath").db_value == "bath"
        assert get_category_by_db_value("accessories").label == "Accessories"
        assert get_category_by_path("garden") is None

    @pytest.mark.parametrize(
        "raw,expected",
        [(None, None), ("", None), ("shower", "shower"), ("garden", "garden")],
    )
    def test_resolve_category_filter(self, raw, expected):
        assert resolve_category_filter(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, 12),
        ("", 12),
        ("abc", 12),
        ("24", 24),
        ("5abc", 5),
        ("  7", 7),
        ("-3", -3),
        ("+8", 8),
        ("3.9", 3),
    ],
)
def test_parse_int_param(raw, expected):
    assert parse_int_param(raw, 12) == expected


class TestSettings:
    def test_blank_database_url_is_unset(self):
        config = Settings(DATABASE_URL="   ")

        assert config.DATABASE_URL is None
        assert not config.database_configured

    def test_database_configured(self):
        assert Settings(DATABASE_URL="postgresql://u:p@db/shop").database_configured

    def test_cors_origins_are_split(self):
        config = Settings(CORS_ORIGINS="https://a.example, https://b.example,")

        assert config.CORS_ORIGINS == ["https://a.example", "https://b.example"]

    def test_log_level_is_normalised(self):
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(LOG_LEVEL="chatty")

    def test_environment_flags(self):
        config = Settings(ENVIRONMENT="Production")

        assert config.is_production
        assert not config.is_development


class TestAsyncUrl:
    def test_postgres_url_uses_asyncpg_and_ssl(self):
        url, connect_args = to_async_url("postgresql://user:pw@db.example:5432/shop?sslmode=require")

        assert url == "postgresql+asyncpg://user:pw@db.example:5432/shop"
        assert connect_args["ssl"] is True
        assert "statement_timeout" in connect_args["server_settings"]

    def test_postgres_alias_scheme(self):
        url, _ = to_async_url("postgres://user@db/shop?sslmode=disable")

        assert url.startswith("postgresql+asyncpg://")

    def test_sqlite_url_uses_aiosqlite(self):
        assert to_async_url("sqlite:///catalog.db") == ("sqlite+aiosqlite:///catalog.db", {})

    def test_explicit_driver_untouched(self):
        assert to_async_url("postgresql+asyncpg://db/shop") == ("postgresql+asyncpg://db/shop", {})


def test_structured_formatter_includes_extra_and_request_id(monkeypatch):
    monkeypatch.setattr(settings, "LOG_FORMAT", "json")
    formatter = StructuredFormatter()
    record = logging.LogRecord("catalog", logging.INFO, __file__, 1, "Fetched page", None, None)
    record.offset = 12
    set_request_id("req-42")
    try:
        payload = json.loads(formatter.format(record))
    finally:
        clear_request_id()

    assert payload["message"] == "Fetched page"
    assert payload["request_id"] == "req-42"
    assert payload["offset"] == 12
