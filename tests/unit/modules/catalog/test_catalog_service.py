"""Tests for domain resolution and product pricing."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from storefront.modules.catalog.service import ProductCatalogService, to_minor_units


@pytest.fixture
def catalog(db_session):
    return ProductCatalogService(db_session)


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("4.99"), 499),
        (Decimal("19.99"), 1999),
        (Decimal("0.005"), 1),
        (10, 1000),
        (4.99, 499),
    ],
)
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.mark.asyncio
async def test_resolve_domain_is_case_insensitive(
    db_session, catalog, product_factory, domain_mapping_factory
):
    await product_factory.create_async(db_session, product_identifier="felix-gummies")
    await domain_mapping_factory.create_async(
        db_session, domain_name="felix.example.com", product_identifier="felix-gummies"
    )

    assert await catalog.resolve_domain("FELIX.example.com") == "felix-gummies"
    assert await catalog.resolve_domain("other.example.com") is None


@pytest.mark.asyncio
async def test_get_pricing_converts_to_minor_units(db_session, catalog, product_factory):
    await product_factory.create_async(
        db_session,
        product_identifier="felix-gummies",
        initial_charge_amount=Decimal("4.99"),
        recurring_charge_amount=Decimal("24.50"),
        recurring_interval_days=14,
    )

    pricing = await catalog.get_pricing("felix-gummies")

    assert pricing.initial_amount == 499
    assert pricing.recurring_amount == 2450
    assert pricing.interval_days == 14
    assert await catalog.get_pricing("missing-product") is None


class TestPageData:
    @pytest.mark.asyncio
    async def test_mapped_hostname_returns_product_page(
        self, db_session, catalog, product_factory, domain_mapping_factory
    ):
        await product_factory.create_async(
            db_session,
            product_identifier="felix-gummies",
            product_name="Felix Gummies",
            description="Daily vitamins",
        )
        await domain_mapping_factory.create_async(
            db_session,
            domain_name="felix.example.com",
            product_identifier="felix-gummies",
        )

        page = await catalog.get_page_data("felix.example.com", "Default", "Fallback")

        assert page.is_default is False
        assert page.title == "Felix Gummies"
        assert page.description == "Daily vitamins"
        assert page.product_identifier == "felix-gummies"
        assert page.initial_charge_amount == Decimal("4.99")

    @pytest.mark.asyncio
    async def test_unmapped_hostname_returns_default(self, catalog):
        page = await catalog.get_page_data("unknown.example.com", "Default", "Fallback")

        assert page.is_default is True
        assert page.title == "Default"
        assert page.description == "Fallback"
        assert page.product_identifier is None

    @pytest.mark.asyncio
    async def test_mapping_to_missing_product_returns_default(
        self, db_session, catalog, domain_mapping_factory
    ):
        await domain_mapping_factory.create_async(
            db_session, domain_name="orphan.example.com", product_identifier="gone"
        )

        page = await catalog.get_page_data("orphan.example.com", "Default", "Fallback")

        assert page.is_default is True

    @pytest.mark.asyncio
    async def test_lookup_error_returns_default(self, catalog):
        catalog.resolve_domain = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("db down"))
        )

        page = await catalog.get_page_data("felix.example.com", "Default", "Fallback")

        assert page.is_default is True
