"""Domain-to-product resolution and product pricing lookups."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select

from storefront.core.base import BaseService
from storefront.database.models import DomainMapping, Product


def to_minor_units(amount: Decimal | float | int) -> int:
    """Convert a decimal major-unit amount (4.99) to minor units (499)."""
    return int(
        (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )


@dataclass(frozen=True)
class ProductPricing:
    """Prices in minor units plus the recurring interval."""

    product_identifier: str
    initial_amount: int
    recurring_amount: int
    interval_days: int


@dataclass(frozen=True)
class PageData:
    title: str
    description: str | None
    is_default: bool
    hero_image_url: str | None = None
    initial_charge_amount: Decimal | None = None
    recurring_charge_amount: Decimal | None = None
    recurring_interval_days: int | None = None
    product_identifier: str | None = None


class ProductCatalogService(BaseService):
    """Read-only access to domain mappings and product records."""

    async def resolve_domain(self, hostname: str) -> str | None:
        """Product identifier mapped to ``hostname``, if any."""
        stmt = select(DomainMapping.product_identifier).where(
            DomainMapping.domain_name == hostname.lower()
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_product(self, product_identifier: str) -> Product | None:
        return await self.db.get(Product, product_identifier)

    async def get_pricing(self, product_identifier: str) -> ProductPricing | None:
        product = await self.get_product(product_identifier)
        if product is None:
            return None

        return ProductPricing(
            product_identifier=product.product_identifier,
            initial_amount=to_minor_units(product.initial_charge_amount),
            recurring_amount=to_minor_units(product.recurring_charge_amount),
            interval_days=product.recurring_interval_days,
        )

    async def get_page_data(
        self, hostname: str, default_title: str, default_description: str
    ) -> PageData:
        """Page content for ``hostname``, or the default page on any miss or error."""
        default = PageData(
            title=default_title, description=default_description, is_default=True
        )
        try:
            product_identifier = await self.resolve_domain(hostname)
            if product_identifier is None:
                self.logger.info("No domain mapping found", hostname=hostname)
                return default

            product = await self.get_product(product_identifier)
            if product is None:
                self.logger.info(
                    "Mapped product not found",
                    hostname=hostname,
                    product_identifier=product_identifier,
                )
                return default
        except Exception as e:
            self.logger.error(f"Error fetching page data: {e!r}", hostname=hostname)
            return default

        return PageData(
            title=product.product_name,
            description=product.description,
            hero_image_url=product.hero_image_url,
            initial_charge_amount=product.initial_charge_amount,
            recurring_charge_amount=product.recurring_charge_amount,
            recurring_interval_days=product.recurring_interval_days,
            product_identifier=product.product_identifier,
            is_default=False,
        )

