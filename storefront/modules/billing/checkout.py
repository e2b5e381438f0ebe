"""Checkout client-session creation."""

from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.base import BaseService
from storefront.modules.billing.extraction import DEFAULT_PRODUCT_IDENTIFIER
from storefront.modules.billing.primer import LineItem, PrimerGatewayClient
from storefront.modules.catalog.service import ProductCatalogService, to_minor_units
from storefront.utils.settings.billing import BillingSettings

DEFAULT_CUSTOMER_EMAIL = "customer@example.com"


class CheckoutService(BaseService):
    """Opens a Primer checkout session for a product's initial charge."""

    def __init__(
        self,
        db: AsyncSession,
        gateway: PrimerGatewayClient,
        settings: BillingSettings,
    ):
        super().__init__(db)
        self.gateway = gateway
        self.settings = settings
        self.catalog = ProductCatalogService(db)

    async def create_client_session(
        self,
        hostname: str,
        product_identifier: str | None = None,
        customer_email: str | None = None,
    ) -> str:
        product_identifier = (
            product_identifier
            or await self.catalog.resolve_domain(hostname)
            or DEFAULT_PRODUCT_IDENTIFIER
        )
        product = await self.catalog.get_product(product_identifier)

        if product is not None:
            amount = to_minor_units(product.initial_charge_amount)
            line_item = LineItem(
                item_id=product.product_identifier,
                name=product.product_name,
                description="Initial charge",
                amount=amount,
            )
        else:
            amount = self.settings.DEFAULT_INITIAL_AMOUNT
            line_item = LineItem(
                item_id="shipping-fee",
                name="Shipping Fee",
                description="Initial shipping fee",
                amount=amount,
            )

        order_id = str(uuid4())
        self.logger.info(
            "Creating client session",
            order_id=order_id,
            product_identifier=product_identifier,
            amount=amount,
        )

        # product_id lets the payment-success webhook attribute the subscription
        return await self.gateway.create_client_session(
            order_id=order_id,
            amount=amount,
            currency=self.settings.BILLING_CURRENCY,
            line_items=[line_item],
            customer_email=customer_email or DEFAULT_CUSTOMER_EMAIL,
            metadata={
                "workflow": self.settings.BILLING_WORKFLOW,
                "product_id": product_identifier,
            },
        )
