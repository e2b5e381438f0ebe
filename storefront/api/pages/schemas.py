from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from storefront.modules.catalog.service import PageData


def _as_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


class PageDataModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str | None = None
    hero_image_url: str | None = Field(None, alias="heroImageURL")
    initial_charge_amount: float | None = Field(None, alias="initialChargeAmount")
    recurring_charge_amount: float | None = Field(
        None, alias="recurringChargeAmount"
    )
    recurring_interval_days: int | None = Field(None, alias="recurringIntervalDays")
    product_identifier: str | None = Field(None, alias="productIdentifier")
    is_default: bool = Field(..., alias="isDefault")

    @classmethod
    def from_page_data(cls, page: PageData) -> "PageDataModel":
        return cls(
            title=page.title,
            description=page.description,
            hero_image_url=page.hero_image_url,
            initial_charge_amount=_as_float(page.initial_charge_amount),
            recurring_charge_amount=_as_float(page.recurring_charge_amount),
            recurring_interval_days=page.recurring_interval_days,
            product_identifier=page.product_identifier,
            is_default=page.is_default,
        )
