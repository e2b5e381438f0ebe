from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.modules.billing.processor import BillingResult, BillingRunSummary


class BillingStatsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_processed: int = Field(0, alias="totalProcessed")
    successful_charges: int = Field(0, alias="successfulCharges")
    failed_charges: int = Field(0, alias="failedCharges")
    skipped: int = 0
    errors: list[str] = []


class BillingResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subscription_id: UUID = Field(..., alias="subscriptionId")
    success: bool
    error: str | None = None
    payment_id: str | None = Field(None, alias="paymentId")

    @classmethod
    def from_result(cls, result: BillingResult) -> "BillingResultModel":
        return cls(
            subscription_id=result.subscription_id,
            success=result.success,
            error=result.error,
            payment_id=result.payment_id,
        )


class BillingRunModel(BaseModel):
    stats: BillingStatsModel
    results: list[BillingResultModel]

    @classmethod
    def from_summary(cls, summary: BillingRunSummary) -> "BillingRunModel":
        return cls(
            stats=BillingStatsModel(
                total_processed=summary.total_processed,
                successful_charges=summary.successful_charges,
                failed_charges=summary.failed_charges,
                skipped=summary.skipped,
                errors=summary.errors,
            ),
            results=[BillingResultModel.from_result(r) for r in summary.results],
        )


class SubscriptionStatusModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    subscription_id: UUID = Field(..., alias="subscriptionId")
    status: str
    next_billing_date: date = Field(..., alias="nextBillingDate")
