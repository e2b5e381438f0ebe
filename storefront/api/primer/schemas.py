from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WebhookResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type: str | None = Field(None, alias="eventType")
    processed: bool
    subscription_id: UUID | None = Field(None, alias="subscriptionId")
    created: bool = False


class ClientSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_identifier: str | None = Field(
        None, alias="productIdentifier", min_length=1, max_length=200
    )
    customer_email: str | None = Field(
        None, alias="customerEmail", min_length=3, max_length=320
    )


class ClientSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_token: str = Field(..., alias="clientToken")
