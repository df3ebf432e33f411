from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class OrderLineItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    quantity: int
    sku: str | None = None
    product_id: int | None = None


class PendingOrder(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | str
    customer_name: str | None = Field(default=None, validation_alias=AliasChoices("customer_name", "customer"))
    total: float | None = None
    status: str | None = None
    date: datetime | None = Field(default=None, validation_alias=AliasChoices("date", "order_date"))
    raw_items: list[OrderLineItem] = Field(default_factory=list)


class ProcessOrderRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    order_id: int | str
    location_id: int
    items: list[OrderLineItem]


class OrderSyncResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    message: str | None = None
    configured: bool | None = None
    errors: list[str] | None = None
