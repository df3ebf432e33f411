from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

POOL_SOURCE = "wc"

TransferSource = Union[int, Literal["wc"]]


class TransferStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self is not TransferStatus.PENDING


class TransferDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"
    ALL = "all"


class TransferStateFilter(str, Enum):
    PENDING = "pending"
    HISTORY = "history"
    ALL = "all"


class TransferTab(str, Enum):
    PENDING_INCOMING = "pending_incoming"
    PENDING_OUTGOING = "pending_outgoing"
    HISTORY = "history"
    ALL = "all"

    def to_filters(self) -> tuple[TransferStateFilter, TransferDirection]:
        if self is TransferTab.PENDING_INCOMING:
            return TransferStateFilter.PENDING, TransferDirection.INCOMING
        if self is TransferTab.PENDING_OUTGOING:
            return TransferStateFilter.PENDING, TransferDirection.OUTGOING
        if self is TransferTab.HISTORY:
            return TransferStateFilter.HISTORY, TransferDirection.ALL
        return TransferStateFilter.ALL, TransferDirection.ALL


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class TransferQuery(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    state: TransferStateFilter = Field(default=TransferStateFilter.ALL, alias="type")
    direction: TransferDirection = TransferDirection.ALL
    page: int = 1
    search: str | None = None
    branch_id: int | None = None
    start_date: date | str | None = None
    end_date: date | str | None = None
    user_id: int | None = None

    @classmethod
    def for_tab(cls, tab: TransferTab | str, **filters: object) -> "TransferQuery":
        state, direction = TransferTab(tab).to_filters()
        return cls(state=state, direction=direction, **filters)


class TransferItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: int
    qty: int


class TransferRequest(BaseModel):
    """Validated output of the request builder, ready to submit."""

    model_config = ConfigDict(extra="allow")

    source_id: TransferSource
    destination_id: int
    items: list[TransferItem]
    reason: str | None = None

    @property
    def is_pool_source(self) -> bool:
        return self.source_id == POOL_SOURCE


class InitiateTransferRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    items: list[TransferItem]
    from_branch_id: int
    to_branch_id: int


class InitiateTransferResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    batch_id: str | None = None
    message: str | None = None


class ReceivedLine(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str
    received_qty: int
    note: str = ""


class ApproveTransferRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    batch_id: str
    action: ReviewAction = ReviewAction.APPROVE
    items_data: list[ReceivedLine] = Field(default_factory=list)


class CancelTransferRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    batch_id: str
    reason: str = ""


class TransferLineItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str
    product_id: int | None = None
    product_name: str | None = None
    product_sku: str | None = None
    qty: int
    received_qty: int | None = None
    note: str | None = None
    approved_at: datetime | None = None


class TransferSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    batch_id: str
    from_loc_id: int | None = None
    to_loc_id: int | None = None
    from_location: str | None = None
    to_location: str | None = None
    status: TransferStatus
    created_at: datetime | None = None
    initiated_by: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    item_count: int | None = None
    total_qty: int | None = None
    total_received_qty: int | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class TransferBatch(TransferSummary):
    items: list[TransferLineItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def _fill_from_items(self) -> "TransferBatch":
        # Details responses carry approved_at on the lines, not the header.
        if self.approved_at is None and self.items and self.items[0].approved_at is not None:
            self.approved_at = self.items[0].approved_at
        if self.item_count is None:
            self.item_count = len(self.items)
        if self.total_qty is None:
            self.total_qty = sum(item.qty for item in self.items)
        if self.total_received_qty is None and self.items and all(
            item.received_qty is not None for item in self.items
        ):
            self.total_received_qty = sum(item.received_qty or 0 for item in self.items)
        return self

    def line_ids(self) -> set[str]:
        return {str(item.id) for item in self.items}


class TransferListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    rows: list[TransferSummary]
    page: int = 1
    total_pages: int | None = None
