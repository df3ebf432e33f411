from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAIN_WAREHOUSE_ID = 0
MAIN_WAREHOUSE_NAME = "Main Warehouse"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_int(value: str) -> int | None:
    """Leading-integer parse: ``" 12abc"`` is 12, ``"abc"`` is None."""
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))


class ProductStatus(str, Enum):
    PUBLISH = "publish"
    DRAFT = "draft"
    PRIVATE = "private"
    PENDING = "pending"


class StockEntryType(str, Enum):
    NORMAL = "normal"
    VIRTUAL = "virtual"
    DEFECT = "defect"


class StockBreakdownEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    location_id: int
    location_name: str | None = None
    quantity: int = 0
    type: StockEntryType = StockEntryType.NORMAL


class Product(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    sku: str | None = None
    status: str | None = None
    price: float | None = None
    category: str | None = None
    stock_breakdown: list[StockBreakdownEntry] = Field(default_factory=list)

    @field_validator("stock_breakdown", mode="before")
    @classmethod
    def _parse_breakdown(cls, value: object) -> object:
        # Legacy payloads send "loc:qty,loc:qty".
        if value is None or value == "":
            return []
        if isinstance(value, str):
            entries = []
            for pair in value.split(","):
                location, _, qty = pair.partition(":")
                location_id = parse_int(location)
                quantity = parse_int(qty) if qty.strip() else 0
                if location_id is None or quantity is None:
                    continue
                entries.append({"location_id": location_id, "quantity": quantity})
            return entries
        return value

    def stock_at(self, location_id: int) -> int:
        """Sellable units held at one location; exact id match, 0 when absent."""
        total = 0
        for entry in self.stock_breakdown:
            if entry.location_id == location_id and entry.type == StockEntryType.NORMAL:
                total += entry.quantity
        return total

    @property
    def sellable_stock(self) -> int:
        return sum(entry.quantity for entry in self.stock_breakdown if entry.type == StockEntryType.NORMAL)


class Location(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None


class InventoryQuery(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    page: int = 1
    search: str = ""
    location_id: int | None = None
    status: str = ProductStatus.PUBLISH.value
    sort_by: str = "name"
    sort_order: str = "ASC"
    category: str = ""


class InventoryPage(BaseModel):
    model_config = ConfigDict(extra="allow")

    products: list[Product]
    total_pages: int = 1
    total_items: int = 0


class StockComparisonRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    sku: str | None = None
    wc_stock: int = 0
    local_stock: int = 0
    difference: int = 0
    stock_breakdown: str | list | None = None

    @property
    def unallocated(self) -> int:
        """Storefront units not yet allocated to any branch."""
        return max(0, self.difference)


class StockAdjustRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: int
    location_id: int
    qty: int
    reason: str


class ImportMode(str, Enum):
    ADD = "add"
    REPLACE = "replace"


class StockImportRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    sku: str
    qty: int = 0
    branch_id: int | None = None
    line_number: int | None = Field(default=None, exclude=True)


class StockImportRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    items: list[StockImportRow]
    mode: ImportMode = ImportMode.ADD


class StockImportResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    message: str | None = None
    errors: list[str] = Field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.errors)


class StockComparisonPage(BaseModel):
    model_config = ConfigDict(extra="allow")

    rows: list[StockComparisonRow]
    total_pages: int = 1
    total_items: int = 0


def category_label(path: str) -> tuple[int, str]:
    """Depth and leaf name of a ``"Parent > Child"`` category path."""
    parts = path.split(">")
    return len(parts) - 1, parts[-1].strip()
