from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models import ApiEnvelope
from ..models_inventory import (
    InventoryPage,
    InventoryQuery,
    StockAdjustRequest,
    StockComparisonPage,
    StockImportRequest,
    StockImportResponse,
)
from .base import BaseClient

INVENTORY_CONTEXT = "inventory"


@dataclass
class InventoryClient(BaseClient):
    def get_inventory(self, query: InventoryQuery | None = None, context_version: int | None = None) -> InventoryPage:
        payload = self._request(
            "get_inventory",
            params=build_inventory_params(query or InventoryQuery()),
            context_key=INVENTORY_CONTEXT,
            context_version=context_version,
        )
        pagination = payload.get("pagination") or {}
        return InventoryPage.model_validate(
            {
                "products": payload.get("data") or [],
                "total_pages": pagination.get("total_pages") or 1,
                "total_items": pagination.get("total_items") or 0,
            }
        )

    def get_categories(self) -> list[str]:
        payload = self._request("get_categories")
        return [str(item) for item in payload.get("data") or []]

    def get_stock_comparison(self, query: InventoryQuery | None = None) -> StockComparisonPage:
        query = query or InventoryQuery(sort_by="difference", sort_order="DESC")
        payload = self._request("get_stock_comparison", params=build_inventory_params(query))
        pagination = payload.get("pagination") or {}
        return StockComparisonPage.model_validate(
            {
                "rows": payload.get("data") or [],
                "total_pages": pagination.get("total_pages") or 1,
                "total_items": pagination.get("total_items") or 0,
            }
        )

    def adjust_stock(self, request: StockAdjustRequest) -> ApiEnvelope:
        payload = self._request("adjust_stock", "POST", json_body=request.model_dump(mode="json"))
        return ApiEnvelope.model_validate(payload)

    def import_stock(self, request: StockImportRequest) -> StockImportResponse:
        payload = self._request("import_stock", "POST", json_body=request.model_dump(mode="json"))
        return StockImportResponse.model_validate(payload)


def build_inventory_params(query: InventoryQuery) -> dict[str, Any]:
    return query.model_dump(mode="json", exclude_none=True)
