from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..models import ApiEnvelope
from ..models_orders import OrderSyncResult, PendingOrder, ProcessOrderRequest
from .base import BaseClient


@dataclass
class OrdersClient(BaseClient):
    def get_pending_orders(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> list[PendingOrder]:
        params = {"start_date": _date_param(start_date), "end_date": _date_param(end_date)}
        payload = self._request("get_pending_orders", params=params)
        return [PendingOrder.model_validate(row) for row in payload.get("data") or []]

    def sync_orders(self) -> OrderSyncResult:
        payload = self._request("sync_orders", "POST")
        return OrderSyncResult.model_validate(payload)

    def process_order(self, request: ProcessOrderRequest) -> ApiEnvelope:
        payload = self._request("process_order", "POST", json_body=request.model_dump(mode="json", exclude_none=True))
        return ApiEnvelope.model_validate(payload)


def _date_param(value: date | str | None) -> str | None:
    if isinstance(value, date):
        return value.isoformat()
    return value
