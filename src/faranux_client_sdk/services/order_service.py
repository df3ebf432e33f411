from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Sequence

from ..exceptions import ApiError
from ..logging_utils import log_action
from ..models import ApiEnvelope
from ..models_orders import OrderLineItem, OrderSyncResult, PendingOrder
from ..session import ApiSession
from ..snapshot import TtlCache
from ..transfer_validation import validate_order_processing


class OrderService:
    """Pending storefront orders and their stock deduction from a branch."""

    def __init__(self, session: ApiSession) -> None:
        self.session = session
        self.orders: list[PendingOrder] = []
        self.last_sync: OrderSyncResult | None = None

    @property
    def cache(self) -> TtlCache[list[PendingOrder]]:
        return self.session.orders_cache

    @property
    def default_location_id(self) -> int | None:
        return self.session.default_order_location_id

    def set_default_location(self, location_id: int | None) -> None:
        self.session.remember_order_location(location_id)

    def list_pending(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        force: bool = False,
    ) -> list[PendingOrder]:
        key = (str(start_date or ""), str(end_date or ""))
        if not force:
            cached = self.cache.get(key)
            if cached is not None:
                self.orders = list(cached)
                return list(self.orders)
        client = self.session.orders_client()
        if force:
            self.last_sync = client.sync_orders()
            log_action(self.session.logger, "orders", "sync", "success", message=self.last_sync.message)
        orders = client.get_pending_orders(start_date, end_date)
        self.cache.set(key, orders)
        self.orders = list(orders)
        return list(self.orders)

    def process_order(
        self,
        order_id: int | str,
        items: Sequence[OrderLineItem | Mapping[str, Any]],
        location_id: int | None = None,
    ) -> ApiEnvelope:
        source = location_id if location_id is not None else self.default_location_id
        request = validate_order_processing(order_id, source, items)
        with self.session.guard.hold(f"process_order:{order_id}"):
            try:
                response = self.session.orders_client().process_order(request)
            except ApiError as exc:
                log_action(self.session.logger, "orders", "process_order", "failure", order_id=order_id, code=exc.code)
                raise
        self.orders = [order for order in self.orders if str(order.id) != str(order_id)]
        self.cache.clear()
        self.session.snapshot.invalidate_inventory()
        log_action(
            self.session.logger,
            "orders",
            "process_order",
            "success",
            order_id=order_id,
            location_id=request.location_id,
        )
        return response
