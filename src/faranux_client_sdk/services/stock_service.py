from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ApiError
from ..logging_utils import log_action
from ..models import ApiEnvelope
from ..models_inventory import InventoryPage, InventoryQuery, StockAdjustRequest, StockComparisonPage
from ..models_transfers import TransferItem
from ..session import ApiSession
from ..stock_validation import validate_stock_adjustment

POOL_ALLOCATION_REASON = "Stock synchronization"


@dataclass(frozen=True)
class PoolAllocationFailure:
    product_id: int
    qty: int
    message: str


@dataclass
class BulkAdjustmentResult:
    """Outcome of per-item adjustments where some items may fail on their own."""

    attempted: int = 0
    succeeded: int = 0
    failures: list[PoolAllocationFailure] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return 0 < self.succeeded < self.attempted

    @property
    def all_failed(self) -> bool:
        return self.attempted > 0 and self.succeeded == 0

    def summary(self) -> str:
        return f"{self.succeeded}/{self.attempted} items allocated"


class StockService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def load_inventory(self, force: bool = False) -> InventoryPage:
        return self.session.snapshot.load_inventory(self.session.inventory_client(), force=force)

    def categories(self) -> list[str]:
        return self.session.inventory_client().get_categories()

    def stock_comparison(self, query: InventoryQuery | None = None) -> StockComparisonPage:
        return self.session.inventory_client().get_stock_comparison(query)

    def adjust_stock(self, product_id: int, location_id: int, qty: Any, reason: str) -> ApiEnvelope:
        request = validate_stock_adjustment(
            {"product_id": product_id, "location_id": location_id, "qty": qty, "reason": reason},
            current_stock=self.session.snapshot.available_stock(product_id, location_id),
        )
        operation = f"adjust_stock:{request.product_id}:{request.location_id}"
        with self.session.guard.hold(operation):
            try:
                response = self.session.inventory_client().adjust_stock(request)
            except ApiError as exc:
                log_action(
                    self.session.logger,
                    "stock",
                    "adjust_stock",
                    "failure",
                    product_id=request.product_id,
                    location_id=request.location_id,
                    code=exc.code,
                )
                raise
        self.session.snapshot.invalidate_inventory()
        log_action(
            self.session.logger,
            "stock",
            "adjust_stock",
            "success",
            product_id=request.product_id,
            location_id=request.location_id,
            qty=request.qty,
        )
        return response

    def allocate_from_pool(
        self,
        items: list[TransferItem],
        destination_id: int,
        reason: str | None = None,
    ) -> BulkAdjustmentResult:
        """Move storefront-pool units into a branch, one adjustment per item."""
        result = BulkAdjustmentResult()
        client = self.session.inventory_client()
        with self.session.guard.hold(f"allocate_from_pool:{destination_id}"):
            for item in items:
                result.attempted += 1
                request = StockAdjustRequest(
                    product_id=item.product_id,
                    location_id=destination_id,
                    qty=item.qty,
                    reason=reason or POOL_ALLOCATION_REASON,
                )
                try:
                    client.adjust_stock(request)
                except ApiError as exc:
                    result.failures.append(
                        PoolAllocationFailure(product_id=item.product_id, qty=item.qty, message=exc.message)
                    )
                    continue
                result.succeeded += 1
        if result.succeeded:
            self.session.snapshot.invalidate_inventory()
        log_action(
            self.session.logger,
            "stock",
            "allocate_from_pool",
            "success" if not result.failures else "partial_failure",
            destination_id=destination_id,
            attempted=result.attempted,
            succeeded=result.succeeded,
        )
        return result
