from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

from .models_inventory import MAIN_WAREHOUSE_ID
from .models_orders import OrderLineItem, ProcessOrderRequest
from .models_transfers import POOL_SOURCE, ReceivedLine, TransferItem, TransferRequest, TransferSource
from .stock_validation import ClientValidationError, ValidationIssue, coerce_model

StockLookup = Callable[[int, int], "int | None"]

_INTEGER = re.compile(r"[+-]?\d+")


class InvalidEndpointsError(ClientValidationError):
    """Source or destination missing, unknown, or identical."""


class InvalidQuantityError(ClientValidationError):
    pass


class EmptyTransferError(ClientValidationError):
    pass


@dataclass(frozen=True)
class TransferLineInput:
    """One row of the transfer form: a product and the quantity typed for it."""

    product_id: int
    qty: Any
    included: bool = True


def build_transfer_request(
    lines: Iterable[TransferLineInput | Mapping[str, Any]],
    source_id: Any,
    destination_id: Any,
    *,
    available_stock: StockLookup | None = None,
    reason: str | None = None,
) -> TransferRequest:
    """Validate a single or multi-product transfer form and build the request.

    A single-product transfer is a list of one line. Only lines flagged
    ``included`` are sent. ``available_stock(product_id, location_id)`` returns
    the source's stock for a product, or None when the product is not loaded;
    quantities above a known figure are refused. The ``"wc"`` storefront pool
    is accepted as a source and skips the stock check.
    """
    source = _resolve_source(source_id)
    destination = _resolve_location(destination_id, "destination_id")
    if source == destination:
        _raise(InvalidEndpointsError, None, "destination_id", "source and destination must differ")

    selected = [_coerce_line(line) for line in lines]
    selected = [line for line in selected if line.included]
    if not selected:
        _raise(EmptyTransferError, None, "items", "select at least one product to transfer")

    items: list[TransferItem] = []
    for idx, line in enumerate(selected):
        qty = parse_quantity(line.qty)
        if qty is None or qty < 1:
            _raise(InvalidQuantityError, idx, "qty", f"quantity for product {line.product_id} must be a positive integer")
        if source != POOL_SOURCE and available_stock is not None:
            available = available_stock(line.product_id, source)
            if available is not None and qty > available:
                _raise(
                    InvalidQuantityError,
                    idx,
                    "qty",
                    f"quantity for product {line.product_id} exceeds available stock ({available})",
                )
        items.append(TransferItem(product_id=line.product_id, qty=qty))

    return TransferRequest(source_id=source, destination_id=destination, items=items, reason=reason)


def validate_receipt(
    items: Sequence[ReceivedLine | Mapping[str, Any]],
    line_ids: set[str] | None = None,
) -> list[ReceivedLine]:
    """Received counts must be non-negative integers; counts above the sent qty are kept."""
    if not items:
        _raise(ClientValidationError, None, "items_data", "items_data must not be empty")
    validated: list[ReceivedLine] = []
    seen: set[str] = set()
    for idx, raw in enumerate(items):
        line = _coerce_received(raw, idx)
        key = str(line.id)
        if line_ids is not None and key not in line_ids:
            _raise(ClientValidationError, idx, "id", f"line {key} is not part of this transfer")
        if key in seen:
            _raise(ClientValidationError, idx, "id", f"line {key} is listed twice")
        seen.add(key)
        if line.received_qty < 0:
            _raise(InvalidQuantityError, idx, "received_qty", "received quantity cannot be negative")
        validated.append(line)
    return validated


def validate_order_processing(
    order_id: int | str,
    location_id: Any,
    items: Sequence[OrderLineItem | Mapping[str, Any]],
) -> ProcessOrderRequest:
    if location_id is None or location_id == "":
        _raise(InvalidEndpointsError, None, "location_id", "select the branch to deduct stock from")
    source = _resolve_location(location_id, "location_id")
    if not items:
        _raise(EmptyTransferError, None, "items", "order has no items to deduct")
    lines = [coerce_model(item, OrderLineItem, idx) for idx, item in enumerate(items)]
    for idx, line in enumerate(lines):
        if line.quantity < 0:
            _raise(InvalidQuantityError, idx, "quantity", f"quantity for {line.name} cannot be negative")
    return ProcessOrderRequest(order_id=order_id, location_id=source, items=lines)


def parse_quantity(value: Any) -> int | None:
    """Whole-number parse of a form value; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _INTEGER.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _resolve_source(value: Any) -> TransferSource:
    if isinstance(value, str) and value.strip().lower() == POOL_SOURCE:
        return POOL_SOURCE
    return _resolve_location(value, "source_id")


def _resolve_location(value: Any, field: str) -> int:
    if value is None or value == "":
        _raise(InvalidEndpointsError, None, field, f"{field} must be selected")
    location = parse_quantity(value)
    if location is None or location < MAIN_WAREHOUSE_ID:
        _raise(InvalidEndpointsError, None, field, f"{field} is not a valid location")
    return location


def _coerce_line(line: TransferLineInput | Mapping[str, Any]) -> TransferLineInput:
    if isinstance(line, TransferLineInput):
        return line
    return TransferLineInput(
        product_id=int(line["product_id"]),
        qty=line.get("qty"),
        included=bool(line.get("included", True)),
    )


def _coerce_received(raw: ReceivedLine | Mapping[str, Any], idx: int) -> ReceivedLine:
    if isinstance(raw, ReceivedLine):
        return raw
    qty = parse_quantity(raw.get("received_qty"))
    if qty is None:
        _raise(InvalidQuantityError, idx, "received_qty", "received quantity must be a whole number")
    return coerce_model({**raw, "received_qty": qty, "note": raw.get("note") or ""}, ReceivedLine, idx)


def _raise(error_type: type[ClientValidationError], row_index: int | None, field: str, reason: str) -> None:
    raise error_type([ValidationIssue(row_index=row_index, field=field, reason=reason)])
