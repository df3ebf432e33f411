from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, Hashable, TypeVar

from .clients.inventory_client import InventoryClient
from .clients.locations_client import LocationsClient
from .models_inventory import (
    MAIN_WAREHOUSE_ID,
    MAIN_WAREHOUSE_NAME,
    InventoryPage,
    InventoryQuery,
    Location,
    Product,
)

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TtlCache(Generic[V]):
    """Small in-memory TTL cache keyed by request parameters."""

    def __init__(self, ttl_seconds: float, now: Callable[[], float] | None = None) -> None:
        self.ttl_seconds = max(1.0, ttl_seconds)
        self._now = now or time.monotonic
        self._entries: dict[Hashable, CacheEntry[V]] = {}

    def get(self, key: Hashable) -> V | None:
        entry = self._entries.get(key)
        if not entry:
            return None
        if entry.expires_at <= self._now():
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: Hashable, value: V) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._now() + self.ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()


@dataclass
class StockSnapshot:
    """Inventory page, active locations and the dashboard filters for one session.

    Any filter change other than the page number resets to page 1, clears the
    selection and drops the cached page. Services call ``invalidate_inventory``
    after every successful stock-changing call. The cached page also expires
    after ``ttl_seconds`` so changes made from other workstations show up.
    Locations are only dropped by ``invalidate_locations``.
    """

    ttl_seconds: float = 300.0
    now: Callable[[], float] = time.monotonic
    query: InventoryQuery = field(default_factory=InventoryQuery)
    selected_ids: set[int] = field(default_factory=set)
    generation: int = 0
    _inventory: InventoryPage | None = None
    _inventory_query: InventoryQuery | None = None
    _inventory_expires_at: float = 0.0
    _locations: list[Location] | None = None

    # Filters

    @property
    def page(self) -> int:
        return self.query.page

    def set_page(self, page: int) -> None:
        self.query = self.query.model_copy(update={"page": max(1, page)})

    def set_search(self, search: str) -> None:
        self._apply_filter(search=search.strip())

    def set_status(self, status: str) -> None:
        self._apply_filter(status=status)

    def set_location_filter(self, location_id: int | None) -> None:
        self._apply_filter(location_id=location_id)

    def set_category(self, category: str) -> None:
        self._apply_filter(category=category)

    def set_sort(self, sort_by: str, sort_order: str = "ASC") -> None:
        self._apply_filter(sort_by=sort_by, sort_order=sort_order.upper())

    def toggle_sort(self, sort_by: str) -> None:
        if self.query.sort_by == sort_by:
            order = "DESC" if self.query.sort_order == "ASC" else "ASC"
        else:
            order = "ASC"
        self.set_sort(sort_by, order)

    def reset_filters(self) -> None:
        self.query = InventoryQuery()
        self.selected_ids.clear()
        self.invalidate_inventory()

    def _apply_filter(self, **changes: object) -> None:
        self.query = self.query.model_copy(update={**changes, "page": 1})
        self.selected_ids.clear()
        self.invalidate_inventory()

    # Selection

    def toggle_selection(self, product_id: int) -> bool:
        if product_id in self.selected_ids:
            self.selected_ids.discard(product_id)
            return False
        self.selected_ids.add(product_id)
        return True

    def select_page(self) -> None:
        if self._inventory:
            self.selected_ids.update(product.id for product in self._inventory.products)

    def clear_selection(self) -> None:
        self.selected_ids.clear()

    def selected_products(self) -> list[Product]:
        return self.get_products(sorted(self.selected_ids))

    # Cache

    def invalidate_inventory(self) -> None:
        self._inventory = None
        self._inventory_query = None
        self.generation += 1

    def invalidate_locations(self) -> None:
        self._locations = None

    def inventory_is_fresh(self) -> bool:
        return (
            self._inventory is not None
            and self._inventory_query == self.query
            and self.now() < self._inventory_expires_at
        )

    def load_inventory(self, client: InventoryClient, force: bool = False) -> InventoryPage:
        if not force and self.inventory_is_fresh():
            return self._inventory
        generation = self.generation
        query = self.query
        page = client.get_inventory(query)
        # Keep the result only if nothing invalidated the cache meanwhile.
        if generation == self.generation and query == self.query:
            self._inventory = page
            self._inventory_query = query
            self._inventory_expires_at = self.now() + self.ttl_seconds
        return page

    def load_locations(self, client: LocationsClient, force: bool = False) -> list[Location]:
        if force or self._locations is None:
            self._locations = client.list_locations()
        return list(self._locations)

    @property
    def locations(self) -> list[Location]:
        return list(self._locations or [])

    def location_name(self, location_id: int | None) -> str | None:
        if location_id == MAIN_WAREHOUSE_ID:
            return MAIN_WAREHOUSE_NAME
        for location in self._locations or []:
            if location.id == location_id:
                return location.name
        return None

    def get_product(self, product_id: int) -> Product | None:
        if not self._inventory:
            return None
        for product in self._inventory.products:
            if product.id == product_id:
                return product
        return None

    def get_products(self, product_ids: list[int]) -> list[Product]:
        found = []
        for product_id in product_ids:
            product = self.get_product(product_id)
            if product is not None:
                found.append(product)
        return found

    def available_stock(self, product_id: int, location_id: int) -> int | None:
        product = self.get_product(product_id)
        if product is None:
            return None
        return product.stock_at(location_id)
