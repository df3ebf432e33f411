from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .auth_store import AuthStore
from .clients.auth_client import AuthClient
from .clients.inventory_client import InventoryClient
from .clients.locations_client import LocationsClient
from .clients.orders_client import OrdersClient
from .clients.transfers_client import TransfersClient
from .config import ClientConfig
from .http_client import HttpClient
from .logging_utils import get_logger
from .models import SessionData, UserResponse
from .models_orders import PendingOrder
from .mutation_guard import MutationGuard
from .snapshot import StockSnapshot, TtlCache
from .stock_validation import validate_credentials


@dataclass
class ApiSession:
    """Logged-in user plus the state every service shares: transport, caches and in-flight guard."""

    config: ClientConfig
    auth_store: AuthStore | None = None
    user: UserResponse | None = None
    http: HttpClient | None = None
    snapshot: StockSnapshot | None = None
    orders_cache: TtlCache[list[PendingOrder]] | None = None
    guard: MutationGuard = field(default_factory=MutationGuard)
    default_order_location_id: int | None = None
    logger: logging.Logger | None = None

    def __post_init__(self) -> None:
        self.auth_store = self.auth_store or AuthStore()
        self.http = self.http or HttpClient(config=self.config)
        self.snapshot = self.snapshot or StockSnapshot(ttl_seconds=self.config.inventory_cache_seconds)
        if self.orders_cache is None:
            self.orders_cache = TtlCache(self.config.orders_cache_seconds)
        self.logger = self.logger or get_logger("faranux_client_sdk", self.config.log_level)
        stored = self.auth_store.load()
        if stored and not self.user:
            self.user = stored.user
            if self.default_order_location_id is None:
                self.default_order_location_id = stored.default_order_location_id

    @property
    def token(self) -> str | None:
        return self.user.api_token if self.user else None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)

    def auth_client(self) -> AuthClient:
        return AuthClient(http=self.http, access_token=self.token)

    def inventory_client(self) -> InventoryClient:
        return InventoryClient(http=self.http, access_token=self.token)

    def locations_client(self) -> LocationsClient:
        return LocationsClient(http=self.http, access_token=self.token)

    def transfers_client(self) -> TransfersClient:
        return TransfersClient(http=self.http, access_token=self.token)

    def orders_client(self) -> OrdersClient:
        return OrdersClient(http=self.http, access_token=self.token)

    def login(self, email: str, password: str) -> UserResponse:
        user = self.auth_client().login(validate_credentials(email, password), password)
        self.establish(user)
        return user

    def establish(self, user: UserResponse) -> None:
        self.user = user
        self._persist()

    def remember_order_location(self, location_id: int | None) -> None:
        self.default_order_location_id = location_id
        if self.user:
            self._persist()

    def clear(self) -> None:
        self.user = None
        self.default_order_location_id = None
        self.snapshot = StockSnapshot(ttl_seconds=self.config.inventory_cache_seconds)
        self.orders_cache.clear()
        self.guard = MutationGuard()
        if self.auth_store:
            self.auth_store.clear()

    def _persist(self) -> None:
        self.auth_store.save(
            SessionData(
                user=self.user,
                env_name=self.config.normalized_env,
                default_order_location_id=self.default_order_location_id,
            )
        )
