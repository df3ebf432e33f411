from .auth_store import AuthStore
from .config import ClientConfig, ConfigError, load_config
from .csv_import import EmptyInputError, MissingColumnsError, parse_stock_csv
from .exceptions import (
    ApiError,
    ApplicationError,
    AuthError,
    BadRequestError,
    ConflictError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RequestCancelledError,
    ServerRejectedError,
)
from .http_client import HttpClient
from .models import ApiEnvelope, SessionData, UserResponse
from .models_inventory import InventoryQuery, Location, Product, StockBreakdownEntry, StockImportRow
from .models_transfers import TransferBatch, TransferQuery, TransferStatus, TransferSummary, TransferTab
from .mutation_guard import MutationGuard, MutationInFlightError
from .session import ApiSession
from .snapshot import StockSnapshot
from .stock_validation import ClientValidationError, ValidationIssue
from .transfer_state import (
    Discrepancy,
    TransferStateError,
    batch_discrepancy,
    line_discrepancy,
    transfer_action_availability,
)
from .transfer_validation import (
    EmptyTransferError,
    InvalidEndpointsError,
    InvalidQuantityError,
    TransferLineInput,
    build_transfer_request,
)
from .ui_errors import UserFacingError, to_user_facing_error

__version__ = "0.4.0"

__all__ = [
    "ApiEnvelope",
    "ApiError",
    "ApiSession",
    "ApplicationError",
    "AuthError",
    "AuthStore",
    "BadRequestError",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "Discrepancy",
    "EmptyInputError",
    "EmptyTransferError",
    "HttpClient",
    "InvalidEndpointsError",
    "InvalidQuantityError",
    "InventoryQuery",
    "Location",
    "MissingColumnsError",
    "MutationGuard",
    "MutationInFlightError",
    "NetworkError",
    "NotFoundError",
    "PermissionDeniedError",
    "Product",
    "RequestCancelledError",
    "ServerRejectedError",
    "SessionData",
    "StockBreakdownEntry",
    "StockImportRow",
    "StockSnapshot",
    "TransferBatch",
    "TransferLineInput",
    "TransferQuery",
    "TransferStateError",
    "TransferStatus",
    "TransferSummary",
    "TransferTab",
    "UserFacingError",
    "UserResponse",
    "ValidationIssue",
    "batch_discrepancy",
    "build_transfer_request",
    "line_discrepancy",
    "load_config",
    "parse_stock_csv",
    "to_user_facing_error",
    "transfer_action_availability",
]
