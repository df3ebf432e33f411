from .branch_service import BranchService
from .import_service import ImportService
from .order_service import OrderService
from .stock_service import BulkAdjustmentResult, PoolAllocationFailure, StockService
from .transfer_service import TransferService

__all__ = [
    "BranchService",
    "BulkAdjustmentResult",
    "ImportService",
    "OrderService",
    "PoolAllocationFailure",
    "StockService",
    "TransferService",
]
