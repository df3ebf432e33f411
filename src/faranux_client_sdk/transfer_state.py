from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .models_transfers import TransferStatus, TransferSummary
from .stock_validation import ClientValidationError, ValidationIssue

_BADGES = {
    TransferStatus.COMPLETED: "success",
    TransferStatus.PENDING: "warning",
    TransferStatus.REJECTED: "error",
    TransferStatus.CANCELED: "neutral",
}


class TransferStateError(ClientValidationError):
    """A mutation was requested on a transfer that is no longer pending."""

    def __init__(self, batch_id: str, status: TransferStatus | str, action: str) -> None:
        self.batch_id = batch_id
        self.status = _status(status)
        super().__init__(
            [ValidationIssue(None, "status", f"cannot {action} transfer {batch_id}: it is already {self.status.value}")]
        )


@dataclass(frozen=True)
class TransferActionAvailability:
    can_review: bool
    can_cancel: bool
    can_view: bool = True
    can_print: bool = True


def transfer_action_availability(
    status: TransferStatus | str,
    *,
    is_admin: bool,
    user_branch_id: int | None,
    from_loc_id: int | None,
    to_loc_id: int | None,
) -> TransferActionAvailability:
    if _status(status) is not TransferStatus.PENDING:
        return TransferActionAvailability(can_review=False, can_cancel=False)
    at_destination = user_branch_id is not None and user_branch_id == to_loc_id
    at_source = user_branch_id is not None and user_branch_id == from_loc_id
    return TransferActionAvailability(
        can_review=is_admin or at_destination,
        can_cancel=is_admin or at_source,
    )


def ensure_mutable(batch_id: str, status: TransferStatus | str, action: str) -> None:
    if _status(status).is_terminal:
        raise TransferStateError(batch_id, status, action)


class DiscrepancyKind(str, Enum):
    SHORTAGE = "shortage"
    OVERAGE = "overage"
    EXACT = "exact"


@dataclass(frozen=True)
class Discrepancy:
    sent: int
    received: int

    @property
    def diff(self) -> int:
        return self.received - self.sent

    @property
    def kind(self) -> DiscrepancyKind:
        if self.diff < 0:
            return DiscrepancyKind.SHORTAGE
        if self.diff > 0:
            return DiscrepancyKind.OVERAGE
        return DiscrepancyKind.EXACT

    @property
    def style(self) -> str:
        return {
            DiscrepancyKind.SHORTAGE: "error",
            DiscrepancyKind.OVERAGE: "warning",
            DiscrepancyKind.EXACT: "success",
        }[self.kind]

    def label(self) -> str:
        return f"{self.diff:+d}" if self.diff else "0"


def line_discrepancy(sent: int, received: int | None) -> Discrepancy | None:
    """None until the line has been counted."""
    if received is None:
        return None
    return Discrepancy(sent=sent, received=received)


def batch_discrepancy(summary: TransferSummary) -> Discrepancy | None:
    if summary.status not in (TransferStatus.COMPLETED, TransferStatus.REJECTED):
        return None
    return Discrepancy(sent=summary.total_qty or 0, received=summary.total_received_qty or 0)


def status_badge(status: TransferStatus | str) -> str:
    try:
        return _BADGES[_status(status)]
    except ValueError:
        return "neutral"


def _status(status: TransferStatus | str) -> TransferStatus:
    if isinstance(status, TransferStatus):
        return status
    return TransferStatus(str(status).strip().lower())
