from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from ..clients.transfers_client import TRANSFERS_CONTEXT
from ..exceptions import ApiError
from ..logging_utils import log_action
from ..models_transfers import (
    ApproveTransferRequest,
    CancelTransferRequest,
    InitiateTransferRequest,
    InitiateTransferResponse,
    ReceivedLine,
    ReviewAction,
    TransferBatch,
    TransferListResponse,
    TransferQuery,
    TransferStatus,
    TransferSummary,
    TransferTab,
)
from ..session import ApiSession
from ..transfer_state import TransferActionAvailability, ensure_mutable, transfer_action_availability
from ..transfer_validation import TransferLineInput, build_transfer_request, validate_receipt
from .stock_service import BulkAdjustmentResult, StockService


class TransferService:
    """Initiate, review and cancel transfers.

    The last status seen for each batch is remembered, so a review or cancel of
    a batch already known to be resolved is refused before any request is made.
    Every successful mutation drops the cached inventory page.
    """

    def __init__(self, session: ApiSession, stock_service: StockService | None = None) -> None:
        self.session = session
        self.stock_service = stock_service or StockService(session)
        self._statuses: dict[str, TransferStatus] = {}
        self._line_ids: dict[str, set[str]] = {}

    def known_status(self, batch_id: str) -> TransferStatus | None:
        return self._statuses.get(batch_id)

    def list_transfers(self, filters: TransferQuery | TransferTab | str | None = None, **extra: Any) -> TransferListResponse:
        if filters is None or isinstance(filters, (TransferTab, str)):
            query = TransferQuery.for_tab(filters or TransferTab.ALL, **extra)
        else:
            query = filters.model_copy(update=extra) if extra else filters
        version = self.session.http.switch_context(TRANSFERS_CONTEXT)
        response = self.session.transfers_client().list_transfers(query, context_version=version)
        for row in response.rows:
            self._statuses[row.batch_id] = row.status
        return response

    def get_details(self, batch_id: str) -> TransferBatch:
        batch = self.session.transfers_client().get_transfer_details(batch_id)
        self._statuses[batch.batch_id] = batch.status
        self._line_ids[batch.batch_id] = batch.line_ids()
        return batch

    def availability(self, summary: TransferSummary) -> TransferActionAvailability:
        user = self.session.user
        return transfer_action_availability(
            self._statuses.get(summary.batch_id, summary.status),
            is_admin=self.session.is_admin,
            user_branch_id=user.branch_id if user else None,
            from_loc_id=summary.from_loc_id,
            to_loc_id=summary.to_loc_id,
        )

    def initiate(
        self,
        lines: Iterable[TransferLineInput | Mapping[str, Any]],
        source_id: Any,
        destination_id: Any,
        reason: str | None = None,
    ) -> InitiateTransferResponse | BulkAdjustmentResult:
        request = build_transfer_request(
            lines,
            source_id,
            destination_id,
            available_stock=self.session.snapshot.available_stock,
            reason=reason,
        )
        if request.is_pool_source:
            return self.stock_service.allocate_from_pool(request.items, request.destination_id, reason)

        payload = InitiateTransferRequest(
            items=request.items,
            from_branch_id=request.source_id,
            to_branch_id=request.destination_id,
        )
        with self.session.guard.hold("initiate_transfer"):
            try:
                response = self.session.transfers_client().initiate_transfer(payload)
            except ApiError as exc:
                self._log("initiate", "failure", code=exc.code, from_branch_id=request.source_id)
                raise
        if response.batch_id:
            self._statuses[response.batch_id] = TransferStatus.PENDING
        self.session.snapshot.invalidate_inventory()
        self._log(
            "initiate",
            "success",
            batch_id=response.batch_id,
            from_branch_id=request.source_id,
            to_branch_id=request.destination_id,
            items=len(request.items),
        )
        return response

    def approve(self, batch_id: str, items: Sequence[ReceivedLine | Mapping[str, Any]]) -> TransferStatus:
        self._ensure_pending(batch_id, "approve")
        received = validate_receipt(items, self._line_ids.get(batch_id))
        return self._review(batch_id, ReviewAction.APPROVE, received)

    def reject(
        self,
        batch_id: str,
        items: Sequence[ReceivedLine | Mapping[str, Any]] | None = None,
    ) -> TransferStatus:
        self._ensure_pending(batch_id, "reject")
        received = validate_receipt(items, self._line_ids.get(batch_id)) if items else []
        return self._review(batch_id, ReviewAction.REJECT, received)

    def cancel(self, batch_id: str, reason: str = "") -> TransferStatus:
        self._ensure_pending(batch_id, "cancel")
        with self.session.guard.hold(f"transfer:{batch_id}"):
            try:
                self.session.transfers_client().cancel_transfer(
                    CancelTransferRequest(batch_id=batch_id, reason=reason.strip())
                )
            except ApiError as exc:
                self._log("cancel", "failure", batch_id=batch_id, code=exc.code)
                raise
        self._statuses[batch_id] = TransferStatus.CANCELED
        self.session.snapshot.invalidate_inventory()
        self._log("cancel", "success", batch_id=batch_id)
        return TransferStatus.CANCELED

    def export_csv(self, filters: TransferQuery | TransferTab | str | None = None, output_dir: str | Path = ".") -> Path:
        if filters is None or isinstance(filters, (TransferTab, str)):
            query = TransferQuery.for_tab(filters or TransferTab.ALL)
        else:
            query = filters
        path = self.session.transfers_client().download_transfers_csv(query, output_dir=output_dir)
        self._log("export_csv", "success", path=str(path))
        return path

    def _review(self, batch_id: str, action: ReviewAction, received: list[ReceivedLine]) -> TransferStatus:
        request = ApproveTransferRequest(batch_id=batch_id, action=action, items_data=received)
        with self.session.guard.hold(f"transfer:{batch_id}"):
            try:
                self.session.transfers_client().approve_transfer(request)
            except ApiError as exc:
                self._log(action.value, "failure", batch_id=batch_id, code=exc.code)
                raise
        status = TransferStatus.COMPLETED if action is ReviewAction.APPROVE else TransferStatus.REJECTED
        self._statuses[batch_id] = status
        self.session.snapshot.invalidate_inventory()
        self._log(action.value, "success", batch_id=batch_id, lines=len(received))
        return status

    def _ensure_pending(self, batch_id: str, action: str) -> None:
        status = self._statuses.get(batch_id)
        if status is not None:
            ensure_mutable(batch_id, status, action)

    def _log(self, action: str, outcome: str, **context: Any) -> None:
        log_action(self.session.logger, "transfers", action, outcome, **context)
