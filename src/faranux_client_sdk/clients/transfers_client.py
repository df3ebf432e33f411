from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, NoReturn

from ..exceptions import (
    ApiError,
    ApplicationError,
    BadRequestError,
    ConflictError,
    NetworkError,
    ServerRejectedError,
)
from ..models import ApiEnvelope
from ..models_transfers import (
    ApproveTransferRequest,
    CancelTransferRequest,
    InitiateTransferRequest,
    InitiateTransferResponse,
    TransferBatch,
    TransferListResponse,
    TransferQuery,
)
from .base import BaseClient

TRANSFERS_CONTEXT = "transfers"


@dataclass
class TransfersClient(BaseClient):
    def list_transfers(
        self,
        filters: TransferQuery | None = None,
        context_version: int | None = None,
    ) -> TransferListResponse:
        query = filters or TransferQuery()
        payload = self._request(
            "get_transfers",
            params=build_transfer_params(query),
            context_key=TRANSFERS_CONTEXT,
            context_version=context_version,
        )
        pagination = payload.get("pagination") or {}
        return TransferListResponse.model_validate(
            {
                "rows": payload.get("data") or [],
                "page": pagination.get("page") or query.page,
                "total_pages": pagination.get("total_pages"),
            }
        )

    def get_transfer_details(self, batch_id: str) -> TransferBatch:
        payload = self._request("get_transfer_details", params={"batch_id": batch_id})
        data = payload.get("data")
        if not isinstance(data, dict):
            raise NetworkError(
                code="MALFORMED_RESPONSE",
                message="Expected transfer details to be a JSON object",
                details={"batch_id": batch_id},
                status_code=200,
                raw_payload=payload,
            )
        return TransferBatch.model_validate({"batch_id": batch_id, **data})

    def initiate_transfer(self, request: InitiateTransferRequest) -> InitiateTransferResponse:
        try:
            payload = self._request("initiate_transfer", "POST", json_body=request.model_dump(mode="json"))
        except ApiError as exc:
            _raise_transfer_error(exc)
        return InitiateTransferResponse.model_validate(payload)

    def approve_transfer(self, request: ApproveTransferRequest) -> ApiEnvelope:
        try:
            payload = self._request("approve_transfer", "POST", json_body=request.model_dump(mode="json"))
        except ApiError as exc:
            _raise_transfer_error(exc)
        return ApiEnvelope.model_validate(payload)

    def cancel_transfer(self, request: CancelTransferRequest) -> ApiEnvelope:
        try:
            payload = self._request("cancel_transfer", "POST", json_body=request.model_dump(mode="json"))
        except ApiError as exc:
            _raise_transfer_error(exc)
        return ApiEnvelope.model_validate(payload)

    def download_transfers_csv(
        self,
        filters: TransferQuery | None = None,
        output_dir: str | Path = ".",
        today: date | None = None,
    ) -> Path:
        query = filters or TransferQuery()
        params = build_transfer_params(query)
        params.pop("page", None)
        params.pop("branch_id", None)
        params.pop("user_id", None)
        content = self._download("export_transfers_csv", params=params)
        destination = Path(output_dir)
        destination.mkdir(parents=True, exist_ok=True)
        path = destination / export_filename(today or date.today())
        path.write_bytes(content)
        return path


def build_transfer_params(filters: TransferQuery) -> dict[str, Any]:
    return filters.model_dump(by_alias=True, exclude_none=True, mode="json")


def export_filename(day: date) -> str:
    return f"Transfers_Export_{day.strftime('%Y%m%d')}.csv"


def _raise_transfer_error(exc: ApiError) -> NoReturn:
    if type(exc) in (ApplicationError, BadRequestError, ConflictError):
        raise ServerRejectedError(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            status_code=exc.status_code,
            raw_payload=exc.raw_payload,
        ) from exc
    raise exc
