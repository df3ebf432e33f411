from __future__ import annotations

import json

import pytest
import responses
from responses import matchers

from faranux_client_sdk.exceptions import NetworkError, ServerRejectedError
from faranux_client_sdk.models_transfers import TransferStatus
from faranux_client_sdk.mutation_guard import MutationInFlightError
from faranux_client_sdk.services.stock_service import BulkAdjustmentResult
from faranux_client_sdk.services.transfer_service import TransferService
from faranux_client_sdk.session import ApiSession
from faranux_client_sdk.transfer_state import TransferStateError, batch_discrepancy, line_discrepancy
from faranux_client_sdk.transfer_validation import InvalidEndpointsError, InvalidQuantityError, TransferLineInput

from conftest import BASE_URL

INVENTORY = {
    "status": "success",
    "data": [
        {
            "id": 42,
            "name": "Phone",
            "sku": "PH-42",
            "stock_breakdown": [
                {"location_id": 3, "location_name": "Kigali", "quantity": 20, "type": "normal"},
                {"location_id": 7, "location_name": "Huye", "quantity": 0, "type": "normal"},
            ],
        }
    ],
    "pagination": {"total_pages": 1, "total_items": 1},
}


def _action(action: str) -> list:
    return [matchers.query_param_matcher({"action": action}, strict_match=False)]


def _details(status: str, received: int | None) -> dict:
    return {
        "status": "success",
        "data": {
            "batch_id": "TRF-001",
            "from_loc_id": 3,
            "to_loc_id": 7,
            "from_location": "Kigali",
            "to_location": "Huye",
            "status": status,
            "created_at": "2024-05-01 09:00:00",
            "items": [
                {
                    "id": 11,
                    "product_id": 42,
                    "product_name": "Phone",
                    "product_sku": "PH-42",
                    "qty": 5,
                    "received_qty": received,
                    "note": None,
                }
            ],
        },
    }


def _calls(action: str) -> list:
    return [call for call in responses.calls if f"action={action}" in call.request.url]


def _load_inventory(session: ApiSession) -> None:
    session.snapshot.load_inventory(session.inventory_client())


@responses.activate
def test_transfer_received_in_full(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=INVENTORY, match=_action("get_inventory"))
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "success", "batch_id": "TRF-001", "message": "Transfer initiated"},
        match=[
            *_action("initiate_transfer"),
            matchers.json_params_matcher(
                {"items": [{"product_id": 42, "qty": 5}], "from_branch_id": 3, "to_branch_id": 7}
            ),
        ],
    )
    responses.add(responses.GET, BASE_URL, json=_details("pending", None), match=_action("get_transfer_details"))
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "success", "message": "Transfer approved"},
        match=[
            *_action("approve_transfer"),
            matchers.json_params_matcher(
                {"batch_id": "TRF-001", "action": "approve", "items_data": [{"id": 11, "received_qty": 5, "note": ""}]}
            ),
        ],
    )
    responses.add(responses.GET, BASE_URL, json=_details("completed", 5), match=_action("get_transfer_details"))

    service = TransferService(session)
    _load_inventory(session)
    created = service.initiate([TransferLineInput(42, 5)], 3, 7)
    assert created.batch_id == "TRF-001"
    assert service.known_status("TRF-001") is TransferStatus.PENDING

    pending = service.get_details("TRF-001")
    assert pending.status is TransferStatus.PENDING
    assert pending.items[0].qty == 5
    assert batch_discrepancy(pending) is None
    assert service.availability(pending).can_review is True

    assert service.approve("TRF-001", [{"id": 11, "received_qty": 5}]) is TransferStatus.COMPLETED
    completed = service.get_details("TRF-001")
    assert completed.status is TransferStatus.COMPLETED
    assert batch_discrepancy(completed).diff == 0


@responses.activate
def test_transfer_received_short(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=_details("pending", None), match=_action("get_transfer_details"))
    responses.add(responses.POST, BASE_URL, json={"status": "success"}, match=_action("approve_transfer"))
    responses.add(responses.GET, BASE_URL, json=_details("completed", 3), match=_action("get_transfer_details"))

    service = TransferService(session)
    service.get_details("TRF-001")
    service.approve("TRF-001", [{"id": 11, "received_qty": 3, "note": "two units missing"}])
    body = json.loads(_calls("approve_transfer")[0].request.body)
    assert body["items_data"] == [{"id": 11, "received_qty": 3, "note": "two units missing"}]

    completed = service.get_details("TRF-001")
    discrepancy = line_discrepancy(completed.items[0].qty, completed.items[0].received_qty)
    assert discrepancy.diff == -2
    assert discrepancy.style == "error"
    assert batch_discrepancy(completed).diff == -2


@responses.activate
def test_same_endpoints_rejected_without_request(session: ApiSession) -> None:
    service = TransferService(session)
    with pytest.raises(InvalidEndpointsError):
        service.initiate([TransferLineInput(42, 5)], 3, 3)
    assert len(responses.calls) == 0


@responses.activate
def test_quantity_above_snapshot_stock_rejected(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=INVENTORY, match=_action("get_inventory"))
    _load_inventory(session)
    with pytest.raises(InvalidQuantityError):
        TransferService(session).initiate([TransferLineInput(42, 21)], 3, 7)
    assert _calls("initiate_transfer") == []


@responses.activate
def test_resolved_batch_accepts_no_further_mutation(session: ApiSession) -> None:
    responses.add(
        responses.GET,
        BASE_URL,
        json={
            "status": "success",
            "data": [
                {"batch_id": "TRF-001", "status": "completed", "from_loc_id": 3, "to_loc_id": 7},
                {"batch_id": "TRF-002", "status": "canceled", "from_loc_id": 7, "to_loc_id": 3},
            ],
        },
        match=_action("get_transfers"),
    )
    service = TransferService(session)
    listing = service.list_transfers("history")
    assert [row.batch_id for row in listing.rows] == ["TRF-001", "TRF-002"]
    calls_before = len(responses.calls)

    with pytest.raises(TransferStateError):
        service.approve("TRF-001", [{"id": 11, "received_qty": 5}])
    with pytest.raises(TransferStateError):
        service.reject("TRF-001")
    with pytest.raises(TransferStateError):
        service.cancel("TRF-002", "wrong branch")
    assert len(responses.calls) == calls_before


@responses.activate
def test_approved_batch_cannot_be_approved_twice(session: ApiSession) -> None:
    responses.add(responses.POST, BASE_URL, json={"status": "success"}, match=_action("approve_transfer"))
    service = TransferService(session)
    service.approve("TRF-003", [{"id": 1, "received_qty": 2}])
    with pytest.raises(TransferStateError):
        service.cancel("TRF-003")
    assert len(_calls("approve_transfer")) == 1
    assert _calls("cancel_transfer") == []


@responses.activate
def test_successful_mutation_invalidates_inventory(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=INVENTORY, match=_action("get_inventory"))
    responses.add(responses.POST, BASE_URL, json={"status": "success", "batch_id": "TRF-004"}, match=_action("initiate_transfer"))
    responses.add(responses.POST, BASE_URL, json={"status": "success"}, match=_action("approve_transfer"))
    service = TransferService(session)

    _load_inventory(session)
    service.initiate([TransferLineInput(42, 5)], 3, 7)
    assert not session.snapshot.inventory_is_fresh()
    _load_inventory(session)
    assert len(_calls("get_inventory")) == 2

    service.approve("TRF-004", [{"id": 1, "received_qty": 5}])
    _load_inventory(session)
    assert len(_calls("get_inventory")) == 3


@responses.activate
def test_server_rejection_leaves_cache_untouched(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=INVENTORY, match=_action("get_inventory"))
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "error", "message": "Insufficient stock at Kigali"},
        match=_action("initiate_transfer"),
    )
    service = TransferService(session)
    _load_inventory(session)
    with pytest.raises(ServerRejectedError) as exc:
        service.initiate([TransferLineInput(42, 5)], 3, 7)
    assert exc.value.message == "Insufficient stock at Kigali"
    assert session.snapshot.inventory_is_fresh()
    assert not session.guard.is_busy("initiate_transfer")


@responses.activate
def test_network_failure_is_not_a_server_rejection(session: ApiSession) -> None:
    responses.add(responses.POST, BASE_URL, body="", match=_action("cancel_transfer"))
    service = TransferService(session)
    with pytest.raises(NetworkError) as exc:
        service.cancel("TRF-005")
    assert not isinstance(exc.value, ServerRejectedError)
    assert service.known_status("TRF-005") is None


@responses.activate
def test_cancel_and_reject_record_terminal_status(session: ApiSession) -> None:
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "success"},
        match=[*_action("cancel_transfer"), matchers.json_params_matcher({"batch_id": "TRF-006", "reason": "typo"})],
    )
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "success"},
        match=[
            *_action("approve_transfer"),
            matchers.json_params_matcher({"batch_id": "TRF-007", "action": "reject", "items_data": []}),
        ],
    )
    service = TransferService(session)
    assert service.cancel("TRF-006", " typo ") is TransferStatus.CANCELED
    assert service.reject("TRF-007") is TransferStatus.REJECTED
    assert service.known_status("TRF-007") is TransferStatus.REJECTED


@responses.activate
def test_in_flight_mutation_is_not_sent_twice(session: ApiSession) -> None:
    session.guard.begin("initiate_transfer")
    with pytest.raises(MutationInFlightError):
        TransferService(session).initiate([TransferLineInput(42, 1)], 3, 7)
    assert len(responses.calls) == 0


@responses.activate
def test_pool_source_reports_partial_failure(session: ApiSession) -> None:
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "success"},
        match=[
            *_action("adjust_stock"),
            matchers.json_params_matcher(
                {"product_id": 42, "location_id": 7, "qty": 4, "reason": "Stock synchronization"}
            ),
        ],
    )
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "error", "message": "Product not found"},
        match=[*_action("adjust_stock"), matchers.json_params_matcher({"product_id": 43}, strict_match=False)],
    )
    result = TransferService(session).initiate(
        [TransferLineInput(42, 4), TransferLineInput(43, 2)], "wc", 7
    )
    assert isinstance(result, BulkAdjustmentResult)
    assert (result.attempted, result.succeeded) == (2, 1)
    assert result.is_partial is True
    assert result.failures[0].product_id == 43
    assert result.failures[0].message == "Product not found"
    assert result.summary() == "1/2 items allocated"
    assert _calls("initiate_transfer") == []


@responses.activate
def test_list_uses_tab_filters(session: ApiSession) -> None:
    responses.add(
        responses.GET,
        BASE_URL,
        json={"status": "success", "data": [], "pagination": {"page": 2, "total_pages": 4}},
        match=[
            matchers.query_param_matcher(
                {"action": "get_transfers", "type": "pending", "direction": "incoming", "page": "2", "search": "TRF"}
            )
        ],
    )
    response = TransferService(session).list_transfers("pending_incoming", page=2, search="TRF")
    assert response.page == 2
    assert response.total_pages == 4


@responses.activate
def test_export_csv_writes_download(session: ApiSession, tmp_path) -> None:
    responses.add(
        responses.GET,
        BASE_URL,
        body=b"Batch,Status\nTRF-001,completed\n",
        content_type="text/csv",
        match=[
            *_action("export_transfers_csv"),
            matchers.header_matcher({"Authorization": "Bearer tok-123"}),
        ],
    )
    path = TransferService(session).export_csv("history", output_dir=tmp_path)
    assert path.name.startswith("Transfers_Export_")
    assert path.read_bytes().startswith(b"Batch,Status")
    assert "page=" not in responses.calls[0].request.url


@responses.activate
def test_failed_status_on_review_keeps_batch_pending(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=_details("pending", None), match=_action("get_transfer_details"))
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "failed", "message": "Batch already processed"},
        match=_action("approve_transfer"),
    )
    service = TransferService(session)
    service.get_details("TRF-001")
    generation = session.snapshot.generation
    with pytest.raises(ServerRejectedError) as exc:
        service.approve("TRF-001", [{"id": 11, "received_qty": 5}])
    assert exc.value.message == "Batch already processed"
    assert service.known_status("TRF-001") is TransferStatus.PENDING
    assert session.snapshot.generation == generation
    assert not session.guard.is_busy("transfer:TRF-001")


@responses.activate
def test_failed_status_on_initiate_is_rejection(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=INVENTORY, match=_action("get_inventory"))
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "failed", "message": "Insufficient stock"},
        match=_action("initiate_transfer"),
    )
    service = TransferService(session)
    _load_inventory(session)
    with pytest.raises(ServerRejectedError):
        service.initiate([TransferLineInput(42, 5)], 3, 7)
    assert session.snapshot.inventory_is_fresh()


@responses.activate
def test_failed_status_counts_as_pool_allocation_failure(session: ApiSession) -> None:
    responses.add(responses.GET, BASE_URL, json=INVENTORY, match=_action("get_inventory"))
    responses.add(
        responses.POST,
        BASE_URL,
        json={"status": "failed", "message": "Product not synced"},
        match=_action("adjust_stock"),
    )
    _load_inventory(session)
    result = TransferService(session).initiate([TransferLineInput(42, 4)], "wc", 7)
    assert (result.attempted, result.succeeded) == (1, 0)
    assert result.failures[0].message == "Product not synced"
    assert session.snapshot.inventory_is_fresh()


@responses.activate
def test_malformed_details_is_network_error(session: ApiSession) -> None:
    responses.add(
        responses.GET,
        BASE_URL,
        json={"status": "success", "data": None},
        match=_action("get_transfer_details"),
    )
    with pytest.raises(NetworkError) as exc:
        TransferService(session).get_details("TRF-009")
    assert exc.value.code == "MALFORMED_RESPONSE"
    assert TransferService(session).known_status("TRF-009") is None
