from __future__ import annotations

import json

import pytest
import responses

from faranux_client_sdk import cli
from faranux_client_sdk.session import ApiSession

from conftest import BASE_URL


@pytest.fixture()
def cli_session(monkeypatch: pytest.MonkeyPatch, session: ApiSession) -> ApiSession:
    monkeypatch.setattr(cli, "_session", lambda args: session)
    return session


def test_csv_preview_reports_rows(tmp_path, capsys) -> None:
    path = tmp_path / "stock.csv"
    path.write_text("SKU;Qty;Branch\nPH-42;10;3\n;4;3\nCS-1;2;Kigali\n", encoding="utf-8")
    cli.main(["csv-preview", str(path), "--limit", "1"])
    output = json.loads(capsys.readouterr().out)
    assert output["delimiter"] == ";"
    assert output["rows"] == [{"line": 2, "sku": "PH-42", "qty": 10, "branch_id": 3}]
    assert output["total_rows"] == 2
    assert output["skipped_lines"] == [3]
    assert output["invalid_branch_lines"] == [4]


def test_csv_preview_missing_columns_exits(tmp_path, capsys) -> None:
    path = tmp_path / "stock.csv"
    path.write_text("Product,Qty\nPH-42,10\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        cli.main(["csv-preview", str(path)])
    assert exc.value.code == 1
    assert "missing required columns" in json.loads(capsys.readouterr().out)["error"]


def test_csv_template_written(cli_session, tmp_path, capsys) -> None:
    cli.main(["csv-template", "--output-dir", str(tmp_path)])
    assert capsys.readouterr().out.strip().endswith("stock_import_template.csv")
    assert (tmp_path / "stock_import_template.csv").exists()


@responses.activate
def test_transfers_list_prints_badges(cli_session, capsys) -> None:
    responses.add(
        responses.GET,
        BASE_URL,
        json={
            "status": "success",
            "data": [
                {
                    "batch_id": "TRF-010",
                    "from_location": "Kigali",
                    "to_location": "Musanze",
                    "status": "completed",
                    "total_qty": 5,
                    "total_received_qty": 4,
                }
            ],
            "pagination": {"page": 1, "total_pages": 1},
        },
    )
    cli.main(["transfers", "list", "--tab", "history"])
    output = json.loads(capsys.readouterr().out)
    row = output["rows"][0]
    assert row["badge"] == "success"
    assert row["discrepancy"] == -1


@responses.activate
def test_api_error_exits_with_message(cli_session, capsys) -> None:
    responses.add(responses.GET, BASE_URL, status=404, json={"status": "error", "message": "Transfer not found"})
    with pytest.raises(SystemExit):
        cli.main(["transfers", "show", "TRF-404"])
    assert json.loads(capsys.readouterr().out)["error"] == "Transfer not found"
