from __future__ import annotations

import argparse
import getpass
import json

from .config import load_config
from .csv_import import parse_stock_csv
from .exceptions import ApiError
from .models_transfers import TransferTab
from .services.import_service import ImportService
from .services.transfer_service import TransferService
from .session import ApiSession
from .stock_validation import ClientValidationError
from .transfer_state import batch_discrepancy, line_discrepancy, status_badge
from .ui_errors import to_user_facing_error


def _session(args: argparse.Namespace) -> ApiSession:
    return ApiSession(load_config(args.env_file))


def cmd_login(args: argparse.Namespace) -> None:
    session = _session(args)
    password = args.password or getpass.getpass("Password: ")
    user = session.login(args.email, password)
    print(json.dumps(user.model_dump(exclude={"api_token"}), indent=2))


def cmd_logout(args: argparse.Namespace) -> None:
    _session(args).clear()
    print("Signed out")


def cmd_csv_preview(args: argparse.Namespace) -> None:
    with open(args.file, encoding="utf-8-sig") as handle:
        result = parse_stock_csv(handle.read())
    print(
        json.dumps(
            {
                "delimiter": result.delimiter,
                "rows": result.preview(args.limit),
                "total_rows": len(result.rows),
                "skipped_lines": result.skipped_lines,
                "invalid_branch_lines": [row.line_number for row in result.invalid_branch_rows],
            },
            indent=2,
        )
    )


def cmd_csv_template(args: argparse.Namespace) -> None:
    path = ImportService(_session(args)).write_template(args.output_dir)
    print(str(path))


def cmd_transfers_list(args: argparse.Namespace) -> None:
    service = TransferService(_session(args))
    response = service.list_transfers(args.tab, page=args.page, search=args.search)
    rows = []
    for row in response.rows:
        discrepancy = batch_discrepancy(row)
        rows.append(
            {
                "batch_id": row.batch_id,
                "from": row.from_location,
                "to": row.to_location,
                "status": row.status.value,
                "badge": status_badge(row.status),
                "total_qty": row.total_qty,
                "discrepancy": discrepancy.diff if discrepancy else None,
            }
        )
    print(json.dumps({"page": response.page, "total_pages": response.total_pages, "rows": rows}, indent=2))


def cmd_transfers_show(args: argparse.Namespace) -> None:
    service = TransferService(_session(args))
    batch = service.get_details(args.batch_id)
    availability = service.availability(batch)
    lines = []
    for item in batch.items:
        discrepancy = line_discrepancy(item.qty, item.received_qty)
        lines.append(
            {
                "sku": item.product_sku,
                "name": item.product_name,
                "sent": item.qty,
                "received": item.received_qty,
                "discrepancy": discrepancy.diff if discrepancy else None,
                "style": discrepancy.style if discrepancy else None,
                "note": item.note,
            }
        )
    print(
        json.dumps(
            {
                "batch_id": batch.batch_id,
                "status": batch.status.value,
                "from": batch.from_location,
                "to": batch.to_location,
                "created_at": batch.created_at,
                "approved_at": batch.approved_at,
                "can_review": availability.can_review,
                "can_cancel": availability.can_cancel,
                "lines": lines,
            },
            indent=2,
            default=str,
        )
    )


def cmd_transfers_export(args: argparse.Namespace) -> None:
    path = TransferService(_session(args)).export_csv(args.tab, output_dir=args.output_dir)
    print(str(path))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="faranux-stock", description="Faranux stock client")
    parser.add_argument("--env-file", default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login")
    login_parser.add_argument("--email", required=True)
    login_parser.add_argument("--password", default=None)
    login_parser.set_defaults(func=cmd_login)

    logout_parser = subparsers.add_parser("logout")
    logout_parser.set_defaults(func=cmd_logout)

    preview_parser = subparsers.add_parser("csv-preview")
    preview_parser.add_argument("file")
    preview_parser.add_argument("--limit", type=int, default=None)
    preview_parser.set_defaults(func=cmd_csv_preview)

    template_parser = subparsers.add_parser("csv-template")
    template_parser.add_argument("--output-dir", default=".")
    template_parser.set_defaults(func=cmd_csv_template)

    transfers_parser = subparsers.add_parser("transfers")
    transfer_commands = transfers_parser.add_subparsers(dest="transfers_command", required=True)
    tabs = [tab.value for tab in TransferTab]

    list_parser = transfer_commands.add_parser("list")
    list_parser.add_argument("--tab", choices=tabs, default=TransferTab.ALL.value)
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--search", default=None)
    list_parser.set_defaults(func=cmd_transfers_list)

    show_parser = transfer_commands.add_parser("show")
    show_parser.add_argument("batch_id")
    show_parser.set_defaults(func=cmd_transfers_show)

    export_parser = transfer_commands.add_parser("export")
    export_parser.add_argument("--tab", choices=tabs, default=TransferTab.ALL.value)
    export_parser.add_argument("--output-dir", default=".")
    export_parser.set_defaults(func=cmd_transfers_export)
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except (ApiError, ClientValidationError) as exc:
        error = to_user_facing_error(exc)
        print(json.dumps({"error": error.message, "details": error.technical_details}, indent=2))
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
