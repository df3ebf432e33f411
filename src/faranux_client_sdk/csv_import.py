"""Tolerant plain-delimited reader for stock import files.

This is not an RFC 4180 reader: a field is split on the delimiter first and
only then loses one layer of surrounding double quotes, so a quoted value
that itself contains the delimiter is split in two.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import requests

from .exceptions import NetworkError
from .models_inventory import StockImportRow, parse_int
from .stock_validation import ClientValidationError, ValidationIssue

TEMPLATE_CSV = "SKU,Quantity,Branch_ID\nPROD-001,50,1\nPROD-002,25,1"
TEMPLATE_FILENAME = "stock_import_template.csv"

_LINE_SPLIT = re.compile(r"\r\n|\n|\r")


class EmptyInputError(ClientValidationError):
    def __init__(self) -> None:
        super().__init__([ValidationIssue(None, "file", "CSV file is empty or has no data rows")])


class MissingColumnsError(ClientValidationError):
    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            [ValidationIssue(0, "header", f"missing required columns: {', '.join(missing)}")]
        )


@dataclass
class CsvParseResult:
    rows: list[StockImportRow] = field(default_factory=list)
    delimiter: str = ","
    skipped_lines: list[int] = field(default_factory=list)

    @property
    def invalid_branch_rows(self) -> list[StockImportRow]:
        return [row for row in self.rows if row.branch_id is None]

    def preview(self, limit: int | None = None) -> list[dict[str, object]]:
        rows = self.rows if limit is None else self.rows[:limit]
        return [
            {"line": row.line_number, "sku": row.sku, "qty": row.qty, "branch_id": row.branch_id}
            for row in rows
        ]


def clean_cell(value: str) -> str:
    # Quotes come off before whitespace.
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value.strip()


def parse_stock_csv(text: str) -> CsvParseResult:
    lines = [(number, line) for number, line in enumerate(_LINE_SPLIT.split(text or ""), start=1) if line.strip()]
    if len(lines) < 2:
        raise EmptyInputError()

    header_line = lines[0][1]
    delimiter = ";" if ";" in header_line else ","
    headers = [cell.strip().lower() for cell in header_line.split(delimiter)]

    sku_idx = _find_column(headers, lambda h: h == "sku")
    qty_idx = _find_column(headers, lambda h: "qty" in h or "quantity" in h)
    branch_idx = _find_column(headers, lambda h: "branch" in h or "location" in h)
    missing = [
        name
        for name, idx in (("sku", sku_idx), ("quantity", qty_idx), ("branch", branch_idx))
        if idx is None
    ]
    if missing:
        raise MissingColumnsError(missing)

    required = max(sku_idx, qty_idx, branch_idx)
    result = CsvParseResult(delimiter=delimiter)
    for number, line in lines[1:]:
        cols = [clean_cell(cell) for cell in line.split(delimiter)]
        if len(cols) <= required or not cols[sku_idx]:
            result.skipped_lines.append(number)
            continue
        qty = parse_int(cols[qty_idx])
        result.rows.append(
            StockImportRow(
                sku=cols[sku_idx],
                qty=qty if qty is not None else 0,
                branch_id=parse_int(cols[branch_idx]),
                line_number=number,
            )
        )
    return result


def fetch_csv(url: str, session: requests.Session | None = None, timeout: object = None) -> str:
    http = session or requests.Session()
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise NetworkError(
            code="CSV_FETCH_FAILED",
            message=str(exc),
            details={"url": url},
            status_code=0,
        ) from exc
    if not response.ok:
        raise NetworkError(
            code="CSV_FETCH_FAILED",
            message=f"Failed to fetch CSV: HTTP {response.status_code}",
            details={"url": url},
            status_code=response.status_code,
        )
    return response.text


def _find_column(headers: list[str], predicate) -> int | None:
    for idx, header in enumerate(headers):
        if predicate(header):
            return idx
    return None
