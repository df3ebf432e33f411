from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, TypeVar

from pydantic import ValidationError as PydanticValidationError

from .models_inventory import ImportMode, StockAdjustRequest, StockImportRow

T = TypeVar("T")

MIN_PASSWORD_LENGTH = 4
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ValidationIssue:
    row_index: int | None
    field: str
    reason: str


class ClientValidationError(ValueError):
    """Input rejected before any request is sent."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        location = f"row {issue.row_index}" if issue.row_index is not None else "payload"
        return f"{location} {issue.field}: {issue.reason}"


def validate_stock_adjustment(
    payload: StockAdjustRequest | Mapping[str, Any],
    current_stock: int | None = None,
) -> StockAdjustRequest:
    data = coerce_model(payload, StockAdjustRequest, None)
    if data.qty == 0:
        raise_issue(None, "qty", "qty must be a non-zero integer")
    if not data.reason.strip():
        raise_issue(None, "reason", "reason is required for the audit log")
    if current_stock is not None and current_stock + data.qty < 0:
        raise_issue(None, "qty", "resulting stock cannot be negative")
    return data.model_copy(update={"reason": data.reason.strip()})


def validate_import_rows(
    rows: Sequence[StockImportRow | Mapping[str, Any]],
    mode: ImportMode | str,
    *,
    confirm_replace: bool = False,
) -> list[StockImportRow]:
    if not rows:
        raise_issue(None, "items", "no data to import")
    import_mode = ImportMode(mode)
    if import_mode is ImportMode.REPLACE and not confirm_replace:
        raise_issue(None, "mode", "replace mode overwrites stock and must be confirmed")
    validated = []
    for idx, row in enumerate(rows):
        data = coerce_model(row, StockImportRow, idx)
        if not data.sku.strip():
            raise_issue(_row_label(data, idx), "sku", "sku is required")
        if data.branch_id is None:
            raise_issue(_row_label(data, idx), "branch_id", "branch id is not a valid integer")
        validated.append(data)
    return validated


def validate_location_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise_issue(None, "name", "branch name is required")
    return cleaned


def _row_label(row: StockImportRow, idx: int) -> int:
    return row.line_number if row.line_number is not None else idx


def coerce_model(line: T | Mapping[str, Any], model_type: type[T], row_index: int | None) -> T:
    if isinstance(line, model_type):
        return line
    try:
        return model_type.model_validate(line)
    except PydanticValidationError as exc:
        issue = exc.errors()[0] if exc.errors() else {"loc": ("line",), "msg": "Invalid line"}
        field = ".".join(str(part) for part in issue.get("loc", ("line",)))
        raise_issue(row_index, field, issue.get("msg", "Invalid line"))
        raise


def raise_issue(row_index: int | None, field: str, reason: str) -> None:
    raise ClientValidationError([ValidationIssue(row_index=row_index, field=field, reason=reason)])


def validate_credentials(email: str | None, password: str | None) -> str:
    cleaned = (email or "").strip()
    if not _EMAIL.match(cleaned):
        raise_issue(None, "email", "enter a valid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise_issue(None, "password", f"password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return cleaned
