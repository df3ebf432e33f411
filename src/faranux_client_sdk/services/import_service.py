from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence

from ..csv_import import TEMPLATE_CSV, TEMPLATE_FILENAME, CsvParseResult, fetch_csv, parse_stock_csv
from ..exceptions import ApiError
from ..logging_utils import log_action
from ..models_inventory import ImportMode, StockImportRequest, StockImportResponse, StockImportRow
from ..session import ApiSession
from ..stock_validation import validate_import_rows


class ImportService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def parse_text(self, text: str) -> CsvParseResult:
        return parse_stock_csv(text)

    def parse_file(self, path: str | Path) -> CsvParseResult:
        return parse_stock_csv(Path(path).read_text(encoding="utf-8-sig"))

    def parse_url(self, url: str) -> CsvParseResult:
        text = fetch_csv(url, session=self.session.http.session, timeout=self.session.config.timeout)
        return parse_stock_csv(text)

    def write_template(self, output_dir: str | Path = ".") -> Path:
        destination = Path(output_dir)
        destination.mkdir(parents=True, exist_ok=True)
        path = destination / TEMPLATE_FILENAME
        path.write_text(TEMPLATE_CSV, encoding="utf-8")
        return path

    def submit(
        self,
        rows: Sequence[StockImportRow | Mapping[str, Any]],
        mode: ImportMode | str = ImportMode.ADD,
        *,
        confirm_replace: bool = False,
    ) -> StockImportResponse:
        """Send parsed rows; unknown SKUs come back as warnings in ``errors``."""
        validated = validate_import_rows(rows, mode, confirm_replace=confirm_replace)
        request = StockImportRequest(items=validated, mode=ImportMode(mode))
        with self.session.guard.hold("import_stock"):
            try:
                response = self.session.inventory_client().import_stock(request)
            except ApiError as exc:
                log_action(self.session.logger, "import", "import_stock", "failure", code=exc.code, rows=len(validated))
                raise
        self.session.snapshot.invalidate_inventory()
        log_action(
            self.session.logger,
            "import",
            "import_stock",
            "success",
            mode=request.mode.value,
            rows=len(validated),
            warnings=len(response.errors),
        )
        return response
