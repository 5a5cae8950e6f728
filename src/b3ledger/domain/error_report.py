"""Downloadable report of the rows an import rejected."""

import csv
import io
import logging
from datetime import date, datetime
from typing import Any, Iterable

from openpyxl import Workbook
from openpyxl.styles import Font

from b3ledger.domain.errors import ValidationError
from b3ledger.domain.row_import import RowError

logger = logging.getLogger(__name__)

ERROR_COLUMN = "ERRO"
SHEET_TITLE = "Linhas com Erro"
REPORT_FORMATS = ("xlsx", "csv")


class ErrorReportGenerator:
    """Build an error report: the failure reason followed by the row as read."""

    def columns(self, errors: Iterable[RowError]) -> list[str]:
        """Return ERRO plus the union of original columns in first-seen order."""
        columns = [ERROR_COLUMN]
        seen = {ERROR_COLUMN}
        for error in errors:
            for name in error.original_data:
                if name not in seen:
                    seen.add(name)
                    columns.append(name)
        return columns

    def generate(self, errors: list[RowError], fmt: str = "xlsx") -> io.BytesIO:
        """Render the report.

        Args:
            errors: Row errors of an import
            fmt: "xlsx" or "csv"

        Returns:
            BytesIO positioned at the start of the report

        Raises:
            ValidationError: If there are no errors or the format is unknown
        """
        if not errors:
            raise ValidationError("No errors to report", "report.empty")
        fmt = fmt.lower()
        if fmt not in REPORT_FORMATS:
            raise ValidationError(
                f"Unsupported report format '{fmt}'", "report.unsupported_format", fmt=fmt
            )

        columns = self.columns(errors)
        rows = [
            [error.message] + [error.original_data.get(name) for name in columns[1:]]
            for error in errors
        ]
        logger.info("Generating %s error report with %d rows", fmt, len(rows))
        if fmt == "csv":
            return self._to_csv(columns, rows)
        return self._to_xlsx(columns, rows)

    def _to_xlsx(self, columns: list[str], rows: list[list[Any]]) -> io.BytesIO:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE
        sheet.append(columns)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in rows:
            sheet.append([self._cell(value) for value in row])

        output = io.BytesIO()
        workbook.save(output)
        output.seek(0)
        return output

    def _to_csv(self, columns: list[str], rows: list[list[Any]]) -> io.BytesIO:
        text = io.StringIO()
        writer = csv.writer(text)
        writer.writerow(columns)
        for row in rows:
            writer.writerow(["" if value is None else self._cell(value) for value in row])
        return io.BytesIO(text.getvalue().encode("utf-8-sig"))

    @staticmethod
    def _cell(value: Any) -> Any:
        if value is None or isinstance(value, (str, int, float, date, datetime)):
            return value
        return str(value)
