"""Read brokerage statement exports (CSV or XLSX) into rows keyed by header."""

import csv
import io
import zipfile
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from b3ledger.domain.classification import normalize_text
from b3ledger.domain.errors import ValidationError

SUPPORTED_EXTENSIONS = (".csv", ".xlsx")

# Normalized header -> operation field
HEADER_ALIASES = {
    "entrada/saida": "direction",
    "entrada / saida": "direction",
    "data": "date",
    "movimentacao": "movement",
    "produto": "product",
    "instituicao": "institution",
    "quantidade": "quantity",
    "preco unitario": "unit_price",
    "valor da operacao": "value",
    "id": "original_id",
    "id original": "original_id",
}

REQUIRED_FIELDS = (
    "direction",
    "date",
    "movement",
    "product",
    "institution",
    "quantity",
    "unit_price",
    "value",
)

FIELD_LABELS = {
    "direction": "Entrada/Saída",
    "date": "Data",
    "movement": "Movimentação",
    "product": "Produto",
    "institution": "Instituição",
    "quantity": "Quantidade",
    "unit_price": "Preço unitário",
    "value": "Valor da Operação",
    "original_id": "ID",
}


@dataclass
class Table:
    """Headers as written in the file and the data rows keyed by them.

    Row numbers are 1-based spreadsheet rows, so the first data row under a
    header in row 1 is row 2.
    """

    headers: list[str]
    rows: list[tuple[int, dict[str, Any]]] = field(default_factory=list)


def file_extension(file_name: str) -> str:
    return PurePath(file_name).suffix.lower()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _read_csv(data: bytes) -> Table:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Spreadsheet tools on Windows still export Latin-1
        text = data.decode("latin-1")

    sample = text[:4096]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    headers: Optional[list[str]] = None
    table = Table(headers=[])
    for row_number, values in enumerate(reader, start=1):
        if all(_is_blank(v) for v in values):
            continue
        if headers is None:
            headers = [v.strip() for v in values]
            table.headers = headers
            continue
        row = {
            header: (values[i].strip() if i < len(values) else None)
            for i, header in enumerate(headers)
            if header
        }
        table.rows.append((row_number, row))
    return table


def _read_xlsx(data: bytes) -> Table:
    try:
        workbook = load_workbook(filename=io.BytesIO(data), data_only=True, read_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ValidationError(
            f"Could not read spreadsheet: {e}", "upload.unreadable", reason=str(e)
        ) from e

    try:
        sheet = workbook.active
        headers: Optional[list[str]] = None
        table = Table(headers=[])
        for row_number, values in enumerate(sheet.iter_rows(values_only=True), start=1):
            if all(_is_blank(v) for v in values):
                continue
            if headers is None:
                headers = ["" if v is None else str(v).strip() for v in values]
                table.headers = headers
                continue
            row = {
                header: (values[i] if i < len(values) else None)
                for i, header in enumerate(headers)
                if header
            }
            table.rows.append((row_number, row))
        return table
    finally:
        workbook.close()


def read_table(data: bytes, file_name: str) -> Table:
    """Read a statement export.

    Args:
        data: File content
        file_name: Original file name, used to pick the format

    Returns:
        Table with the header row and the non-blank data rows

    Raises:
        ValidationError: If the format is unsupported or the file is unreadable
    """
    extension = file_extension(file_name)
    if extension == ".csv":
        return _read_csv(data)
    if extension == ".xlsx":
        return _read_xlsx(data)
    raise ValidationError(
        f"Unsupported file type '{extension or file_name}'. Supported: "
        f"{', '.join(SUPPORTED_EXTENSIONS)}",
        "upload.unsupported_type",
        extension=extension,
    )


def map_columns(headers: list[str]) -> dict[str, str]:
    """Match file headers to operation fields, ignoring accents and case.

    Returns:
        Dict of operation field -> header as written in the file

    Raises:
        ValidationError: If a required column is missing
    """
    mapping: dict[str, str] = {}
    for header in headers:
        if not header:
            continue
        field_name = HEADER_ALIASES.get(normalize_text(header))
        if field_name is not None and field_name not in mapping:
            mapping[field_name] = header

    missing = [FIELD_LABELS[name] for name in REQUIRED_FIELDS if name not in mapping]
    if missing:
        raise ValidationError(
            f"File missing required columns: {', '.join(missing)}",
            "upload.missing_columns",
            columns=", ".join(missing),
        )
    return mapping
