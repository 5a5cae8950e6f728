"""Tests for statement row import."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from b3ledger.domain.duplicates import DuplicateCheckResult
from b3ledger.domain.errors import ImportTimeoutError, ValidationError
from b3ledger.domain.row_import import RowImportService, fingerprint_row

from conftest import STATEMENT_HEADERS, build_csv, build_xlsx


class FakeClock:
    """Monotonic clock advancing a fixed step on every reading."""

    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def test_import_csv_consolidates_rows(temp_db, portfolio_service, statement_rows):
    result = RowImportService(temp_db).import_rows(build_csv(statement_rows), "extrato.csv", 1)

    assert result.processed_rows == 3
    assert result.successful_rows == 3
    assert result.duplicate_rows == 0
    assert not result.has_errors
    assert result.headers == STATEMENT_HEADERS

    holdings = portfolio_service.get_holdings(1)
    assert [(h.asset.ticker, h.transaction_count) for h in holdings] == [("PETR4", 2)]
    assert len(portfolio_service.list_transactions(1)) == 3


def test_import_xlsx_with_native_cells(temp_db, statement_rows):
    rows = [
        ["Debito", "15/03/2024", "Compra / Venda", "PETR4 - PETROBRAS PN", "XP INVESTIMENTOS", 100, 10.5, 1050],
    ]

    result = RowImportService(temp_db).import_rows(build_xlsx(rows), "extrato.xlsx", 1)

    assert result.successful_rows == 1
    operation = temp_db.list_operations()[0]
    assert operation.value.value == Decimal("1050.00")
    assert operation.dimensioned


def test_reimport_flags_duplicates(temp_db, statement_rows):
    data = build_csv(statement_rows)
    service = RowImportService(temp_db)
    service.import_rows(data, "extrato.csv", 1)

    again = service.import_rows(data, "extrato.csv", 1)

    assert again.successful_rows == 3
    assert again.duplicate_rows == 3
    assert temp_db.count_operations() == 6
    assert temp_db.count_operations(include_duplicates=False) == 3
    assert len(temp_db.list_transactions()) == 3


def test_row_losing_original_id_race_is_stored_as_duplicate(temp_db, statement_rows):
    data = build_csv(statement_rows)
    service = RowImportService(temp_db)
    service.import_rows(data, "extrato.csv", 1)

    # Both checks ran before the first import stored its rows
    with patch.object(
        service.detector, "check_duplicate", return_value=DuplicateCheckResult.original()
    ), patch.object(temp_db, "operation_exists_by_original_id", return_value=False):
        again = service.import_rows(data, "extrato.csv", 1)

    assert again.successful_rows == 3
    assert again.duplicate_rows == 3
    assert not again.has_errors
    assert temp_db.count_operations() == 6
    assert temp_db.count_operations(include_duplicates=False) == 3
    assert len(temp_db.list_transactions()) == 3


def test_identical_rows_in_one_file_are_distinct(temp_db, statement_rows):
    rows = [statement_rows[0], statement_rows[0]]

    result = RowImportService(temp_db).import_rows(build_csv(rows), "extrato.csv", 1)

    assert result.successful_rows == 2
    assert result.duplicate_rows == 0
    ids = {op.original_id for op in temp_db.list_operations()}
    assert len(ids) == 2


def test_explicit_id_column_is_used(temp_db, statement_rows):
    headers = STATEMENT_HEADERS + ["ID"]
    rows = [statement_rows[0] + ["B3-77"]]

    RowImportService(temp_db).import_rows(build_csv(rows, headers=headers), "extrato.csv", 1)

    assert temp_db.list_operations()[0].original_id == "B3-77"


def test_bad_rows_are_reported_and_skipped(temp_db, statement_rows):
    rows = [
        statement_rows[0],
        ["Debito", "not a date", "Compra / Venda", "PETR4 - PETROBRAS PN", "XP", "1", "1", "1"],
        ["Debito", "15/03/2024", "Compra / Venda", "PETR4 - PETROBRAS PN", "XP", "100", "10,50", "2000"],
        ["Credito", "15/03/2024", "Leilão de Fração", "PETR4 - PETROBRAS PN", "XP", "1", "1", "1"],
    ]

    result = RowImportService(temp_db).import_rows(build_csv(rows), "extrato.csv", 1)

    assert result.processed_rows == 4
    assert result.successful_rows == 1
    assert [error.row_number for error in result.errors] == [3, 4, 5]
    assert result.errors[0].message.startswith("Data:")
    assert "does not match" in result.errors[1].message
    assert result.errors[1].original_data["Valor da Operação"] == "2000"
    assert "classify" in result.errors[2].message


def test_missing_columns_rejects_file(temp_db):
    data = build_csv([["Debito", "15/03/2024"]], headers=["Entrada/Saída", "Data"])

    with pytest.raises(ValidationError) as excinfo:
        RowImportService(temp_db).import_rows(data, "extrato.csv", 1)

    assert excinfo.value.message_key == "upload.missing_columns"
    assert "Produto" in excinfo.value.params["columns"]


def test_invalid_user_rejects_import(temp_db, statement_rows):
    with pytest.raises(ValueError):
        RowImportService(temp_db).import_rows(build_csv(statement_rows), "extrato.csv", 0)


def test_timeout_stops_import_and_keeps_committed_rows(temp_db, statement_rows):
    service = RowImportService(temp_db, timeout=timedelta(seconds=1), clock=FakeClock(step=1.0))

    with pytest.raises(ImportTimeoutError) as excinfo:
        service.import_rows(build_csv(statement_rows), "extrato.csv", 1)

    assert excinfo.value.message_key == "import.timeout"
    assert excinfo.value.params["processed"] == 1
    assert temp_db.count_operations() == 1


def test_fingerprint_is_deterministic():
    values = {"product": "PETR4", "value": Decimal("1050.00")}

    assert fingerprint_row(values, 0) == fingerprint_row(dict(values), 0)
    assert fingerprint_row(values, 0) != fingerprint_row(values, 1)
    assert fingerprint_row({"product": "petr4 "}, 0) == fingerprint_row({"product": "PETR4"}, 0)
