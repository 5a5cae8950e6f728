"""Tests for date, amount and statement table parsing."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from b3ledger.domain.errors import ValidationError
from b3ledger.utils.amount_parser import parse_amount
from b3ledger.utils.date_parser import parse_date
from b3ledger.utils.locks import KeyedLock
from b3ledger.utils.tabular import map_columns, read_table

from conftest import STATEMENT_HEADERS, build_csv


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("15/03/2024", date(2024, 3, 15)),
        ("05/03/2024", date(2024, 3, 5)),
        ("2024-03-05", date(2024, 3, 5)),
        ("2024-03-05 00:00:00", date(2024, 3, 5)),
        (datetime(2024, 3, 5, 12, 0), date(2024, 3, 5)),
        (date(2024, 3, 5), date(2024, 3, 5)),
        ("", None),
        (None, None),
    ],
)
def test_parse_date(raw, expected):
    assert parse_date(raw) == expected


def test_parse_relative_dates():
    assert parse_date("today") == date.today()
    assert parse_date("Yesterday") == date.today() - timedelta(days=1)


def test_parse_date_invalid():
    with pytest.raises(ValueError):
        parse_date("not a date")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("1.050,00", Decimal("1050.00")),
        ("R$ 1.050,00", Decimal("1050.00")),
        ("10,50", Decimal("10.50")),
        ("1,050.00", Decimal("1050.00")),
        ("10.50", Decimal("10.50")),
        ("1.000.000", Decimal("1000000")),
        ("(10,50)", Decimal("-10.50")),
        ("-", Decimal("0")),
        (1050, Decimal("1050")),
        (10.5, Decimal("10.5")),
        ("  ", None),
        (None, None),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["abc", True, "1,2,3.4.5,6"])
def test_parse_amount_invalid(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_read_csv_detects_delimiter_and_skips_blank_rows():
    data = build_csv([["Debito", "15/03/2024", "Compra / Venda", "PETR4", "XP", "1", "1", "1"], [""] * 8])

    table = read_table(data, "EXTRATO.CSV")

    assert table.headers == STATEMENT_HEADERS
    assert len(table.rows) == 1
    row_number, row = table.rows[0]
    assert row_number == 2
    assert row["Produto"] == "PETR4"


def test_read_csv_latin1():
    data = build_csv([["Debito", "15/03/2024", "Compra / Venda", "PETR4", "XP", "1", "1", "1"]])
    table = read_table(data.decode("utf-8").encode("latin-1"), "extrato.csv")

    assert table.headers[0] == "Entrada/Saída"


def test_read_table_unsupported_type():
    with pytest.raises(ValidationError) as excinfo:
        read_table(b"data", "extrato.xls")
    assert excinfo.value.params["extension"] == ".xls"


def test_map_columns_ignores_accents_and_case():
    headers = ["ENTRADA/SAIDA", "data", "Movimentacao", "PRODUTO", "instituição", "Quantidade", "Preco Unitario", "Valor da operacao", "Id"]

    mapping = map_columns(headers)

    assert mapping["direction"] == "ENTRADA/SAIDA"
    assert mapping["unit_price"] == "Preco Unitario"
    assert mapping["original_id"] == "Id"


def test_keyed_lock_releases_keys():
    locks = KeyedLock()

    with locks.hold("a"):
        with locks.hold("b"):
            assert len(locks) == 2
    assert len(locks) == 0
