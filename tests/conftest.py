"""Shared pytest fixtures for b3ledger tests."""

import csv
import io
import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import Workbook

from b3ledger.database.factories import create_sqlite_database
from b3ledger.domain.consolidation import AggregateConsolidator
from b3ledger.domain.duplicates import DuplicateDetector
from b3ledger.domain.operation import Operation
from b3ledger.domain.operation_service import OperationService
from b3ledger.domain.portfolio import PortfolioService

STATEMENT_HEADERS = [
    "Entrada/Saída",
    "Data",
    "Movimentação",
    "Produto",
    "Instituição",
    "Quantidade",
    "Preço unitário",
    "Valor da Operação",
]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def consolidator(temp_db):
    """Create an AggregateConsolidator with a temporary database."""
    return AggregateConsolidator(temp_db)


@pytest.fixture
def detector(temp_db):
    """Create a DuplicateDetector with a temporary database."""
    return DuplicateDetector(temp_db)


@pytest.fixture
def operation_service(temp_db):
    """Create an OperationService with a temporary database."""
    return OperationService(temp_db)


@pytest.fixture
def portfolio_service(temp_db):
    """Create a PortfolioService with a temporary database."""
    return PortfolioService(temp_db)


@pytest.fixture
def make_operation():
    """Build a valid purchase operation; keyword arguments override fields."""

    def _make(**overrides):
        fields = {
            "date": date(2024, 3, 15),
            "quantity": Decimal("100"),
            "unit_price": Decimal("10.50"),
            "value": Decimal("1050.00"),
            "user_id": 1,
            "direction": "Debito",
            "movement": "Compra / Venda",
            "product": "PETR4 - PETROBRAS PN",
            "institution": "XP INVESTIMENTOS CCTVM S/A",
        }
        fields.update(overrides)
        return Operation(**fields)

    return _make


@pytest.fixture
def statement_rows():
    """Rows of a small statement export: a purchase, a dividend and a sale."""
    return [
        ["Debito", "15/03/2024", "Compra / Venda", "PETR4 - PETROBRAS PN", "XP INVESTIMENTOS", "100", "10,50", "1.050,00"],
        ["Credito", "20/03/2024", "Dividendo", "ITSA4 - ITAUSA PN", "XP INVESTIMENTOS", "200", "0,15", "30,00"],
        ["Credito", "25/03/2024", "Compra / Venda", "PETR4 - PETROBRAS PN", "XP INVESTIMENTOS", "50", "12,00", "600,00"],
    ]


def build_csv(rows, headers=STATEMENT_HEADERS, delimiter=";") -> bytes:
    text = io.StringIO()
    writer = csv.writer(text, delimiter=delimiter)
    writer.writerow(headers)
    writer.writerows(rows)
    return text.getvalue().encode("utf-8")


def build_xlsx(rows, headers=STATEMENT_HEADERS) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(headers)
    for row in rows:
        sheet.append(row)
    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
