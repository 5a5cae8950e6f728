"""Tests for localized error rendering and logging setup."""

import logging
from decimal import Decimal

from b3ledger.cli.messages import CATALOGS, error_label, render_error
from b3ledger.domain.errors import DomainError, NotFoundError, ValidationError
from b3ledger.logging_config import configure_logging


def test_english_uses_error_text():
    error = NotFoundError("Operation 3 not found", "operation.not_found", operation_id=3)

    assert render_error(error, "en") == "Operation 3 not found"
    assert error_label("en") == "Error"


def test_portuguese_uses_catalog():
    error = NotFoundError("Operation 3 not found", "operation.not_found", operation_id=3)

    assert render_error(error, "pt_BR") == "Operação 3 não encontrada"
    assert error_label("pt_BR") == "Erro"


def test_value_mismatch_in_portuguese():
    error = ValidationError(
        "mismatch",
        "operation.value_mismatch",
        value=Decimal("2000.00"),
        computed=Decimal("1050.00"),
        difference=Decimal("950.00"),
    )

    assert render_error(error, "pt_BR").startswith("Valor da operação (2000.00) não confere")


def test_fallbacks_to_error_text():
    assert render_error(ValueError("plain"), "pt_BR") == "plain"
    assert render_error(DomainError("no key"), "pt_BR") == "no key"
    assert render_error(DomainError("unknown", "nope.missing"), "pt_BR") == "unknown"
    # Missing parameter
    assert render_error(DomainError("bare", "operation.not_found"), "pt_BR") == "bare"


def test_catalog_keys_are_namespaced():
    assert all("." in key for key in CATALOGS["pt_BR"])


def test_configure_logging_installs_one_handler():
    logger = configure_logging("INFO")
    configure_logging("DEBUG")

    tagged = [h for h in logger.handlers if getattr(h, "_b3ledger", False)]
    assert len(tagged) == 1
    assert logger.level == logging.DEBUG
    configure_logging("WARNING")
