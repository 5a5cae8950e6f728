"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a statement amount into a Decimal.

    Handles various formats:
    - numbers from spreadsheet cells: 1050, 10.5
    - "R$ 1.050,00", "1.050,00", "10,50" (Brazilian)
    - "1,050.00", "10.50" (international)
    - "(10,50)" (negative in parentheses)
    - "-" (the statement's placeholder for zero)

    When both separators appear, the last one is the decimal separator. A
    lone comma is decimal; repeated commas or dots are thousands separators.

    Args:
        value: Raw cell value

    Returns:
        Decimal amount, or None for an empty cell

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Could not parse amount '{value}'")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    amount_str = str(value).strip()
    if not amount_str:
        return None
    if amount_str == "-":
        return Decimal("0")

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and any kind of whitespace
    amount_str = re.sub(r"R\$|[$€£]|\s", "", amount_str)

    last_comma = amount_str.rfind(",")
    last_dot = amount_str.rfind(".")
    if last_comma >= 0 and last_dot >= 0:
        if last_comma > last_dot:
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")
    elif last_comma >= 0:
        if amount_str.count(",") > 1:
            amount_str = amount_str.replace(",", "")
        else:
            amount_str = amount_str.replace(",", ".")
    elif amount_str.count(".") > 1:
        amount_str = amount_str.replace(".", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{value}'") from None
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{value}'")
    return -amount if is_negative else amount
