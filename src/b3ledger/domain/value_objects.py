"""Self-validating scalar value objects.

Every scalar that reaches business logic goes through one of these wrappers.
Instances are immutable; arithmetic returns a new, re-validated instance.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from b3ledger.domain.errors import InvalidValueError

MONEY_PLACES = Decimal("0.01")
QUANTITY_PLACES = Decimal("0.00000001")


def _to_decimal(raw: Any, label: str) -> Decimal:
    """Convert a raw scalar into a finite Decimal or raise InvalidValueError."""
    if raw is None:
        raise InvalidValueError(f"{label} cannot be null", "value.null", label=label)
    if isinstance(raw, bool):
        raise InvalidValueError(
            f"{label} must be numeric, got {raw!r}", "value.not_numeric", label=label, raw=raw
        )
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float, str)):
        try:
            # floats go through str() so 10.5 becomes Decimal("10.5"), not its binary expansion
            value = Decimal(str(raw).strip())
        except InvalidOperation:
            raise InvalidValueError(
                f"{label} must be numeric, got {raw!r}",
                "value.not_numeric",
                label=label,
                raw=raw,
            ) from None
    else:
        raise InvalidValueError(
            f"{label} must be numeric, got {type(raw).__name__}",
            "value.not_numeric",
            label=label,
            raw=raw,
        )
    if not value.is_finite():
        raise InvalidValueError(
            f"{label} must be a finite number, got {raw!r}",
            "value.not_numeric",
            label=label,
            raw=raw,
        )
    return value


@dataclass(frozen=True)
class Money:
    """Non-negative monetary amount with two decimal places."""

    value: Decimal

    def __post_init__(self):
        amount = _to_decimal(self.value, "Money").quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)
        if amount < 0:
            raise InvalidValueError(
                f"Money cannot be negative, got {amount}", "money.negative", value=amount
            )
        object.__setattr__(self, "value", amount)

    def add(self, other: "Money") -> "Money":
        return Money(self.value + other.value)

    def subtract(self, other: "Money") -> "Money":
        return Money(self.value - other.value)

    def multiply(self, factor: Any) -> "Money":
        return Money(self.value * _to_decimal(factor, "Multiplier"))

    def is_zero(self) -> bool:
        return self.value == 0

    def __str__(self) -> str:
        return f"R$ {self.value}"


@dataclass(frozen=True)
class Quantity:
    """Strictly positive asset quantity with eight decimal places."""

    value: Decimal

    def __post_init__(self):
        amount = _to_decimal(self.value, "Quantity").quantize(
            QUANTITY_PLACES, rounding=ROUND_HALF_UP
        )
        if amount <= 0:
            raise InvalidValueError(
                f"Quantity must be positive, got {amount}", "quantity.not_positive", value=amount
            )
        object.__setattr__(self, "value", amount)

    def add(self, other: "Quantity") -> "Quantity":
        return Quantity(self.value + other.value)

    def subtract(self, other: "Quantity") -> "Quantity":
        return Quantity(self.value - other.value)

    def multiply(self, factor: Any) -> "Quantity":
        return Quantity(self.value * _to_decimal(factor, "Multiplier"))

    def __str__(self) -> str:
        return format(self.value.normalize(), "f")


@dataclass(frozen=True)
class UserId:
    """Positive integer identifier of the owning user."""

    value: int

    def __post_init__(self):
        raw = self.value
        if raw is None:
            raise InvalidValueError("UserId cannot be null", "user_id.null")
        if isinstance(raw, bool):
            raise InvalidValueError(
                f"UserId must be an integer, got {raw!r}", "user_id.not_integer", raw=raw
            )
        if isinstance(raw, str):
            try:
                raw = int(raw.strip())
            except ValueError:
                raise InvalidValueError(
                    f"UserId must be an integer, got {self.value!r}",
                    "user_id.not_integer",
                    raw=self.value,
                ) from None
        elif isinstance(raw, Decimal):
            if raw != raw.to_integral_value():
                raise InvalidValueError(
                    f"UserId must be an integer, got {raw!r}", "user_id.not_integer", raw=raw
                )
            raw = int(raw)
        elif not isinstance(raw, int):
            raise InvalidValueError(
                f"UserId must be an integer, got {type(raw).__name__}",
                "user_id.not_integer",
                raw=raw,
            )
        if raw <= 0:
            raise InvalidValueError(
                f"UserId must be positive, got {raw}", "user_id.not_positive", value=raw
            )
        object.__setattr__(self, "value", raw)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)
