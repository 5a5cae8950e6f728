"""Operation entity: one validated row of brokerage activity."""

from dataclasses import dataclass, replace
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Any, Optional

from b3ledger.domain.errors import (
    InvalidOperationError,
    InvalidValueError,
    required_field,
    value_mismatch,
)
from b3ledger.domain.value_objects import Money, Quantity, UserId

# Maximum accepted difference between the stated value and unit price x quantity
VALUE_TOLERANCE = Decimal("0.01")


def _wrap(raw: Any, factory, label: str):
    """Wrap a raw scalar into a value object, reporting failures as operation errors."""
    if isinstance(raw, factory):
        return raw
    try:
        return factory(raw)
    except InvalidValueError as e:
        raise InvalidOperationError(
            f"{label}: {e}", "operation.invalid_field", field=label, reason=str(e)
        ) from e


@dataclass(frozen=True)
class Operation:
    """Brokerage operation as read from a statement row or from storage.

    Construction is all-or-nothing: required fields are checked first (date,
    quantity, unit price, value, user), then the stated value is checked
    against unit price x quantity. Raw scalars are accepted for the numeric
    fields and the user, and are wrapped into value objects.

    The only state changes an operation supports are its flags, and those
    return a new instance. An operation marked duplicate cannot change again.
    """

    date: Optional[date_type]
    quantity: Optional[Quantity]
    unit_price: Optional[Money]
    value: Optional[Money]
    user_id: Optional[UserId]
    direction: Optional[str] = None
    movement: Optional[str] = None
    product: Optional[str] = None
    institution: Optional[str] = None
    original_id: Optional[str] = None
    duplicate: bool = False
    dimensioned: bool = False
    deleted: bool = False
    id: Optional[int] = None

    def __post_init__(self):
        required = (
            ("date", "Operation date"),
            ("quantity", "Quantity"),
            ("unit_price", "Unit price"),
            ("value", "Operation value"),
            ("user_id", "User id"),
        )
        for attr, label in required:
            if getattr(self, attr) is None:
                raise InvalidOperationError(
                    required_field(label), "operation.required", field=attr
                )

        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())
        elif not isinstance(self.date, date_type):
            raise InvalidOperationError(
                f"Operation date must be a date, got {self.date!r}",
                "operation.invalid_field",
                field="date",
                reason=repr(self.date),
            )

        wrapped = (
            ("quantity", "Quantity", Quantity),
            ("unit_price", "Unit price", Money),
            ("value", "Operation value", Money),
            ("user_id", "User id", UserId),
        )
        for attr, label, factory in wrapped:
            object.__setattr__(self, attr, _wrap(getattr(self, attr), factory, label))

        for flag in ("duplicate", "dimensioned", "deleted"):
            object.__setattr__(self, flag, bool(getattr(self, flag)))

        if self.original_id is not None:
            original_id = str(self.original_id).strip()
            object.__setattr__(self, "original_id", original_id or None)

        self._check_value_consistency()

    def _check_value_consistency(self) -> None:
        computed = self.quantity.value * self.unit_price.value
        difference = abs(computed - self.value.value)
        if difference > VALUE_TOLERANCE:
            raise InvalidOperationError(
                value_mismatch(self.value.value, computed, difference),
                "operation.value_mismatch",
                value=self.value.value,
                computed=computed,
                difference=difference,
            )

    @property
    def computed_value(self) -> Decimal:
        """Unit price x quantity, unrounded."""
        return self.quantity.value * self.unit_price.value

    def with_id(self, operation_id: int) -> "Operation":
        """Return a copy carrying the storage id."""
        return replace(self, id=operation_id)

    def marked_duplicate(self) -> "Operation":
        return self._with_flag(duplicate=True)

    def marked_dimensioned(self) -> "Operation":
        return self._with_flag(dimensioned=True)

    def marked_deleted(self) -> "Operation":
        return self._with_flag(deleted=True)

    def _with_flag(self, **flags: bool) -> "Operation":
        if self.duplicate:
            raise InvalidOperationError(
                f"Operation {self.id} is marked duplicate and cannot be changed",
                "operation.duplicate_frozen",
                operation_id=self.id,
            )
        return replace(self, **flags)

    def __str__(self) -> str:
        return (
            f"Operation(id={self.id}, product={self.product!r}, date={self.date}, "
            f"quantity={self.quantity}, value={self.value}, user={self.user_id})"
        )
