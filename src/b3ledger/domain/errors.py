"""Shared domain error messages and error types."""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Tag identifying the category of a domain error."""

    VALIDATION = "validation"
    INVALID_VALUE = "invalid_value"
    INVALID_OPERATION = "invalid_operation"
    INVALID_TRANSACTION = "invalid_transaction"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERSISTENCE = "persistence"
    IMPORT_TIMEOUT = "import_timeout"


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. Each error carries a
    ``message_key`` and its ``params`` so the presentation layer can render
    a localized message; ``str(error)`` is the default English text.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        message_key: Optional[str] = None,
        **params: Any,
    ):
        super().__init__(message)
        self.message = message
        self.message_key = message_key
        self.params = params


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidValueError(ValidationError):
    """A scalar value object was built from an invalid input."""

    kind = ErrorKind.INVALID_VALUE


class InvalidOperationError(ValidationError):
    """An operation violates one of its construction invariants."""

    kind = ErrorKind.INVALID_OPERATION


class InvalidTransactionError(ValidationError):
    """An operation cannot be classified into a transaction."""

    kind = ErrorKind.INVALID_TRANSACTION


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    kind = ErrorKind.CONFLICT


class PersistenceError(DomainError):
    """A unit of work failed and was rolled back."""

    kind = ErrorKind.PERSISTENCE


class ImportTimeoutError(DomainError):
    """An import exceeded its processing time ceiling."""

    kind = ErrorKind.IMPORT_TIMEOUT


class MissingOwnerError(ValueError):
    """An operation reached consolidation without an owning user."""


def operation_not_found(operation_id: int) -> str:
    """Return message for missing operation."""
    return f"Operation {operation_id} not found"


def duplicate_original_id(original_id: str, user_id: int) -> str:
    """Return message for a second original operation with the same source id."""
    return (
        f"An operation with original id '{original_id}' already exists "
        f"for user {user_id}"
    )


def value_mismatch(value, computed, difference) -> str:
    """Return message when stated value and price x quantity disagree."""
    return (
        f"Operation value ({value:.2f}) does not match unit price x quantity "
        f"({computed:.2f}). Difference: {difference:.2f}"
    )


def required_field(field_name: str) -> str:
    """Return message for a missing required operation field."""
    return f"{field_name} is required"


def unclassifiable_operation(direction: Optional[str], movement: Optional[str]) -> str:
    """Return message when no movement type matches an operation."""
    return (
        f"Cannot classify operation with direction '{direction}' "
        f"and movement '{movement}'"
    )
