"""Statement row import domain service."""

import hashlib
import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Any, Callable, Optional

from b3ledger.database.base import Database
from b3ledger.domain.classification import normalize_text
from b3ledger.domain.duplicates import DuplicateDetector
from b3ledger.domain.errors import ConflictError, ImportTimeoutError, ValidationError
from b3ledger.domain.operation import Operation
from b3ledger.domain.operation_service import OperationService
from b3ledger.domain.value_objects import UserId
from b3ledger.utils.amount_parser import parse_amount
from b3ledger.utils.date_parser import parse_date
from b3ledger.utils.tabular import FIELD_LABELS, map_columns, read_table

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_TIMEOUT = timedelta(minutes=5)
PROGRESS_LOG_INTERVAL = 100

# Fields hashed into a fingerprint when the file carries no source id
FINGERPRINT_FIELDS = (
    "direction",
    "date",
    "movement",
    "product",
    "institution",
    "quantity",
    "unit_price",
    "value",
)


@dataclass(frozen=True)
class RowError:
    """A row that could not be imported, with the data as read from the file."""

    row_number: int
    message: str
    original_data: dict[str, Any]


@dataclass
class ImportResult:
    """Counters and row errors of one import."""

    headers: list[str] = field(default_factory=list)
    processed_rows: int = 0
    successful_rows: int = 0
    duplicate_rows: int = 0
    errors: list[RowError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def _fingerprint_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return str(value.normalize())
    return normalize_text(str(value))


def fingerprint_row(values: dict[str, Any], occurrence: int) -> str:
    """Build a deterministic source id for a row without one.

    Args:
        values: Parsed operation fields of the row
        occurrence: How many identical rows came before it in the same file

    Returns:
        Hex SHA-256 digest, stable across re-imports of the same file
    """
    parts = [_fingerprint_value(values.get(name)) for name in FINGERPRINT_FIELDS]
    parts.append(str(occurrence))
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


class RowImportService:
    """Service for importing statement rows into operations."""

    def __init__(
        self,
        db: Database,
        operation_service: Optional[OperationService] = None,
        detector: Optional[DuplicateDetector] = None,
        timeout: timedelta = DEFAULT_IMPORT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize row import service.

        Args:
            db: Database instance
            operation_service: Service used to register each row (built on db if None)
            detector: Duplicate detector (built on db if None)
            timeout: Ceiling for the whole import
            clock: Monotonic clock in seconds
        """
        self.db = db
        self.detector = detector or DuplicateDetector(db)
        self.operation_service = operation_service or OperationService(db)
        self.timeout = timeout
        self.clock = clock

    def import_rows(self, data: bytes, file_name: str, user_id) -> ImportResult:
        """Import every row of a statement export for one user.

        Each row is committed on its own; a failing row is recorded and the
        import moves on. Duplicates of stored operations are saved flagged
        duplicate and count as successful.

        Args:
            data: File content
            file_name: Original file name (.csv or .xlsx)
            user_id: Owning user

        Returns:
            ImportResult with counters and row errors

        Raises:
            ValidationError: If the file is unreadable or lacks required columns
            InvalidValueError: If user_id is not a valid user id
            ImportTimeoutError: If the import ran past its timeout; rows
                already imported stay committed
        """
        owner = user_id if isinstance(user_id, UserId) else UserId(user_id)
        table = read_table(data, file_name)
        columns = map_columns(table.headers)
        logger.info("Importing %d rows from %s for user %s", len(table.rows), file_name, owner)

        result = ImportResult(headers=list(table.headers))
        occurrences: dict[str, int] = {}
        deadline = self.clock() + self.timeout.total_seconds()

        for row_number, row in table.rows:
            if self.clock() > deadline:
                logger.error(
                    "Import of %s timed out after %d rows", file_name, result.processed_rows
                )
                raise ImportTimeoutError(
                    f"Import exceeded {int(self.timeout.total_seconds())} seconds after "
                    f"{result.processed_rows} rows",
                    "import.timeout",
                    seconds=int(self.timeout.total_seconds()),
                    processed=result.processed_rows,
                )

            result.processed_rows += 1
            if result.processed_rows % PROGRESS_LOG_INTERVAL == 0:
                logger.info(
                    "Processing row %d: %d successful, %d errors",
                    row_number,
                    result.successful_rows,
                    len(result.errors),
                )

            try:
                operation = self.build_operation(row, columns, owner, occurrences)
                check = self.detector.check_duplicate(operation.original_id, owner)
                duplicate = check.is_duplicate
                if duplicate:
                    operation = operation.marked_duplicate()
                try:
                    self.operation_service.register(operation)
                except ConflictError:
                    # A concurrent import stored the original after our check
                    logger.info("Row %d lost the original id race; storing as duplicate", row_number)
                    self.operation_service.register(operation.marked_duplicate())
                    duplicate = True
                result.successful_rows += 1
                if duplicate:
                    result.duplicate_rows += 1
            except ValueError as e:
                logger.warning("Row %d rejected: %s", row_number, e)
                result.errors.append(RowError(row_number, str(e), dict(row)))
            except Exception as e:
                logger.exception("Unexpected error on row %d", row_number)
                result.errors.append(RowError(row_number, f"Internal error: {e}", dict(row)))

        logger.info(
            "Import of %s finished: %d processed, %d successful, %d duplicates, %d errors",
            file_name,
            result.processed_rows,
            result.successful_rows,
            result.duplicate_rows,
            len(result.errors),
        )
        return result

    def build_operation(
        self,
        row: dict[str, Any],
        columns: dict[str, str],
        owner: UserId,
        occurrences: Optional[dict[str, int]] = None,
    ) -> Operation:
        """Parse one row into an operation.

        Args:
            row: Cells keyed by header
            columns: Operation field -> header, from map_columns
            owner: Owning user
            occurrences: Fingerprint counts seen so far in the file

        Raises:
            ValidationError: If a cell cannot be parsed
            InvalidOperationError: If the parsed fields break an operation invariant
        """
        values: dict[str, Any] = {}
        for name, header in columns.items():
            raw = row.get(header)
            try:
                if name == "date":
                    values[name] = parse_date(raw)
                elif name in ("quantity", "unit_price", "value"):
                    values[name] = parse_amount(raw)
                else:
                    values[name] = self._text(raw)
            except ValueError as e:
                raise ValidationError(
                    f"{FIELD_LABELS[name]}: {e}",
                    "row.invalid_cell",
                    column=FIELD_LABELS[name],
                    reason=str(e),
                ) from e

        original_id = values.pop("original_id", None)
        if original_id is None:
            base = fingerprint_row(values, 0)
            seen = occurrences.get(base, 0) if occurrences is not None else 0
            if occurrences is not None:
                occurrences[base] = seen + 1
            original_id = fingerprint_row(values, seen)

        return Operation(
            date=values.get("date"),
            quantity=values.get("quantity"),
            unit_price=values.get("unit_price"),
            value=values.get("value"),
            user_id=owner,
            direction=values.get("direction"),
            movement=values.get("movement"),
            product=values.get("product"),
            institution=values.get("institution"),
            original_id=original_id,
        )

    @staticmethod
    def _text(raw: Any) -> Optional[str]:
        if raw is None:
            return None
        if isinstance(raw, float) and raw.is_integer():
            # Spreadsheet ids come back as floats
            raw = int(raw)
        text = str(raw).strip()
        return text or None
