"""Upload processing: validate the file, import its rows, report the failures."""

import io
import logging
from dataclasses import dataclass, field
from typing import Optional

from b3ledger.database.base import Database
from b3ledger.domain.error_report import ErrorReportGenerator
from b3ledger.domain.errors import ValidationError
from b3ledger.domain.row_import import RowError, RowImportService
from b3ledger.domain.value_objects import UserId
from b3ledger.utils.tabular import SUPPORTED_EXTENSIONS, file_extension

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024


@dataclass
class UploadResult:
    """Outcome of an upload; error_report is set whenever errors is non-empty."""

    processed_rows: int = 0
    successful_rows: int = 0
    duplicate_rows: int = 0
    errors: list[RowError] = field(default_factory=list)
    error_report: Optional[io.BytesIO] = None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class UploadService:
    """Service for processing uploaded statement files."""

    def __init__(
        self,
        db: Database,
        importer: Optional[RowImportService] = None,
        report_generator: Optional[ErrorReportGenerator] = None,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ):
        """Initialize upload service.

        Args:
            db: Database instance
            importer: Row importer (built on db if None)
            report_generator: Error report generator (default if None)
            max_bytes: Largest accepted upload
        """
        self.db = db
        self.importer = importer or RowImportService(db)
        self.report_generator = report_generator or ErrorReportGenerator()
        self.max_bytes = max_bytes

    def validate(self, data: Optional[bytes], file_name: Optional[str], user_id) -> UserId:
        """Check the upload before reading it.

        Returns:
            The owning user id

        Raises:
            ValidationError: If the file is empty, unnamed, too large or of an
                unsupported type
            InvalidValueError: If user_id is not a valid user id
        """
        if not data:
            raise ValidationError("File cannot be empty", "upload.empty")
        if not file_name or not file_name.strip():
            raise ValidationError("File name is required", "upload.missing_name")
        owner = user_id if isinstance(user_id, UserId) else UserId(user_id)
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"File too large. Maximum size: {self.max_bytes // (1024 * 1024)}MB",
                "upload.too_large",
                max_mb=self.max_bytes // (1024 * 1024),
            )
        if file_extension(file_name) not in SUPPORTED_EXTENSIONS:
            raise ValidationError(
                f"Unsupported file type. Supported: {', '.join(SUPPORTED_EXTENSIONS)}",
                "upload.unsupported_type",
                extension=file_extension(file_name),
            )
        return owner

    def process(self, data: bytes, file_name: str, user_id) -> UploadResult:
        """Import an uploaded file and build its error report.

        The report uses the upload's own format.

        Args:
            data: File content
            file_name: Original file name
            user_id: Owning user

        Returns:
            UploadResult

        Raises:
            ValidationError: If the upload is rejected as a whole
            ImportTimeoutError: If the import ran past its timeout
        """
        owner = self.validate(data, file_name, user_id)
        logger.info("Processing upload %s (%d bytes) for user %s", file_name, len(data), owner)

        imported = self.importer.import_rows(data, file_name, owner)
        result = UploadResult(
            processed_rows=imported.processed_rows,
            successful_rows=imported.successful_rows,
            duplicate_rows=imported.duplicate_rows,
            errors=imported.errors,
        )
        if result.errors:
            fmt = file_extension(file_name).lstrip(".")
            result.error_report = self.report_generator.generate(result.errors, fmt)
        return result
