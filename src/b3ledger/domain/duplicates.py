"""Duplicate detection for re-imported operations."""

import logging
from dataclasses import dataclass
from typing import Optional

from b3ledger.database.base import Database
from b3ledger.domain.errors import ValidationError
from b3ledger.domain.value_objects import UserId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Outcome of a duplicate check.

    A duplicate always names the stored operation it repeats; an original
    never does.
    """

    is_duplicate: bool
    original_id: Optional[int] = None

    def __post_init__(self):
        if self.is_duplicate and self.original_id is None:
            raise ValidationError(
                "A duplicate result must reference the original operation",
                "duplicate.missing_original",
            )
        if not self.is_duplicate and self.original_id is not None:
            raise ValidationError(
                "A non-duplicate result cannot reference an original operation",
                "duplicate.unexpected_original",
            )

    @classmethod
    def original(cls) -> "DuplicateCheckResult":
        return cls(is_duplicate=False)

    @classmethod
    def duplicate_of(cls, operation_id: int) -> "DuplicateCheckResult":
        return cls(is_duplicate=True, original_id=operation_id)


class DuplicateDetector:
    """Decide whether an incoming operation re-imports a stored one."""

    def __init__(self, db: Database):
        """Initialize duplicate detector.

        Args:
            db: Database instance
        """
        self.db = db

    def check_duplicate(self, original_id: Optional[str], user_id) -> DuplicateCheckResult:
        """Check whether (original_id, user_id) is already taken.

        Operations without a source id are first-party entries and are never
        treated as duplicates, even when every other field matches.

        Args:
            original_id: Source identifier of the incoming row
            user_id: Owning user (int or UserId)

        Returns:
            DuplicateCheckResult referencing the stored original when one exists
        """
        if original_id is None or not str(original_id).strip():
            return DuplicateCheckResult.original()

        owner = user_id if isinstance(user_id, UserId) else UserId(user_id)
        key = str(original_id).strip()
        existing = self.db.find_operation_by_original_id(key, int(owner))
        if existing is None:
            return DuplicateCheckResult.original()

        logger.info(
            "Operation with original id %r for user %s duplicates operation %s",
            key,
            owner,
            existing.id,
        )
        return DuplicateCheckResult.duplicate_of(existing.id)
