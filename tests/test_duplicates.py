"""Tests for duplicate detection."""

import pytest

from b3ledger.domain.duplicates import DuplicateCheckResult
from b3ledger.domain.errors import ValidationError


def test_result_invariants():
    assert DuplicateCheckResult.original().original_id is None
    assert DuplicateCheckResult.duplicate_of(3).original_id == 3

    with pytest.raises(ValidationError):
        DuplicateCheckResult(is_duplicate=True)
    with pytest.raises(ValidationError):
        DuplicateCheckResult(is_duplicate=False, original_id=3)


def test_unknown_original_id_is_not_duplicate(detector):
    result = detector.check_duplicate("ABC-1", 1)
    assert not result.is_duplicate


def test_null_or_blank_original_id_is_never_duplicate(temp_db, detector, make_operation):
    temp_db.save_operation(make_operation())

    assert not detector.check_duplicate(None, 1).is_duplicate
    assert not detector.check_duplicate("  ", 1).is_duplicate


def test_stored_original_id_is_duplicate(temp_db, detector, make_operation):
    saved = temp_db.save_operation(make_operation(original_id="ABC-1"))

    result = detector.check_duplicate("ABC-1", 1)

    assert result.is_duplicate
    assert result.original_id == saved.id


def test_duplicate_check_is_scoped_to_user(temp_db, detector, make_operation):
    temp_db.save_operation(make_operation(original_id="ABC-1", user_id=1))

    assert not detector.check_duplicate("ABC-1", 2).is_duplicate


def test_duplicate_rows_do_not_count_as_originals(temp_db, detector, make_operation):
    original = temp_db.save_operation(make_operation(original_id="ABC-1"))
    temp_db.save_operation(make_operation(original_id="ABC-1").marked_duplicate())

    result = detector.check_duplicate("ABC-1", 1)

    assert result.original_id == original.id
