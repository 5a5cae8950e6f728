"""Tests for the paginated pending-operation reader."""

import pytest

from b3ledger.batch.reader import OperationItemReader


@pytest.fixture
def pending_operations(temp_db, make_operation):
    return [temp_db.save_operation(make_operation()) for _ in range(25)]


def test_reader_pages_through_pending_operations(temp_db, pending_operations):
    reader = OperationItemReader(temp_db, page_size=10)

    chunks = [reader.read_chunk() for _ in range(4)]

    assert [len(chunk) for chunk in chunks] == [10, 10, 5, 0]
    assert [op.id for chunk in chunks for op in chunk] == [op.id for op in pending_operations]
    assert reader.offset == 25
    assert reader.pages_read == 3
    assert reader.exhausted


def test_reader_is_not_shifted_by_consolidated_rows(temp_db, pending_operations):
    reader = OperationItemReader(temp_db, page_size=10)

    first = reader.read_chunk()
    for operation in first:
        temp_db.mark_operation_dimensioned(operation.id)
    second = reader.read_chunk()

    assert [op.id for op in second] == [op.id for op in pending_operations[10:20]]


def test_reader_skips_duplicate_deleted_and_dimensioned(temp_db, make_operation):
    kept = temp_db.save_operation(make_operation())
    temp_db.save_operation(make_operation(original_id="A").marked_duplicate())
    deleted = temp_db.save_operation(make_operation())
    temp_db.mark_operation_deleted(deleted.id)
    done = temp_db.save_operation(make_operation())
    temp_db.mark_operation_dimensioned(done.id)

    reader = OperationItemReader(temp_db, page_size=10)

    assert [op.id for op in reader.read_chunk()] == [kept.id]
    assert reader.read() is None


def test_reader_on_empty_table(temp_db):
    reader = OperationItemReader(temp_db, page_size=10)

    assert reader.read() is None
    assert reader.exhausted
    assert reader.offset == 0


def test_reader_exact_page_multiple(temp_db, make_operation):
    for _ in range(20):
        temp_db.save_operation(make_operation())
    reader = OperationItemReader(temp_db, page_size=10)

    assert len(reader.read_chunk()) == 10
    assert len(reader.read_chunk()) == 10
    assert reader.exhausted
    assert reader.pages_read == 2


def test_reader_rejects_invalid_page_size(temp_db):
    with pytest.raises(ValueError):
        OperationItemReader(temp_db, page_size=0)
