"""Paginated reader over operations waiting for consolidation."""

import logging
from collections import deque
from typing import Optional

from b3ledger.database.base import Database
from b3ledger.domain.operation import Operation

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class OperationItemReader:
    """Read pending operations one at a time, fetching them a page at a time.

    Pending means not dimensioned, not duplicate and not deleted. Pages are
    keyed by the last id fetched rather than by offset, so rows the writer
    marks dimensioned between pages do not shift the next page. ``offset``
    still counts the items handed out.
    """

    def __init__(self, db: Database, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size <= 0:
            raise ValueError(f"Page size must be positive, got {page_size}")
        self.db = db
        self.page_size = page_size
        self.offset = 0
        self.pages_read = 0
        self._buffer: deque[Operation] = deque()
        self._last_fetched_id = 0
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        return self._exhausted and not self._buffer

    def read(self) -> Optional[Operation]:
        """Return the next pending operation, or None at end of stream."""
        if not self._buffer:
            if self._exhausted:
                return None
            self._fetch_page()
            if not self._buffer:
                return None
        self.offset += 1
        return self._buffer.popleft()

    def read_chunk(self, size: Optional[int] = None) -> list[Operation]:
        """Read up to ``size`` operations (one page by default)."""
        size = size or self.page_size
        chunk = []
        while len(chunk) < size:
            operation = self.read()
            if operation is None:
                break
            chunk.append(operation)
        return chunk

    def _fetch_page(self) -> None:
        page = self.db.list_pending_operations(self._last_fetched_id, self.page_size)
        self.pages_read += 1
        logger.debug(
            "Fetched page %d (%d rows after id %d)", self.pages_read, len(page), self._last_fetched_id
        )
        if not page:
            self._exhausted = True
            return
        self._buffer.extend(page)
        self._last_fetched_id = page[-1].id
        if len(page) < self.page_size or not self.db.has_pending_operations_after(self._last_fetched_id):
            self._exhausted = True
