"""Utility functions for b3ledger."""

from b3ledger.utils.date_parser import parse_date
from b3ledger.utils.amount_parser import parse_amount
from b3ledger.utils.locks import KeyedLock

__all__ = ["parse_date", "parse_amount", "KeyedLock"]
