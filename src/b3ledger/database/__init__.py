"""Database layer for b3ledger application."""

from b3ledger.database.base import Database
from b3ledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
