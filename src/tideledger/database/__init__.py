"""Database layer for tideledger."""

from tideledger.database.base import Database
from tideledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
