"""Database layer for vatkit application."""

from vatkit.database.base import Database
from vatkit.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
