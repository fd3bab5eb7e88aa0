"""SQLite database adapter."""

from __future__ import annotations

import sqlite3
from typing import Any

from autocrud.core.bulk.loader import BulkLoader
from autocrud.core.bulk.tabular import SQLiteBulkLoader
from autocrud.core.errors import DatabaseConnectionError
from autocrud.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Single-process applications

    ``:memory:`` gives every connection its own empty database; use a
    file path for anything that must outlive one call.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def open_connection(self) -> Connection:
        """Connect to SQLite database."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            conn.execute("PRAGMA foreign_keys = ON")
            return conn
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def bulk_loader(self) -> BulkLoader:
        return SQLiteBulkLoader(self.dialect, self.driver_errors)


__all__ = [
    "SQLiteAdapter",
]
