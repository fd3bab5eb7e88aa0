"""
Canonical protocol definitions for autocrud.

Every module that needs a Connection or Cursor shape imports it from
here. sqlite3, psycopg 3 and pyodbc objects all satisfy these protocols
structurally; nothing in the repository layer imports a driver.

Architecture:
    ::

        protocols.py
        ├── Cursor       — DB-API 2.0 cursor (execute, fetch*, description, rowcount)
        └── Connection   — DB-API 2.0 connection (cursor, commit, rollback, close)

Tags:
    protocol, connection, cursor, database, autocrud, contracts
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Minimal DB-API 2.0 cursor used by the repository and bulk loaders."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        """Column metadata of the last query (name is element 0)."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement (-1 when unknown)."""
        ...

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute a single statement with positional parameters."""
        ...

    def executemany(self, sql: str, params: Sequence[Sequence[Any]]) -> Any:
        """Execute a statement for every parameter row."""
        ...

    def fetchone(self) -> Any:
        """Fetch the next row or None."""
        ...

    def fetchall(self) -> list[Any]:
        """Fetch all remaining rows."""
        ...

    def close(self) -> None:
        """Release the cursor."""
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface.

    Implementations:
        sqlite3.Connection, psycopg.Connection, pyodbc.Connection
    """

    def cursor(self) -> Any:
        """Open a cursor satisfying :class:`Cursor`."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...


__all__ = [
    "Connection",
    "Cursor",
]
