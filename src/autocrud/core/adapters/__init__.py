"""Database adapters -- one capability object per supported backend.

Manifesto:
    The repository core is written once. Everything that differs between
    backends (driver, connection string, SQL dialect, bulk transfer
    channel, driver exception types) lives on an adapter.

    Each adapter is **import-guarded**: the database driver is only required
    when a connection is opened, not at import time.  Install the extra::

        pip install autocrud[postgresql]   # psycopg
        pip install autocrud[sqlserver]    # pyodbc

Architecture::

    DatabaseAdapter (base.py)        open_connection / connection / bulk_loader
        |-- PostgreSQLAdapter        psycopg 3, binary COPY
        |-- SqlServerAdapter         pyodbc, fast_executemany
        |-- SQLiteAdapter            stdlib sqlite3 (always available)

    AdapterRegistry (registry.py)    name -> adapter class
    DatabaseConfig (types.py)        connection parameters
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at connect time with clear ``ConfigError``
    ❌ Holding a connection across repository calls
    ✅ ``with adapter.connection() as conn:`` per operation

Tags:
    autocrud, database, adapters, multi-backend, import-guarded,
    registry-pattern, postgresql, sqlserver, sqlite

Doc-Types:
    package-overview, module-index
"""

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, backend_for_url, get_adapter
from .sqlite import SQLiteAdapter
from .sqlserver import SqlServerAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "AdapterRegistry",
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    "SqlServerAdapter",
    "adapter_registry",
    "backend_for_url",
    "get_adapter",
]
