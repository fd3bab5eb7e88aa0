"""Microsoft SQL Server database adapter (pyodbc)."""

from __future__ import annotations

from typing import Any

from autocrud.core.bulk.loader import BulkLoader
from autocrud.core.bulk.tabular import SqlServerBulkLoader
from autocrud.core.errors import ConfigError, DatabaseConnectionError
from autocrud.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


def _pyodbc() -> Any:
    try:
        import pyodbc
    except ImportError:
        raise ConfigError(
            "pyodbc is required for SQL Server. Install with: pip install autocrud[sqlserver]"
        ) from None
    return pyodbc


class SqlServerAdapter(DatabaseAdapter):
    """
    SQL Server database adapter.

    Connections are opened with ``autocommit=False`` so writes commit
    explicitly; bulk loads use ``fast_executemany``.
    """

    def __init__(
        self,
        dsn: str | None = None,
        *,
        host: str = "localhost",
        port: int = 1433,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        driver: str = "ODBC Driver 18 for SQL Server",
        trust_server_certificate: bool = False,
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLSERVER,
            dsn=dsn,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            driver=driver,
            trust_server_certificate=trust_server_certificate,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_pyodbc().Error,)

    def open_connection(self) -> Connection:
        """Connect to SQL Server."""
        pyodbc = _pyodbc()
        try:
            return pyodbc.connect(
                self._config.to_connection_string(),
                autocommit=False,
                timeout=self._config.connect_timeout,
                **self._config.options,
            )
        except pyodbc.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQL Server: {e}",
                cause=e,
            ) from e

    def bulk_loader(self) -> BulkLoader:
        return SqlServerBulkLoader(self.dialect, self.driver_errors)


__all__ = [
    "SqlServerAdapter",
]
