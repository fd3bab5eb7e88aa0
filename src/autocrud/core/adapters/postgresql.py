"""PostgreSQL database adapter (psycopg 3)."""

from __future__ import annotations

from typing import Any

from autocrud.core.bulk.loader import BulkLoader
from autocrud.core.bulk.postgresql import BinaryCopyLoader
from autocrud.core.errors import ConfigError, DatabaseConnectionError
from autocrud.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


def _psycopg() -> Any:
    try:
        import psycopg
    except ImportError:
        raise ConfigError(
            "psycopg is required for PostgreSQL. Install with: pip install autocrud[postgresql]"
        ) from None
    return psycopg


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    Every ``open_connection()`` call opens a new psycopg connection;
    bulk loads use binary ``COPY``.
    """

    def __init__(
        self,
        dsn: str | None = None,
        *,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            dsn=dsn,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_psycopg().Error,)

    def open_connection(self) -> Connection:
        """Connect to PostgreSQL database."""
        psycopg = _psycopg()
        try:
            return psycopg.connect(
                self._config.to_connection_string(),
                connect_timeout=self._config.connect_timeout,
                **self._config.options,
            )
        except psycopg.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e

    def bulk_loader(self) -> BulkLoader:
        return BinaryCopyLoader(self.dialect, self.driver_errors)


__all__ = [
    "PostgreSQLAdapter",
]
