"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from autocrud.core.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    SQLITE = "sqlite"


@dataclass
class DatabaseConfig:
    """
    Configuration for database connection.

    Different fields are used by different database types. A non-empty
    ``dsn`` wins over the individual host/port/database fields.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE
    dsn: str | None = None

    # SQLite
    path: str | None = None

    # PostgreSQL / SQL Server
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    username: str | None = None
    password: str | None = None

    # SQL Server
    driver: str = "ODBC Driver 18 for SQL Server"
    trust_server_certificate: bool = False

    # Options
    connect_timeout: int = 10

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def to_connection_string(self) -> str:
        """Generate connection string for the database type."""
        if self.dsn:
            return self.dsn
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case DatabaseType.POSTGRESQL:
                port = self.port or 5432
                return f"postgresql://{self.username}:{self.password}@{self.host}:{port}/{self.database}"
            case DatabaseType.SQLSERVER:
                port = self.port or 1433
                parts = [
                    f"DRIVER={{{self.driver}}}",
                    f"SERVER={self.host},{port}",
                    f"DATABASE={self.database}",
                ]
                if self.username:
                    parts += [f"UID={self.username}", f"PWD={self.password or ''}"]
                else:
                    parts.append("Trusted_Connection=yes")
                if self.trust_server_certificate:
                    parts.append("TrustServerCertificate=yes")
                return ";".join(parts) + ";"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
