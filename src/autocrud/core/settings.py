"""Environment-driven settings for autocrud services.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    Backend choice, connection string and bulk-load policy are read once
    at startup; everything downstream receives plain objects.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads ``AUTOCRUD_*`` env vars and ``.env``
    - **Sensible defaults:** SQLite file in the working directory

Examples:
    >>> from autocrud.core.settings import AutoCrudSettings, adapter_from_settings
    >>> settings = AutoCrudSettings(backend="sqlite", sqlite_path="dev.db")
    >>> adapter_from_settings(settings).db_type.value
    'sqlite'

Tags:
    settings, configuration, pydantic, environment, autocrud

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from autocrud.core.adapters import (
    DatabaseAdapter,
    DatabaseType,
    adapter_registry,
    backend_for_url,
    get_adapter,
)
from autocrud.core.errors import ConfigError


class AutoCrudSettings(BaseSettings):
    """Settings for an autocrud service.

    Fields
    ──────
    backend            : postgresql | sqlserver | sqlite (aliases postgres, mssql);
                         unset means inferred from database_url, then sqlite
    database_url       : DSN (psycopg) or ODBC connection string (pyodbc)
    sqlite_path        : Database file for the sqlite backend
    log_level          : Structlog log level
    json_logs          : JSON renderer; ``None`` means JSON when not a tty
    bulk_load_wait     : ``insert_many`` blocks until the load commits
    bulk_load_workers  : Background bulk-load thread count
    default_page_size  : Page size when the caller sends none
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTOCRUD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    backend: Literal["postgresql", "postgres", "sqlserver", "mssql", "sqlite"] | None = None
    database_url: str | None = Field(default=None, description="Backend connection string")
    sqlite_path: str = Field(default="autocrud.db", description="SQLite database file")

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Bulk load ────────────────────────────────────────────────
    bulk_load_wait: bool = False
    bulk_load_workers: int = Field(default=2, ge=1)

    # ── Routes ───────────────────────────────────────────────────
    default_page_size: int = Field(default=25, ge=1)

    @field_validator("backend", mode="before")
    @classmethod
    def _lower_backend(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def resolved_backend(self) -> str:
        """Canonical backend: explicit ``backend``, else the URL scheme, else sqlite."""
        name = self.backend
        if name is None and self.database_url:
            name = backend_for_url(self.database_url)
        return adapter_registry.resolve(name or DatabaseType.SQLITE)


def _sqlite_path(url: str) -> str:
    # sqlite:///relative.db and sqlite:////abs/path.db
    if url.startswith("sqlite:///"):
        return url[len("sqlite:///"):]
    return url


def adapter_from_settings(settings: AutoCrudSettings) -> DatabaseAdapter:
    """Build the configured :class:`DatabaseAdapter`.

    Raises:
        ConfigError: A network backend is selected without ``database_url``.
    """
    backend = settings.resolved_backend
    if backend == DatabaseType.SQLITE.value:
        path = _sqlite_path(settings.database_url) if settings.database_url else settings.sqlite_path
        return get_adapter(backend, path=path)
    if not settings.database_url:
        raise ConfigError(
            f"AUTOCRUD_DATABASE_URL is required for backend {backend!r}"
        ).with_context(backend=backend)
    return get_adapter(backend, dsn=settings.database_url)


__all__ = [
    "AutoCrudSettings",
    "adapter_from_settings",
]
