"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from autocrud.core.adapters import PostgreSQLAdapter, SQLiteAdapter, SqlServerAdapter
from autocrud.core.errors import ConfigError
from autocrud.core.settings import AutoCrudSettings, adapter_from_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No stray AUTOCRUD_* variables or .env file."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "AUTOCRUD_BACKEND",
        "AUTOCRUD_DATABASE_URL",
        "AUTOCRUD_SQLITE_PATH",
        "AUTOCRUD_LOG_LEVEL",
        "AUTOCRUD_BULK_LOAD_WAIT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestAutoCrudSettings:
    def test_defaults(self):
        settings = AutoCrudSettings()
        assert settings.backend is None
        assert settings.resolved_backend == "sqlite"
        assert settings.database_url is None
        assert settings.bulk_load_wait is False
        assert settings.bulk_load_workers == 2
        assert settings.default_page_size == 25

    def test_reads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("AUTOCRUD_BACKEND", "PostgreSQL")
        monkeypatch.setenv("AUTOCRUD_DATABASE_URL", "postgresql://app@db/app")
        monkeypatch.setenv("AUTOCRUD_LOG_LEVEL", "debug")
        monkeypatch.setenv("AUTOCRUD_BULK_LOAD_WAIT", "true")

        settings = AutoCrudSettings()
        assert settings.backend == "postgresql"
        assert settings.database_url == "postgresql://app@db/app"
        assert settings.log_level == "DEBUG"
        assert settings.bulk_load_wait is True

    def test_reads_dotenv(self, tmp_path):
        (tmp_path / ".env").write_text("AUTOCRUD_SQLITE_PATH=from-dotenv.db\n")
        assert AutoCrudSettings().sqlite_path == "from-dotenv.db"

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            AutoCrudSettings(backend="oracle")

    def test_rejects_zero_page_size(self):
        with pytest.raises(ValidationError):
            AutoCrudSettings(default_page_size=0)


class TestAdapterFromSettings:
    def test_sqlite_path(self):
        adapter = adapter_from_settings(AutoCrudSettings(sqlite_path="dev.db"))
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.config.path == "dev.db"

    def test_sqlite_url_overrides_path(self):
        adapter = adapter_from_settings(AutoCrudSettings(database_url="file:dev.db?mode=ro"))
        assert adapter.config.path == "file:dev.db?mode=ro"

    @pytest.mark.parametrize(
        "backend,cls",
        [("postgres", PostgreSQLAdapter), ("mssql", SqlServerAdapter)],
    )
    def test_network_backends(self, backend, cls):
        adapter = adapter_from_settings(AutoCrudSettings(backend=backend, database_url="conn"))
        assert isinstance(adapter, cls)
        assert adapter.config.to_connection_string() == "conn"

    def test_network_backend_requires_url(self):
        with pytest.raises(ConfigError, match="AUTOCRUD_DATABASE_URL") as exc_info:
            adapter_from_settings(AutoCrudSettings(backend="sqlserver"))
        assert exc_info.value.context.backend == "sqlserver"

    @pytest.mark.parametrize(
        "url,cls",
        [
            ("postgresql://app@db/app", PostgreSQLAdapter),
            ("postgresql+psycopg://app@db/app", PostgreSQLAdapter),
            ("DRIVER={ODBC Driver 18 for SQL Server};SERVER=db,1433;DATABASE=app;", SqlServerAdapter),
        ],
    )
    def test_backend_inferred_from_url(self, url, cls):
        assert isinstance(adapter_from_settings(AutoCrudSettings(database_url=url)), cls)

    def test_sqlite_url_is_stripped_to_path(self):
        adapter = adapter_from_settings(AutoCrudSettings(database_url="sqlite:///data/app.db"))
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.config.path == "data/app.db"
