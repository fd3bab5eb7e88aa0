"""Tests for ``autocrud.core.adapters`` — backend capability objects."""

from __future__ import annotations

import sqlite3
import sys
from unittest.mock import MagicMock, patch

import pytest

from autocrud.core.adapters import (
    AdapterRegistry,
    DatabaseConfig,
    DatabaseType,
    PostgreSQLAdapter,
    SQLiteAdapter,
    SqlServerAdapter,
    adapter_registry,
    backend_for_url,
    get_adapter,
)
from autocrud.core.bulk import BinaryCopyLoader, SQLiteBulkLoader, SqlServerBulkLoader
from autocrud.core.errors import ConfigError, DatabaseConnectionError


class TestDatabaseConfig:
    def test_sqlite_path(self):
        assert DatabaseConfig(db_type=DatabaseType.SQLITE, path="app.db").to_connection_string() == "app.db"
        assert DatabaseConfig(db_type=DatabaseType.SQLITE).to_connection_string() == ":memory:"

    def test_postgresql_url(self):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL, host="db", database="app", username="u", password="p"
        )
        assert config.to_connection_string() == "postgresql://u:p@db:5432/app"

    def test_sqlserver_odbc_string(self):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLSERVER,
            host="db",
            database="app",
            username="sa",
            password="pw",
            trust_server_certificate=True,
        )
        assert config.to_connection_string() == (
            "DRIVER={ODBC Driver 18 for SQL Server};SERVER=db,1433;DATABASE=app;"
            "UID=sa;PWD=pw;TrustServerCertificate=yes;"
        )

    def test_sqlserver_integrated_security(self):
        config = DatabaseConfig(db_type=DatabaseType.SQLSERVER, host="db", database="app")
        assert "Trusted_Connection=yes" in config.to_connection_string()

    def test_dsn_wins(self):
        config = DatabaseConfig(db_type=DatabaseType.POSTGRESQL, dsn="postgresql:///local", host="db")
        assert config.to_connection_string() == "postgresql:///local"


class TestSQLiteAdapter:
    def test_dialect_and_loader(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type is DatabaseType.SQLITE
        assert adapter.dialect.name == "sqlite"
        assert isinstance(adapter.bulk_loader(), SQLiteBulkLoader)
        assert adapter.driver_errors == (sqlite3.Error,)

    def test_connection_scope_closes(self, db_path):
        adapter = SQLiteAdapter(db_path)
        with adapter.connection() as conn:
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

    def test_connection_rolls_back_on_error(self, db_path):
        adapter = SQLiteAdapter(db_path)
        with pytest.raises(RuntimeError):
            with adapter.connection() as conn:
                conn.execute("INSERT INTO widgets (id, label, extra) VALUES (1, 'a', 'b')")
                raise RuntimeError("boom")
        with adapter.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM widgets").fetchone()[0] == 0

    @patch("sqlite3.connect", side_effect=sqlite3.OperationalError("unable to open database"))
    def test_connect_failure_raises(self, mock_connect):
        adapter = SQLiteAdapter(path="/nonexistent/path.db")
        with pytest.raises(DatabaseConnectionError):
            adapter.open_connection()


class TestPostgreSQLAdapter:
    def test_open_connection(self, fake_psycopg):
        adapter = PostgreSQLAdapter(dsn="postgresql://app@localhost/app")
        conn = adapter.open_connection()
        assert conn is fake_psycopg.connect.return_value
        fake_psycopg.connect.assert_called_once_with("postgresql://app@localhost/app", connect_timeout=10)

    def test_connect_failure(self, fake_psycopg):
        fake_psycopg.connect.side_effect = fake_psycopg.Error("Connection refused")
        adapter = PostgreSQLAdapter(host="bad-host", database="app")
        with pytest.raises(DatabaseConnectionError, match="Failed to connect"):
            adapter.open_connection()

    def test_driver_errors_and_loader(self, fake_psycopg):
        adapter = PostgreSQLAdapter()
        assert adapter.driver_errors == (fake_psycopg.Error,)
        assert isinstance(adapter.bulk_loader(), BinaryCopyLoader)

    def test_missing_driver(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "psycopg", None)
        with pytest.raises(ConfigError, match="psycopg is required"):
            PostgreSQLAdapter().open_connection()


class TestSqlServerAdapter:
    def test_open_connection(self, fake_pyodbc):
        adapter = SqlServerAdapter(host="db", database="app", username="sa", password="pw")
        adapter.open_connection()
        args, kwargs = fake_pyodbc.connect.call_args
        assert args[0].startswith("DRIVER={ODBC Driver 18 for SQL Server};SERVER=db,1433;")
        assert kwargs == {"autocommit": False, "timeout": 10}

    def test_connect_failure(self, fake_pyodbc):
        fake_pyodbc.connect.side_effect = fake_pyodbc.Error("Login failed")
        with pytest.raises(DatabaseConnectionError):
            SqlServerAdapter(host="db").open_connection()

    def test_loader(self, fake_pyodbc):
        assert isinstance(SqlServerAdapter().bulk_loader(), SqlServerBulkLoader)

    def test_connection_closes_after_error(self, fake_pyodbc):
        conn = MagicMock()
        fake_pyodbc.connect.return_value = conn
        with pytest.raises(ValueError):
            with SqlServerAdapter().connection():
                raise ValueError("x")
        conn.rollback.assert_called_once()
        conn.close.assert_called_once()


class TestAdapterRegistry:
    @pytest.mark.parametrize(
        "name,cls",
        [
            ("sqlite", SQLiteAdapter),
            ("postgresql", PostgreSQLAdapter),
            ("postgres", PostgreSQLAdapter),
            ("sqlserver", SqlServerAdapter),
            ("MSSQL", SqlServerAdapter),
        ],
    )
    def test_get_adapter(self, name, cls):
        assert isinstance(get_adapter(name), cls)

    def test_get_adapter_by_enum(self):
        adapter = get_adapter(DatabaseType.SQLITE, path="x.db")
        assert adapter.config.path == "x.db"

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Unknown database adapter"):
            get_adapter("oracle")

    def test_list_adapters(self):
        assert adapter_registry.list_adapters() == ["mssql", "pg", "postgres", "postgresql", "sqlite", "sqlserver"]

    def test_register_custom_adapter(self):
        registry = AdapterRegistry()
        registry.register("Replica", SQLiteAdapter)
        assert isinstance(registry.create("replica", path="replica.db"), SQLiteAdapter)
        assert "replica" in registry.list_adapters()

    def test_alias_can_be_overridden(self):
        registry = AdapterRegistry()
        registry.register("pg", SQLiteAdapter)
        assert registry.adapter_class("pg") is SQLiteAdapter
        assert registry.adapter_class("postgres") is PostgreSQLAdapter


class TestBackendForUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgresql://app@db/app", "postgresql"),
            ("postgres://app@db/app", "postgresql"),
            ("postgresql+psycopg://app@db/app", "postgresql"),
            ("mssql://sa@db/app", "sqlserver"),
            ("DRIVER={ODBC Driver 18 for SQL Server};SERVER=db;", "sqlserver"),
            ("sqlite:///app.db", "sqlite"),
            ("file:app.db?mode=ro", "sqlite"),
            ("app.db", None),
            ("oracle://db", None),
        ],
    )
    def test_schemes(self, url, expected):
        assert backend_for_url(url) == expected
