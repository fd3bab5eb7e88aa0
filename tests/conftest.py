"""
Shared pytest fixtures for autocrud tests.

This module provides:
- SQLite adapters backed by a database file in ``tmp_path``
- A fresh TableMetadataCache and BulkLoadRunner per test
- Fake psycopg / pyodbc modules for driver-surface tests

Record types live in ``tests._support.records``.
"""

from __future__ import annotations

import sqlite3
import sys
from pathlib import Path
from types import ModuleType
from unittest.mock import MagicMock

import pytest

# Ensure autocrud package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from autocrud.core.adapters import SQLiteAdapter
from autocrud.core.bulk.runner import BulkLoadRunner
from autocrud.core.metadata import TableMetadataCache
from tests._support.records import ALL_DDL


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """SQLite database file with every test table created."""
    path = str(tmp_path / "autocrud.db")
    conn = sqlite3.connect(path)
    try:
        for ddl in ALL_DDL:
            conn.execute(ddl)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def adapter(db_path: str) -> SQLiteAdapter:
    return SQLiteAdapter(db_path)


@pytest.fixture
def cache() -> TableMetadataCache:
    return TableMetadataCache()


@pytest.fixture
def runner():
    bulk_runner = BulkLoadRunner(max_workers=2)
    yield bulk_runner
    bulk_runner.shutdown(wait=True)


# =============================================================================
# Driver doubles
# =============================================================================


class FakeDriverError(Exception):
    """Stands in for ``psycopg.Error`` / ``pyodbc.Error``."""


@pytest.fixture
def fake_psycopg(monkeypatch: pytest.MonkeyPatch) -> ModuleType:
    module = ModuleType("psycopg")
    module.Error = FakeDriverError
    module.connect = MagicMock(name="psycopg.connect")
    monkeypatch.setitem(sys.modules, "psycopg", module)
    return module


@pytest.fixture
def fake_pyodbc(monkeypatch: pytest.MonkeyPatch) -> ModuleType:
    module = ModuleType("pyodbc")
    module.Error = FakeDriverError
    module.connect = MagicMock(name="pyodbc.connect")
    monkeypatch.setitem(sys.modules, "pyodbc", module)
    return module
