"""Tests for the autocrud error hierarchy."""

from __future__ import annotations

import pytest

from autocrud.core.errors import (
    BackendExecutionFailure,
    ColumnCountMismatch,
    ConfigError,
    CrudError,
    DatabaseConnectionError,
    DuplicateBinding,
    ErrorCategory,
    InvalidArgument,
    InvalidIdentifier,
    SchemaDriftError,
    UnknownColumn,
    UnsupportedColumnType,
    ValidationError,
    categorize_error,
    is_retryable,
)


class TestCategories:
    @pytest.mark.parametrize(
        "error,category",
        [
            (InvalidIdentifier("table name", "bad name"), ErrorCategory.VALIDATION),
            (InvalidArgument("page_size must be positive"), ErrorCategory.VALIDATION),
            (ColumnCountMismatch("t", 2, 3), ErrorCategory.SCHEMA),
            (UnknownColumn("t", "extra"), ErrorCategory.SCHEMA),
            (UnsupportedColumnType("blob", "BLOB"), ErrorCategory.SCHEMA),
            (DuplicateBinding("t"), ErrorCategory.CONFIG),
            (BackendExecutionFailure("boom"), ErrorCategory.DATABASE),
            (DatabaseConnectionError("refused"), ErrorCategory.DATABASE),
        ],
    )
    def test_default_category(self, error, category):
        assert error.category is category
        assert isinstance(error, CrudError)

    def test_schema_drift_is_a_validation_error(self):
        error = ColumnCountMismatch("widgets", 2, 3)
        assert isinstance(error, SchemaDriftError)
        assert isinstance(error, ValidationError)
        assert "(3)" in error.message and "(2)" in error.message


class TestRetryable:
    def test_connection_errors_are_retryable(self):
        assert is_retryable(DatabaseConnectionError("refused"))
        assert is_retryable(ConnectionResetError())

    def test_backend_failure_is_not(self):
        assert not is_retryable(BackendExecutionFailure("duplicate key"))
        assert not is_retryable(ConfigError("missing driver"))

    def test_categorize_builtins(self):
        assert categorize_error(ConnectionRefusedError()) is ErrorCategory.NETWORK
        assert categorize_error(ValueError()) is ErrorCategory.VALIDATION
        assert categorize_error(KeyError()) is ErrorCategory.UNKNOWN


class TestContext:
    def test_with_context_sets_known_and_extra_keys(self):
        error = BackendExecutionFailure("insert failed").with_context(
            table="customers", operation="insert", key=42
        )
        assert error.context.table == "customers"
        assert error.context.metadata == {"key": 42}

    def test_to_dict(self):
        cause = RuntimeError("unique violation")
        error = BackendExecutionFailure("insert failed", cause=cause).with_context(table="customers")
        data = error.to_dict()
        assert data["error_type"] == "BackendExecutionFailure"
        assert data["category"] == "DATABASE"
        assert data["retryable"] is False
        assert data["context"] == {"table": "customers"}
        assert data["cause"] == "unique violation"
        assert error.__cause__ is cause

    def test_invalid_identifier_fields(self):
        error = InvalidIdentifier("search field", "name; DROP")
        data = error.to_dict()
        assert error.kind == "search field"
        assert data["field"] == "search field"
        assert data["constraint"] == "identifier"
        assert "name; DROP" in data["value"]
