"""Per-column-type value encoders for bulk loads.

``ColumnType`` is the closed set of live column types a bulk load can
write. Each member has exactly one encoder in :data:`ENCODERS`; adding
a type means adding a member and an encoder.

An encoder takes the column name and a non-``None`` record value and
returns the value to stream, or raises :class:`UnsupportedColumnType`
when the value does not fit the column. ``None`` never reaches an
encoder; it is written as an explicit null.
"""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from autocrud.core.errors import InvalidArgument, UnsupportedColumnType
from autocrud.core.values import format_text_array, parse_text_array


class ColumnType(str, Enum):
    """Live column types supported by bulk load."""

    UUID = "uuid"
    INT64 = "int64"
    INT32 = "int32"
    INT16 = "int16"
    CHAR = "char"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    FLOAT = "float"
    DECIMAL = "decimal"
    TEXT_ARRAY = "text_array"


@dataclass(frozen=True)
class LiveColumn:
    """A destination column as reported by the live schema."""

    name: str
    column_type: ColumnType
    native_type: str


def _mismatch(column: str, column_type: ColumnType, value: Any) -> UnsupportedColumnType:
    return UnsupportedColumnType(
        column,
        column_type,
        f"Value {value!r} ({type(value).__name__}) does not fit column {column} "
        f"of type {column_type.value}",
    )


def _integer(column_type: ColumnType, bits: int) -> Callable[[str, Any], int]:
    low, high = -(2 ** (bits - 1)), 2 ** (bits - 1) - 1

    def encode(column: str, value: Any) -> int:
        # bool is stored as 0/1 where a table keeps flags in an integer column
        if not isinstance(value, int) or not low <= value <= high:
            raise _mismatch(column, column_type, value)
        return int(value)

    return encode


def encode_uuid(column: str, value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise _mismatch(column, ColumnType.UUID, value) from None


def encode_char(column: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise _mismatch(column, ColumnType.CHAR, value)
    return value


def encode_text(column: str, value: Any) -> str:
    if isinstance(value, (list, tuple)):
        try:
            return format_text_array(value)
        except InvalidArgument:
            raise _mismatch(column, ColumnType.TEXT, value) from None
    if isinstance(value, bytes):
        raise _mismatch(column, ColumnType.TEXT, value)
    return str(value)


def encode_boolean(column: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise _mismatch(column, ColumnType.BOOLEAN, value)
    return value


def encode_date(column: str, value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    raise _mismatch(column, ColumnType.DATE, value)


def encode_datetime(column: str, value: Any) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    raise _mismatch(column, ColumnType.DATETIME, value)


def encode_float(column: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise _mismatch(column, ColumnType.FLOAT, value)
    return float(value)


def encode_decimal(column: str, value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise _mismatch(column, ColumnType.DECIMAL, value)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise _mismatch(column, ColumnType.DECIMAL, value) from None


def encode_text_array(column: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return parse_text_array(value) or []
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise _mismatch(column, ColumnType.TEXT_ARRAY, value)


ENCODERS: dict[ColumnType, Callable[[str, Any], Any]] = {
    ColumnType.UUID: encode_uuid,
    ColumnType.INT64: _integer(ColumnType.INT64, 64),
    ColumnType.INT32: _integer(ColumnType.INT32, 32),
    ColumnType.INT16: _integer(ColumnType.INT16, 16),
    ColumnType.CHAR: encode_char,
    ColumnType.TEXT: encode_text,
    ColumnType.BOOLEAN: encode_boolean,
    ColumnType.DATE: encode_date,
    ColumnType.DATETIME: encode_datetime,
    ColumnType.FLOAT: encode_float,
    ColumnType.DECIMAL: encode_decimal,
    ColumnType.TEXT_ARRAY: encode_text_array,
}


def encode(column: LiveColumn, value: Any) -> Any:
    """Encode *value* for *column*; ``None`` passes through as null."""
    if value is None:
        return None
    return ENCODERS[column.column_type](column.name, value)


__all__ = [
    "ColumnType",
    "ENCODERS",
    "LiveColumn",
    "encode",
]
