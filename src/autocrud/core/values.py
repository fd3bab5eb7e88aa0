"""Value conversion between record fields and driver values.

Text arrays are stored as brace-delimited text (``{a,b}``) on every
backend, so the same column can be read by all dialects' array
projections.
"""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from autocrud.core.errors import InvalidArgument
from autocrud.core.schema import FieldType

_ARRAY_RESERVED = (",", "{", "}")


def format_text_array(items: Sequence[str]) -> str:
    """``["a", "b"]`` -> ``"{a,b}"``.

    Raises:
        InvalidArgument: An element is not a string or contains ``,``,
            ``{`` or ``}``.
    """
    for item in items:
        if not isinstance(item, str):
            raise InvalidArgument(f"Text array element is not a string: {item!r}")
        if any(ch in item for ch in _ARRAY_RESERVED):
            raise InvalidArgument(f"Text array element contains a reserved character: {item!r}")
    return "{" + ",".join(items) + "}"


def parse_text_array(value: Any) -> list[str] | None:
    """Inverse of :func:`format_text_array`; tolerates missing braces."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    text = str(value).replace("{", "").replace("}", "")
    if not text:
        return []
    return text.split(",")


def decode_value(field_type: FieldType, value: Any) -> Any:
    """Normalize a driver value to the Python type of *field_type*.

    Drivers without native UUID/date/bool types (sqlite3, pyodbc) hand
    back text or integers; this restores the record's declared type.
    """
    if value is None:
        return None

    if field_type is FieldType.TEXT_ARRAY:
        return parse_text_array(value)
    if field_type is FieldType.UUID and not isinstance(value, uuid.UUID):
        return uuid.UUID(str(value))
    if field_type is FieldType.BOOLEAN and not isinstance(value, bool):
        return bool(int(value))
    if field_type is FieldType.DATETIME and isinstance(value, str):
        return dt.datetime.fromisoformat(value)
    if field_type is FieldType.DATE:
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, str):
            return dt.date.fromisoformat(value[:10])
    if field_type is FieldType.DECIMAL and not isinstance(value, Decimal):
        return Decimal(str(value))
    if field_type is FieldType.FLOAT and isinstance(value, Decimal):
        return float(value)
    if field_type is FieldType.CHAR and isinstance(value, str):
        return value.rstrip() or value[:1]
    return value


__all__ = [
    "decode_value",
    "format_text_array",
    "parse_text_array",
]
