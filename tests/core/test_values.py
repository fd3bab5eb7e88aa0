"""Tests for autocrud.core.values module."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

import pytest

from autocrud.core.errors import InvalidArgument
from autocrud.core.schema import FieldType
from autocrud.core.values import decode_value, format_text_array, parse_text_array


class TestTextArrays:
    def test_format(self):
        assert format_text_array(["a", "b"]) == "{a,b}"
        assert format_text_array([]) == "{}"

    @pytest.mark.parametrize("item", ["a,b", "{a", "b}", 3])
    def test_format_rejects(self, item):
        with pytest.raises(InvalidArgument):
            format_text_array([item])

    @pytest.mark.parametrize(
        "value,expected",
        [("{a,b}", ["a", "b"]), ("a,b", ["a", "b"]), ("{}", []), ("", []), (["x"], ["x"]), (None, None)],
    )
    def test_parse(self, value, expected):
        assert parse_text_array(value) == expected


class TestDecodeValue:
    def test_none_passes_through(self):
        assert decode_value(FieldType.UUID, None) is None

    def test_uuid_from_text(self):
        value = uuid.uuid4()
        assert decode_value(FieldType.UUID, str(value)) == value

    def test_bool_from_int(self):
        assert decode_value(FieldType.BOOLEAN, 1) is True
        assert decode_value(FieldType.BOOLEAN, 0) is False

    def test_dates_from_text(self):
        assert decode_value(FieldType.DATE, "2024-03-01") == dt.date(2024, 3, 1)
        assert decode_value(FieldType.DATETIME, "2024-03-01T10:00:00") == dt.datetime(2024, 3, 1, 10)

    def test_date_from_datetime(self):
        assert decode_value(FieldType.DATE, dt.datetime(2024, 3, 1, 10)) == dt.date(2024, 3, 1)

    def test_decimal_from_float(self):
        assert decode_value(FieldType.DECIMAL, 10.5) == Decimal("10.5")

    def test_char_padding_stripped(self):
        assert decode_value(FieldType.CHAR, "A   ") == "A"
        assert decode_value(FieldType.CHAR, " ") == " "

    def test_array_from_projection_text(self):
        assert decode_value(FieldType.TEXT_ARRAY, "a,b") == ["a", "b"]
