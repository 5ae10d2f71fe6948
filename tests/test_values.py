"""Tests for typed tag values."""

from datetime import date

import pytest

from todotxt_cli.values import (
    GB,
    KB,
    MB,
    PB,
    SEC_IN_DAY,
    SEC_IN_HOUR,
    SEC_IN_MINUTE,
    SEC_IN_WEEK,
    ValueType,
    str_match,
    str_to_bytes,
    str_to_date,
    str_to_duration,
    str_to_time,
    type_by_tag,
    type_by_value,
    value_type,
    values_compare,
    values_equal,
)

BASE = date(2020, 7, 9)


class TestConverters:
    """Test converting tag values to numbers."""

    @pytest.mark.parametrize("value,expected", [
        ("4789", 4789),
        ("5k", 5 * KB),
        ("2MiB", 2 * MB),
        ("188Gb", 188 * GB),
        ("24P", 24 * PB),
        ("xk", None),
    ])
    def test_bytes(self, value, expected):
        assert str_to_bytes(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("7829", 7829),
        ("1d89", SEC_IN_DAY + 89),
        ("21h44m", SEC_IN_MINUTE * 44 + SEC_IN_HOUR * 21),
        ("3w2s", SEC_IN_WEEK * 3 + 2),
        ("-1m5s", -SEC_IN_MINUTE - 5),
        ("11d12w13m14h10s",
         SEC_IN_WEEK * 12 + SEC_IN_DAY * 11 + SEC_IN_HOUR * 14 + SEC_IN_MINUTE * 13 + 10),
        ("5x", None),
    ])
    def test_duration(self, value, expected):
        assert str_to_duration(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("7829", None),
        ("1060", None),
        ("60", None),
        ("60am", None),
        ("1320am", None),
        ("1011tm", None),
        ("1030", 1030),
        ("2359", 2359),
        ("1011am", 1011),
        ("1011pm", 2211),
        ("1215am", 15),
        ("1215pm", 1215),
    ])
    def test_time(self, value, expected):
        assert str_to_time(value) == expected

    def test_date(self):
        assert str_to_date("tomorrow", BASE) == date(2020, 7, 10)
        assert str_to_date("2020-01-01", BASE) == date(2020, 1, 1)
        assert str_to_date("today-3d", BASE) == date(2020, 7, 6)
        assert str_to_date("whenever", BASE) is None
        assert str_to_date("99999999d", BASE) is None
        assert str_to_date("today+9999y", BASE) is None

    @pytest.mark.parametrize("value", ["²k", "²"])
    def test_non_ascii_digits_bytes(self, value):
        assert str_to_bytes(value) is None

    @pytest.mark.parametrize("value", ["²³⁴", "¹²³⁴pm"])
    def test_non_ascii_digits_time(self, value):
        assert str_to_time(value) is None


class TestTypeInference:
    """Test guessing value types."""

    @pytest.mark.parametrize("tag,expected", [
        ("due", ValueType.DATE),
        ("t", ValueType.DATE),
        ("start_date", ValueType.DATE),
        ("finished", ValueType.DATE),
        ("alarm_time", ValueType.TIME),
        ("spent", ValueType.DURATION),
        ("build_dur", ValueType.DURATION),
        ("disk_size", ValueType.SIZE),
        ("pri", ValueType.STRING),
        ("#idea", ValueType.STRING),
        ("ID", ValueType.INTEGER),
        ("val", ValueType.UNKNOWN),
    ])
    def test_by_tag(self, tag, expected):
        assert type_by_tag(tag) == expected

    @pytest.mark.parametrize("value,expected", [
        ("-2", ValueType.INTEGER),
        ("2.5", ValueType.FLOAT),
        ("2020-01-01", ValueType.DATE),
        ("1h30m", ValueType.DURATION),
        ("5MiB", ValueType.SIZE),
        ("1011pm", ValueType.TIME),
        ("hello", ValueType.STRING),
        (None, ValueType.STRING),
    ])
    def test_by_value(self, value, expected):
        assert type_by_value(value) == expected

    def test_tag_name_wins(self):
        assert value_type("due", "15") == ValueType.DATE
        assert value_type("val", "15") == ValueType.INTEGER
        assert value_type("due", None) == ValueType.STRING


class TestComparison:
    """Test comparing task values with filter operands."""

    def test_string_match(self):
        assert str_match("th*", "This")
        assert str_match("*is", "this")
        assert str_match("*hi*", "this")
        assert not str_match("th", "this")
        assert str_match("^t.*s$", "this", use_regex=True)
        assert not str_match("[", "this", use_regex=True)

    def test_equal(self):
        assert values_equal("2020-07-10", "tomorrow", ValueType.DATE, BASE)
        assert values_equal("1h", "60m", ValueType.DURATION, BASE)
        assert values_equal("1k", "1024", ValueType.SIZE, BASE)
        assert values_equal("-2", "-2", ValueType.INTEGER, BASE)
        assert not values_equal("abc", "5", ValueType.INTEGER, BASE)

    def test_compare(self):
        assert values_compare("2020-07-01", "today", ValueType.DATE, BASE, less_eq=True)
        assert values_compare("2h", "1h", ValueType.DURATION, BASE, less_eq=False)
        assert values_compare("1.5", "2", ValueType.FLOAT, BASE, less_eq=True)
        assert not values_compare("abc", "abd", ValueType.UNKNOWN, BASE, less_eq=True)
