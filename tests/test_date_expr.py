"""Tests for date expressions."""

from datetime import date

import pytest

from todotxt_cli.date_expr import (
    Calc,
    Raw,
    TaskTag,
    TaskTagList,
    calculate_expr,
    calculate_main_tags,
    parse_base,
    parse_duration,
    parse_expression,
    resolve_text,
    update_tags_in_str,
)
from todotxt_cli.errors import (
    DateExprError,
    InvalidBaseToken,
    InvalidDuration,
    InvalidRecurrenceUnit,
    RecursionOverflow,
)
from todotxt_cli.todo import Task

BASE = date(2020, 3, 15)


class TestRecognizers:
    """Test base and offset token recognizers."""

    @pytest.mark.parametrize("text,expected", [
        ("2020-01-01", "2020-01-01"),
        ("2020-01-01+2d", "2020-01-01"),
        ("03-05-1d", "03-05"),
        ("15+1w", "15"),
        ("fri+1w", "fri"),
        ("due-3", "due"),
        ("2020-1-1", None),
        ("123", None),
        ("2d", None),
        ("+1d", None),
    ])
    def test_parse_base(self, text, expected):
        assert parse_base(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("2d", "2d"),
        ("12W-1d", "12W"),
        ("9", "9"),
        ("m", "m"),
        ("abcd", None),
        ("1t", None),
    ])
    def test_parse_duration(self, text, expected):
        assert parse_duration(text) == expected


class TestParseExpression:
    """Test splitting expressions into items."""

    @pytest.mark.parametrize("text,count,last", [
        ("2003-01-01", 1, "2003-01-01"),
        ("2003-01-01+2d", 2, "2d"),
        ("2003-01-01+2d-9", 3, "9"),
        ("2003-01-01+9-10m", 3, "10m"),
        ("tue+67", 2, "67"),
    ])
    def test_valid(self, text, count, last):
        items = parse_expression(text)
        assert len(items) == count
        assert items[-1].token == last

    def test_signs(self):
        items = parse_expression("t+1m-2d")
        assert [(i.sign, i.token) for i in items] == [("+", "t"), ("+", "1m"), ("-", "2d")]

    @pytest.mark.parametrize("text", ["2003-01-01+abcd", "tue+tue", "tue+", "tue+1d*2"])
    def test_invalid_duration(self, text):
        with pytest.raises(InvalidDuration):
            parse_expression(text)

    @pytest.mark.parametrize("text", ["2d", "tue/2", "", "2021-05-07*2"])
    def test_invalid_base(self, text):
        with pytest.raises(InvalidBaseToken):
            parse_expression(text)


class TestCalculateExpr:
    """Test evaluating expressions against a task."""

    @pytest.fixture
    def tags(self):
        task = Task.parse("create something due:2020-04-08 t:due-4 extra:2022-09-16", BASE)
        return TaskTagList.from_task(task)

    @pytest.mark.parametrize("expr,expected", [
        ("2021-05-07", date(2021, 5, 7)),
        ("2021-05-07+10d", date(2021, 5, 17)),
        ("2021-05-07+2w", date(2021, 5, 21)),
        ("2021-05-07-7d", date(2021, 4, 30)),
        ("2021-05-07-2m", date(2021, 3, 7)),
        ("2021-05-07+1y", date(2022, 5, 7)),
        ("2021-05-07+12d-2d", date(2021, 5, 17)),
        ("2021-05-07+12d-1w", date(2021, 5, 12)),
        ("today", date(2020, 3, 15)),
        ("yesterday+2d", date(2020, 3, 16)),
        ("first+1w", date(2020, 4, 8)),
        ("due+1d", date(2020, 4, 9)),
        ("t-1d", date(2020, 4, 3)),
        ("extra+1w", date(2022, 9, 23)),
        ("DUE", date(2020, 4, 8)),
    ])
    def test_valid(self, tags, expr, expected):
        assert calculate_expr(BASE, expr, tags) == expected

    @pytest.mark.parametrize("expr", ["2021-05-07*2", "2021-05-07+1t", "someday", "2021-02-30"])
    def test_invalid(self, tags, expr):
        with pytest.raises(DateExprError):
            calculate_expr(BASE, expr, tags)

    def test_bare_unit_fails(self, tags):
        with pytest.raises(InvalidRecurrenceUnit):
            calculate_expr(BASE, "due+w", tags)

    def test_resolved_tag_is_cached(self, tags):
        assert tags.tag_value("t") == Raw("due-4")
        calculate_expr(BASE, "t", tags)
        assert tags.tag_value("t") == Calc(date(2020, 4, 4))

    def test_without_tags(self):
        with pytest.raises(DateExprError):
            calculate_expr(BASE, "due+1d")

    def test_month_offsets_only_clamp(self):
        assert calculate_expr(BASE, "2020-01-31+1m-1m") == date(2020, 1, 29)
        assert calculate_expr(BASE, "2020-02-29+1y") == date(2021, 2, 28)

    @pytest.mark.parametrize("expr", ["today+9999y", "today+99999999d", "2020-01-01-2021y"])
    def test_out_of_range(self, expr):
        with pytest.raises(InvalidDuration):
            calculate_expr(BASE, expr)

    def test_out_of_range_tag(self):
        tags = TaskTagList.from_text("far due:99999999d", BASE)
        with pytest.raises(DateExprError):
            calculate_expr(BASE, "due+1d", tags)

    def test_base_forms(self):
        assert calculate_expr(BASE, "20+1d") == date(2020, 3, 21)
        assert calculate_expr(BASE, "04-01-1d") == date(2020, 3, 31)
        assert calculate_expr(BASE, "mon+1w") == date(2020, 3, 23)


class TestRecursion:
    """Test tags defined through other tags."""

    @staticmethod
    def chain(length):
        names = ["tag" + chr(ord('a') + i) for i in range(length)]
        tags = [TaskTag(names[0], raw_value="2020-01-01")]
        for prev, name in zip(names, names[1:]):
            tags.append(TaskTag(name, raw_value=f"{prev}+1d"))
        return names, TaskTagList(tags)

    def test_ten_references(self):
        names, tags = self.chain(10)
        assert calculate_expr(BASE, names[-1], tags) == date(2020, 1, 10)

    def test_eleven_references(self):
        names, tags = self.chain(11)
        with pytest.raises(RecursionOverflow):
            calculate_expr(BASE, names[-1], tags)

    def test_cycle(self):
        tags = TaskTagList([TaskTag("one", raw_value="two+1d"), TaskTag("two", raw_value="one+1d")])
        with pytest.raises(RecursionOverflow):
            calculate_expr(BASE, "one", tags)


class TestTaskTagList:
    """Test building tag lists."""

    def test_from_empty_text(self):
        tags = TaskTagList.from_text("", BASE)
        assert len(tags) == 1
        assert tags.tag_value("created") == Raw("2020-03-15")

    def test_from_text(self):
        tags = TaskTagList.from_text("house due:2015-08-12 was done:due+5 t:2015-07-30 .", BASE)
        assert len(tags) == 4
        assert tags.tag_value("due") == Raw("2015-08-12")
        assert tags.tag_value("done") == Raw("due+5")
        assert tags.tag_value("t") == Raw("2015-07-30")
        assert tags.tag_value("missing") is None

    def test_from_task_prefers_dates(self):
        task = Task.parse("2020-01-02 pay due:2020-02-01 t:due-1w", BASE)
        tags = TaskTagList.from_task(task)
        assert tags.tag_value("due") == Calc(date(2020, 2, 1))
        assert tags.tag_value("created") == Calc(date(2020, 1, 2))
        assert tags.tag_value("t") == Raw("due-1w")

    def test_set_unknown_tag_is_ignored(self):
        tags = TaskTagList.from_text("a b", BASE)
        tags.set_tag("due", date(2020, 1, 1))
        assert tags.tag_value("due") is None


class TestDoneTag:
    """Test resolving a custom tag by name."""

    @pytest.mark.parametrize("text", ["", "no done tag, just t:2023-09-11"])
    def test_missing(self, text):
        tags = TaskTagList.from_text(text, BASE)
        with pytest.raises(DateExprError):
            calculate_expr(BASE, "done", tags)

    @pytest.mark.parametrize("text,expected", [
        ("exists normal done:2023-06-24 tag", date(2023, 6, 24)),
        ("house due:2015-08-12 was done:due+5 t:2015-07-30 .", date(2015, 8, 17)),
    ])
    def test_found(self, text, expected):
        tags = TaskTagList.from_text(text, BASE)
        assert calculate_expr(BASE, "done", tags) == expected


class TestMainTags:
    """Test rewriting due: and t: in task text."""

    def test_unchanged(self):
        text = "exists normal due:2023-06-24 tag"
        tags = TaskTagList.from_text(text, BASE)
        assert calculate_main_tags(BASE, tags) is False
        assert update_tags_in_str(tags, text) == text

    def test_fixed(self):
        text = "house done:2015-08-12 was due:done-5 t:2015-07-30 ."
        tags = TaskTagList.from_text(text, BASE)
        assert calculate_main_tags(BASE, tags) is True
        assert update_tags_in_str(tags, text) == "house done:2015-08-12 was due:2015-08-07 t:2015-07-30 ."

    def test_resolve_text(self):
        base = date(2020, 7, 9)
        assert resolve_text(base, "pay rent due:fri+1w t:due-2d") == \
            "pay rent due:2020-07-17 t:2020-07-15"

    def test_resolve_text_error(self):
        with pytest.raises(DateExprError):
            resolve_text(BASE, "pay due:someday")
