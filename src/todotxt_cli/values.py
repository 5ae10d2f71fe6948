"""Typed tag values for filtering.

Tag values are plain strings. This module guesses what a value means (a
date, a duration, a byte size, a time of day, a number or just text) from
the tag name or from the value itself, and compares values accordingly.
Values are parsed on every comparison and never cached: the text of a tag
can change between two filter passes.
"""

import logging
import re
from datetime import date
from enum import Enum
from typing import Optional, Tuple

from .date_expr import calculate_expr
from .errors import DateExprError
from .parser import human_to_date
from .utils.datetime import format_date, parse_date

logger = logging.getLogger(__name__)

KB = 1024
MB = KB * 1024
GB = MB * 1024
TB = GB * 1024
PB = TB * 1024
EB = PB * 1024

SEC_IN_MINUTE = 60
SEC_IN_HOUR = SEC_IN_MINUTE * 60
SEC_IN_DAY = SEC_IN_HOUR * 24
SEC_IN_WEEK = SEC_IN_DAY * 7

# Longest suffixes first: "mib" must win over "b" and "m"
BYTE_SUFFIXES: Tuple[Tuple[str, int], ...] = (
    ("eib", EB), ("eb", EB), ("e", EB),
    ("pib", PB), ("pb", PB), ("p", PB),
    ("tib", TB), ("tb", TB), ("t", TB),
    ("gib", GB), ("gb", GB), ("g", GB),
    ("mib", MB), ("mb", MB), ("m", MB),
    ("kib", KB), ("kb", KB), ("k", KB),
)

DURATION_UNITS = {
    "w": SEC_IN_WEEK,
    "d": SEC_IN_DAY,
    "h": SEC_IN_HOUR,
    "m": SEC_IN_MINUTE,
    "s": 1,
    "": 1,
}

DATE_TAGS = ("started", "finished", "completed")
STR_TAGS = ("pri", "priority", "@", "ctx", "context", "+", "prj", "project", "proj", "subj", "subject")
INT_TAGS = ("ID", "done")


class ValueType(Enum):
    """How values of a tag are compared"""
    UNKNOWN = "unknown"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    DATE = "date"
    TIME = "time"
    DURATION = "duration"
    SIZE = "size"


# Value shapes, tried in order. Compiled once.
VALUE_PATTERNS: Tuple[Tuple[ValueType, "re.Pattern"], ...] = (
    (ValueType.INTEGER, re.compile(r'^[+-]?\d+$')),
    (ValueType.FLOAT, re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)(e[+-]?\d+)?$')),
    (ValueType.DATE, re.compile(r'^\d\d\d\d-\d\d-\d\d$')),
    (ValueType.DURATION, re.compile(r'^(\d+w)?(\d+d)?(\d+h)?(\d+m)?(\d+s)?$')),
    (ValueType.SIZE, re.compile(r'^(\d+([ptgmk]i?b?)|(\d+b))$')),
    (ValueType.TIME, re.compile(r'^\d{3,4}(pm|am)$')),
)
_DURATION_PART_RE = re.compile(r'(\d+)(\D*)')


def type_by_tag(tag: str) -> ValueType:
    """Guess the value type from the tag name"""
    if tag.endswith("_time"):
        return ValueType.TIME
    if tag.endswith("_date") or tag in ("due", "t"):
        return ValueType.DATE
    if tag == "spent" or tag.endswith("_dur") or tag.endswith("_duration"):
        return ValueType.DURATION
    if tag.endswith("_size") or tag.endswith("_sz"):
        return ValueType.SIZE
    if tag in DATE_TAGS:
        return ValueType.DATE
    if tag in STR_TAGS or tag.startswith('#'):
        return ValueType.STRING
    if tag in INT_TAGS:
        return ValueType.INTEGER
    return ValueType.UNKNOWN


def type_by_value(value: Optional[str]) -> ValueType:
    """Guess the value type from its shape"""
    if value is None:
        return ValueType.STRING
    lowered = value.lower()
    for value_type, pattern in VALUE_PATTERNS:
        if pattern.match(lowered):
            return value_type
    return ValueType.STRING


def value_type(tag: str, value: Optional[str]) -> ValueType:
    """Type of a tag: by name first, then by the value"""
    if value is None:
        return ValueType.STRING
    by_tag = type_by_tag(tag)
    if by_tag != ValueType.UNKNOWN:
        return by_tag
    return type_by_value(value)


def str_to_bytes(value: str) -> Optional[int]:
    """Convert a size like ``5k``, ``2MiB`` or ``4789`` to bytes"""
    lowered = value.lower()
    for suffix, multiplier in BYTE_SUFFIXES:
        if lowered.endswith(suffix):
            number = lowered[:-len(suffix)]
            if not number.isdecimal():
                return None
            return int(number) * multiplier
    return int(value) if value.isdecimal() else None


def str_to_duration(value: str) -> Optional[int]:
    """Convert a duration like ``1d12h`` or ``-1m5s`` to seconds"""
    text = value.lower()
    sign = 1
    if text.startswith('-'):
        sign = -1
        text = text.lstrip('-')

    total = 0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART_RE.match(text, pos)
        if not match:
            return None
        unit = match.group(2)
        if unit not in DURATION_UNITS:
            return None
        total += int(match.group(1)) * DURATION_UNITS[unit]
        pos = match.end()
    return total * sign


def str_to_time(value: str) -> Optional[int]:
    """Convert a time of day to its HHMM number (``1011pm`` -> 2211)"""
    text = value.lower()
    if text.isdecimal():
        if len(text) < 3:
            return None
        number = int(text)
        hours, minutes = divmod(number, 100)
        if hours > 23 or minutes > 59:
            return None
        return number

    digits = text.rstrip('apm')
    suffix = text[len(digits):]
    if not digits.isdecimal() or suffix not in ("am", "pm"):
        return None
    number = int(digits)
    hours, minutes = divmod(number, 100)
    if hours > 12 or hours == 0 or minutes > 59:
        return None
    if 1200 <= number <= 1259 and suffix == "am":
        number -= 1200
    if number < 1200 and suffix == "pm":
        number += 1200
    return number


def str_to_date(value: str, base: date) -> Optional[date]:
    """Resolve a filter operand to a date.

    Accepts a date token (``tomorrow``, ``2w``), a YYYY-MM-DD date or a
    full expression (``today-3d``).
    """
    try:
        return human_to_date(base, value)
    except DateExprError:
        pass
    parsed = parse_date(value)
    if parsed is not None:
        return parsed
    try:
        return calculate_expr(base, value)
    except DateExprError as e:
        logger.debug(f"Not a date '{value}': {e}")
        return None


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def _to_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        return None


def str_match(pattern: str, value: str, use_regex: bool = False) -> bool:
    """Case-insensitive string match with ``*`` wildcards or a regex"""
    if use_regex:
        try:
            return re.search(pattern, value, re.IGNORECASE) is not None
        except re.error as e:
            logger.warning(f"Invalid regex '{pattern}': {e}")
            return False

    # Only a leading or trailing '*' is a wildcard; '?' and '[' match literally
    pattern = pattern.lower()
    value = value.lower()
    left = pattern.startswith('*')
    right = pattern.endswith('*')
    core = pattern.strip('*')
    if left and right:
        return core in value
    if left:
        return value.endswith(core)
    if right:
        return value.startswith(core)
    return pattern == value


def _parse_pair(task_value: str, filter_value: str, vtype: ValueType, base: date):
    if vtype == ValueType.DATE:
        return str_to_date(task_value, base), str_to_date(filter_value, base)
    if vtype == ValueType.SIZE:
        return str_to_bytes(task_value), str_to_bytes(filter_value)
    if vtype == ValueType.DURATION:
        return str_to_duration(task_value), str_to_duration(filter_value)
    if vtype == ValueType.TIME:
        return str_to_time(task_value), str_to_time(filter_value)
    if vtype == ValueType.INTEGER:
        return _to_int(task_value), _to_int(filter_value)
    if vtype == ValueType.FLOAT:
        return _to_float(task_value), _to_float(filter_value)
    return task_value, filter_value


def values_equal(task_value: str, filter_value: str, vtype: ValueType,
                 base: date, use_regex: bool = False) -> bool:
    """Compare a task's tag value with a filter operand for equality"""
    if vtype == ValueType.DATE:
        # The filter side may be relative ("tomorrow"); the task side is compared as written
        resolved = str_to_date(filter_value, base)
        expected = format_date(resolved) if resolved is not None else filter_value
        return task_value == expected
    if vtype in (ValueType.STRING, ValueType.UNKNOWN):
        return str_match(filter_value, task_value, use_regex)

    left, right = _parse_pair(task_value, filter_value, vtype, base)
    if left is None or right is None:
        return False
    return left == right


def values_compare(task_value: str, filter_value: str, vtype: ValueType,
                   base: date, less_eq: bool) -> bool:
    """Check ``task_value <= filter_value`` (or ``>=`` if not ``less_eq``)"""
    if vtype == ValueType.UNKNOWN:
        return False
    left, right = _parse_pair(task_value, filter_value, vtype, base)
    if left is None or right is None:
        return False
    return left <= right if less_eq else left >= right
