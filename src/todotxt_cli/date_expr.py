"""
Date expressions for Todo CLI

An expression is a base date followed by any number of signed offsets:
``2021-05-07+2w``, ``fri-1d``, ``due-5``, ``t+1m-2d``. A purely alphabetic
base is first looked up among the task's tags, so a tag can be defined in
terms of another one (``due:t+1w``). Tag values are resolved lazily and the
result is cached in the task's tag list.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

from .errors import (
    EmptyExpression,
    InvalidBaseToken,
    InvalidDate,
    InvalidDuration,
    NoChange,
    RecursionOverflow,
)
from .parser import DEFAULT_SOON_DAYS, human_to_date
from .recurring import Recurrence
from .todo import Task, extract_tags, replace_word
from .utils.datetime import format_date, parse_date

logger = logging.getLogger(__name__)

MAX_RECURSION_DEPTH = 10
MAIN_TAGS = ("due", "t")

# Base recognizers, tried in order. Each one must be followed by a sign or the end.
BASE_PATTERNS = (
    re.compile(r'^[a-zA-Z]+(?=[+-]|$)'),          # keyword or tag name
    re.compile(r'^\d{4}-\d{2}-\d{2}(?=[+-]|$)'),  # YYYY-MM-DD
    re.compile(r'^\d{2}-\d{2}(?=[+-]|$)'),        # MM-DD
    re.compile(r'^\d{1,2}(?=[+-]|$)'),            # day of month
)
DURATION_PATTERN = re.compile(r'^(?:\d+[dwmyDWMY]?|[dwmyDWMY])(?=[+-]|$)')
_ALPHA_RE = re.compile(r'^[a-zA-Z]+$')


@dataclass
class ExprItem:
    """One signed component of an expression"""
    sign: str
    token: str


@dataclass
class TaskTag:
    """A tag of a task: raw text until it is resolved to a date"""
    name: str
    raw_value: Optional[str] = None
    resolved_date: Optional[date] = None


@dataclass(frozen=True)
class Raw:
    value: str


@dataclass(frozen=True)
class Calc:
    value: date


TagValue = Union[Raw, Calc, None]


@dataclass
class TaskTagList:
    """Tags of one task, used to resolve expressions that refer to them.

    The list is built for a single operation on a single task and
    memoizes every tag resolved while evaluating expressions.
    """
    tags: List[TaskTag] = field(default_factory=list)

    @classmethod
    def from_task(cls, task: Task) -> "TaskTagList":
        """Build the list from a parsed task.

        Structured dates come first so they take precedence over the raw
        tag text with the same name.
        """
        tags = []
        if task.due_date:
            tags.append(TaskTag("due", resolved_date=task.due_date))
        if task.create_date:
            tags.append(TaskTag("created", resolved_date=task.create_date))
        if task.threshold_date:
            tags.append(TaskTag("t", resolved_date=task.threshold_date))
        for name, value in task.tags.items():
            tags.append(TaskTag(name, raw_value=value))
        return cls(tags)

    @classmethod
    def from_text(cls, text: str, base: date) -> "TaskTagList":
        """Build the list from free task text; ``created`` is set to ``base``."""
        tags = [TaskTag(name, raw_value=value) for name, value in extract_tags(text).items()]
        tags.append(TaskTag("created", raw_value=format_date(base)))
        return cls(tags)

    def _find(self, name: str) -> Optional[TaskTag]:
        for tag in self.tags:
            if tag.name == name:
                return tag
        return None

    def set_tag(self, name: str, value: date) -> None:
        tag = self._find(name)
        if tag is not None:
            tag.resolved_date = value

    def tag_value(self, name: str) -> TagValue:
        tag = self._find(name)
        if tag is None:
            return None
        if tag.resolved_date is not None:
            return Calc(tag.resolved_date)
        if tag.raw_value is not None:
            return Raw(tag.raw_value)
        return None

    def __len__(self) -> int:
        return len(self.tags)

    def __iter__(self):
        return iter(self.tags)


def _match_prefix(pattern, text: str) -> Optional[str]:
    match = pattern.match(text)
    return match.group(0) if match else None


def parse_base(text: str) -> Optional[str]:
    """Return the base date token at the start of ``text``, if any"""
    for pattern in BASE_PATTERNS:
        token = _match_prefix(pattern, text)
        if token:
            return token
    return None


def parse_duration(text: str) -> Optional[str]:
    """Return the offset token at the start of ``text``, if any"""
    return _match_prefix(DURATION_PATTERN, text)


def parse_expression(expr: str) -> List[ExprItem]:
    """Split an expression into its base token and signed offsets

    Raises:
        InvalidBaseToken: The expression does not start with a date
        InvalidDuration: An offset is malformed
    """
    base = parse_base(expr)
    if base is None:
        raise InvalidBaseToken(f"Failed to parse base date: '{expr}'", expr)

    items = [ExprItem('+', base)]
    rest = expr[len(base):]
    while rest:
        if len(rest) < 2:
            raise InvalidDuration(f"Incomplete expression: '{expr}'", rest)
        sign = rest[0]
        if sign not in '+-':
            raise InvalidDuration(f"Invalid character '{sign}'", rest)
        rest = rest[1:]
        token = parse_duration(rest)
        if token is None:
            raise InvalidDuration(f"Invalid duration: '{rest}'", rest)
        items.append(ExprItem(sign, token))
        rest = rest[len(token):]
    return items


def parse_abs_date(base: date, token: str, soon_days: int = DEFAULT_SOON_DAYS) -> date:
    """Resolve a symbolic token, falling back to a literal YYYY-MM-DD date"""
    try:
        return human_to_date(base, token, soon_days)
    except NoChange:
        parsed = parse_date(token)
        if parsed is None:
            raise InvalidDate(f"Invalid date [{token}]", token)
        return parsed


class ExpressionEvaluator:
    """Evaluates expressions against a base date and a task's tags."""

    def __init__(self, tags: Optional[TaskTagList] = None,
                 soon_days: int = DEFAULT_SOON_DAYS):
        self.tags = tags if tags is not None else TaskTagList()
        self.soon_days = soon_days

    def evaluate(self, base: date, expr: str) -> date:
        """Resolve an expression to an absolute date

        Raises:
            DateExprError: The expression is invalid or a tag chain is too deep
        """
        return self._evaluate(base, expr, 0)

    def _evaluate(self, base: date, expr: str, depth: int) -> date:
        if depth > MAX_RECURSION_DEPTH:
            raise RecursionOverflow(f"Recursion stack overflow: '{expr}'", expr)
        if not expr:
            raise EmptyExpression("Empty expression", expr)

        items = parse_expression(expr)
        result = self._resolve_base(base, items[0].token, depth)
        for item in items[1:]:
            step_str = item.token + 'd' if item.token.isdecimal() else item.token
            step = Recurrence.parse(step_str)
            try:
                result = step.apply(result, subtract=item.sign == '-')
            except (OverflowError, ValueError) as e:
                raise InvalidDuration(f"Date out of range: '{item.sign}{item.token}'", item.token) from e
        return result

    def _resolve_base(self, base: date, token: str, depth: int) -> date:
        if not _ALPHA_RE.match(token):
            return parse_abs_date(base, token, self.soon_days)

        name = token.lower()
        value = self.tags.tag_value(name)
        if value is None:
            return parse_abs_date(base, token, self.soon_days)
        if isinstance(value, Calc):
            return value.value

        logger.debug(f"Resolving tag '{name}' = '{value.value}' (depth {depth + 1})")
        resolved = self._evaluate(base, value.value, depth + 1)
        self.tags.set_tag(name, resolved)
        return resolved


def calculate_expr(base: date, expr: str, tags: Optional[TaskTagList] = None,
                   soon_days: int = DEFAULT_SOON_DAYS) -> date:
    """Resolve a date expression to an absolute date"""
    return ExpressionEvaluator(tags, soon_days).evaluate(base, expr)


def calculate_main_tags(base: date, tags: TaskTagList,
                        soon_days: int = DEFAULT_SOON_DAYS) -> bool:
    """Resolve raw ``due`` and ``t`` values to dates

    Returns:
        True if any of them changed, i.e. the task text must be rewritten
    """
    evaluator = ExpressionEvaluator(tags, soon_days)
    changed = False
    for name in MAIN_TAGS:
        value = tags.tag_value(name)
        if not isinstance(value, Raw):
            continue
        resolved = evaluator.evaluate(base, value.value)
        if format_date(resolved) != value.value:
            tags.set_tag(name, resolved)
            changed = True
    return changed


def update_tags_in_str(tags: TaskTagList, text: str) -> str:
    """Replace resolved ``due:``/``t:`` values in a task text"""
    for tag in tags:
        if tag.name not in MAIN_TAGS:
            continue
        if tag.raw_value is None or tag.resolved_date is None:
            continue
        old = f"{tag.name}:{tag.raw_value}"
        new = f"{tag.name}:{format_date(tag.resolved_date)}"
        text = replace_word(text, old, new)
    return text


def resolve_text(base: date, text: str, soon_days: int = DEFAULT_SOON_DAYS) -> str:
    """Return ``text`` with expressions in ``due:`` and ``t:`` replaced by dates

    Raises:
        DateExprError: A value cannot be resolved
    """
    tags = TaskTagList.from_text(text, base)
    if calculate_main_tags(base, tags, soon_days):
        return update_tags_in_str(tags, text)
    return text

