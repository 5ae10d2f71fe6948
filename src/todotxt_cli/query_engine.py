"""
Tag Query Engine for Todo CLI

This module filters tasks by their tags. A filter is a ``;``-separated list
of rules that must all match; each rule is ``tag=cond1,cond2`` and matches
if any of its conditions does. A condition is a value or a ``low..high``
range, either end of which may be left open. ``none`` and ``any`` are
reserved values, and a ``-`` or ``!`` prefix negates a rule or a value.

Examples::

    due=..today           overdue or due today
    spent=1h..;pri=A,B    at least an hour spent, priority A or B
    -t                    no threshold date
    size=none..none       no size tag at all
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import yaml

from .todo import NO_PRIORITY, Task, str_to_priority
from .utils.datetime import today
from .values import (
    ValueType,
    str_match,
    str_to_date,
    value_type,
    values_compare,
    values_equal,
)

logger = logging.getLogger(__name__)

NONE_VALUES = ("none", "-")


def is_negative(value: str) -> bool:
    return value.startswith('-') or value.startswith('!')


def match_none(value: str) -> bool:
    return value in NONE_VALUES


def match_none_or_empty(value: str) -> bool:
    return value in NONE_VALUES or not value


@dataclass
class MatchContext:
    """Everything a condition needs besides the task itself"""
    task: Task
    id: int
    base: date
    use_regex: bool = False


def _compare_id(task_id: int, value: str, op: str) -> bool:
    if value == "any":
        return True
    if match_none_or_empty(value):
        return op == "=" or not value
    if not value.isdecimal():
        return False
    number = int(value)
    if op == "=":
        return task_id == number
    if op == "<=":
        return task_id <= number
    return task_id >= number


def _compare_dates(value: date, filter_value: str, op: str, base: date) -> bool:
    if filter_value == "any":
        return True
    if match_none_or_empty(filter_value):
        return op == "="
    other = str_to_date(filter_value, base)
    if other is None:
        return False
    if op == "=":
        return value == other
    if op == "<=":
        return value <= other
    return value >= other


class FilterCond(ABC):
    """A single condition of a rule"""

    @abstractmethod
    def matches(self, name: str, vtype: ValueType, ctx: MatchContext) -> bool:
        """Evaluate the condition for the tag ``name`` of a task"""
        pass


@dataclass
class One(FilterCond):
    """A single value: ``due=today``, ``pri=-A``, ``size=none``"""
    value: str

    def matches(self, name: str, vtype: ValueType, ctx: MatchContext) -> bool:
        task = ctx.task
        if name == "ID":
            return self._match_id(ctx.id)
        if name in ("pri", "priority"):
            return self._match_priority(task.priority)
        if name == "done":
            if not self.value or self.value == "any":
                return task.finished
            return match_none(self.value) and not task.finished
        if name in ("subj", "subject"):
            return self._match_subject(task.subject, ctx.use_regex)
        if name in ("@", "ctx", "context"):
            return self._match_list(task.contexts, ctx.use_regex)
        if name in ("+", "prj", "project"):
            return self._match_list(task.projects, ctx.use_regex)
        if name in ("#", "hashtag"):
            return self._match_list(task.hashtags, ctx.use_regex)
        if name in ("created", "create", "completed"):
            dt = task.create_date if name != "completed" else task.finish_date
            return self._match_date(dt, ctx.base)
        return self._match_tag(task.tags.get(name), vtype, ctx)

    def _split(self):
        negative = is_negative(self.value)
        return negative, self.value[1:] if negative else self.value

    def _match_id(self, task_id: int) -> bool:
        if match_none(self.value):
            return False
        negative, value = self._split()
        if value == "any":
            return not negative
        if value == "none":
            return negative
        equal = _compare_id(task_id, value, "=")
        return not equal if negative else equal

    def _match_priority(self, priority: int) -> bool:
        if match_none(self.value):
            return priority == NO_PRIORITY
        if self.value == "any":
            return priority != NO_PRIORITY
        negative, value = self._split()
        if value == "any":
            return not negative
        if value == "none":
            return negative
        wanted = str_to_priority(value)
        if wanted == NO_PRIORITY or priority == NO_PRIORITY:
            return False
        return (wanted != priority) if negative else (wanted == priority)

    def _match_subject(self, subject: str, use_regex: bool) -> bool:
        negative, value = self._split()
        if not use_regex and not value.startswith('*') and not value.endswith('*'):
            value = f"*{value}*"
        matched = str_match(value, subject, use_regex)
        return not matched if negative else matched

    def _match_list(self, values: List[str], use_regex: bool) -> bool:
        if match_none(self.value):
            return not values
        if self.value == "any":
            return bool(values)
        negative, pattern = self._split()
        if not values:
            return False
        for value in values:
            matched = str_match(pattern, value, use_regex)
            if matched == negative:
                return False
        return True

    def _match_date(self, dt: Optional[date], base: date) -> bool:
        if dt is None:
            return match_none(self.value)
        if match_none(self.value):
            return False
        if self.value == "any" or not self.value:
            return True
        negative, value = self._split()
        matched = _compare_dates(dt, value, "=", base)
        return not matched if negative else matched

    def _match_tag(self, tag_value: Optional[str], vtype: ValueType, ctx: MatchContext) -> bool:
        if tag_value is None:
            return match_none(self.value)
        if '*' in self.value:
            vtype = ValueType.STRING
        negative, value = self._split()
        if self.value == "-":
            return False
        if not value:
            return True
        if value == "any":
            return not negative
        if self.value == "none":
            return False
        if value == "none":
            return negative
        equal = values_equal(tag_value, value, vtype, ctx.base, ctx.use_regex)
        return not equal if negative else equal


@dataclass
class Range(FilterCond):
    """A range of values: ``due=2020-01-01..today``, ``spent=..2h``, ``id=none..none``"""
    low: str
    high: str

    def matches(self, name: str, vtype: ValueType, ctx: MatchContext) -> bool:
        task = ctx.task
        if name == "ID":
            return self._match_id(ctx.id)
        if name in ("pri", "priority"):
            return self._match_priority(task.priority)
        if name in ("created", "create", "completed"):
            dt = task.create_date if name != "completed" else task.finish_date
            return self._match_date(dt, ctx.base)
        if name in ("done", "subj", "subject", "@", "ctx", "context",
                    "+", "prj", "project", "#", "hashtag"):
            # Ranges make no sense for flags, text and lists
            return False
        return self._match_tag(task.tags.get(name), vtype, ctx)

    def _match_id(self, task_id: int) -> bool:
        low, high = self.low, self.high
        if match_none(low) and match_none(high):
            return False
        if match_none_or_empty(low):
            return _compare_id(task_id, high, "<=")
        if match_none_or_empty(high):
            return _compare_id(task_id, low, ">=")
        return _compare_id(task_id, low, ">=") and _compare_id(task_id, high, "<=")

    def _match_priority(self, priority: int) -> bool:
        low, high = self.low, self.high
        has_priority = priority != NO_PRIORITY
        if match_none(low) and match_none(high):
            return not has_priority
        if not low and not high:
            return has_priority
        # Priorities grow downwards: A=0 is the highest one
        if match_none_or_empty(low):
            upper = str_to_priority(high)
            in_range = upper != NO_PRIORITY and has_priority and priority <= upper
            return in_range or (not has_priority and bool(low))
        if match_none_or_empty(high):
            lower = str_to_priority(low)
            in_range = lower != NO_PRIORITY and has_priority and priority >= lower
            return in_range or (not has_priority and bool(high))
        lower, upper = str_to_priority(low), str_to_priority(high)
        if NO_PRIORITY in (lower, upper) or not has_priority:
            return False
        return lower <= priority <= upper

    def _match_date(self, dt: Optional[date], base: date) -> bool:
        low, high = self.low, self.high
        if dt is None:
            return match_none(low) or match_none(high)
        if match_none(low) and match_none(high):
            return False
        if match_none_or_empty(low):
            return _compare_dates(dt, high, "<=", base)
        if match_none_or_empty(high):
            return _compare_dates(dt, low, ">=", base)
        return _compare_dates(dt, high, "<=", base) and _compare_dates(dt, low, ">=", base)

    def _match_tag(self, tag_value: Optional[str], vtype: ValueType, ctx: MatchContext) -> bool:
        low, high = self.low, self.high
        if tag_value is None:
            return match_none(low) or match_none(high)
        if low == "none" and high == "none" and tag_value == "none":
            return True
        if match_none(low) and match_none(high):
            return False
        if match_none_or_empty(low):
            return values_compare(tag_value, high, vtype, ctx.base, less_eq=True)
        if match_none_or_empty(high):
            return values_compare(tag_value, low, vtype, ctx.base, less_eq=False)
        return (values_compare(tag_value, high, vtype, ctx.base, less_eq=True)
                and values_compare(tag_value, low, vtype, ctx.base, less_eq=False))


@dataclass
class FilterRule:
    """All conditions for one tag; any of them may match"""
    tag: str
    conditions: List[FilterCond] = field(default_factory=list)

    def matches(self, ctx: MatchContext) -> bool:
        negative = is_negative(self.tag)
        name = self.tag[1:] if negative else self.tag
        vtype = value_type(name, ctx.task.tags.get(name))
        matched = any(cond.matches(name, vtype, ctx) for cond in self.conditions)
        return not matched if negative else matched


@dataclass
class Filter:
    """A list of rules that must all match"""
    rules: List[FilterRule] = field(default_factory=list)
    use_regex: bool = False

    @classmethod
    def parse(cls, text: str, use_regex: bool = False) -> "Filter":
        """Build a filter from ``tag1=cond1,cond2;tag2=low..high``"""
        rules = []
        for rule_text in text.split(';'):
            if not rule_text:
                continue
            if '=' not in rule_text:
                # Only the tag name: the task must have the tag
                rules.append(FilterRule(rule_text, [One("any")]))
                continue
            tag, values = rule_text.split('=', 1)
            conditions: List[FilterCond] = []
            for value in values.split(','):
                if not value:
                    continue
                if '..' in value:
                    low, high = value.split('..', 1)
                    conditions.append(Range(low, high))
                else:
                    conditions.append(One(value))
            rules.append(FilterRule(tag, conditions))
        return cls(rules, use_regex)

    def matches(self, task: Task, task_id: int, base: date) -> bool:
        ctx = MatchContext(task, task_id, base, self.use_regex)
        return all(rule.matches(ctx) for rule in self.rules)

    def is_empty(self) -> bool:
        return not self.rules


class QueryEngine:
    """Main filter execution engine with saved filters"""

    def __init__(self, config_dir: Optional[str] = None, use_regex: bool = False):
        self.saved_queries: Dict[str, str] = {}
        self.use_regex = use_regex
        self.config_dir = os.path.expanduser(config_dir or "~/.todo")
        self.queries_file = os.path.join(self.config_dir, "saved_filters.yaml")
        self._load_saved_queries()

    def expand(self, query: str) -> str:
        """Replace a ``@name`` shortcut with the saved filter"""
        if not query.startswith('@'):
            return query
        saved_name = query[1:]
        if saved_name not in self.saved_queries:
            raise KeyError(f"Saved filter '{saved_name}' not found")
        return self.saved_queries[saved_name]

    def search(self, tasks: List[Task], query: str, base: Optional[date] = None) -> List[Task]:
        """Return tasks matching the filter, in their original order

        A task's ID is its 1-based position in ``tasks``.
        """
        if not query.strip():
            return list(tasks)
        flt = Filter.parse(self.expand(query), self.use_regex)
        base = base or today()
        return [task for idx, task in enumerate(tasks, 1) if flt.matches(task, idx, base)]

    def save_query(self, name: str, query: str):
        """Save a filter for later use"""
        self.saved_queries[name] = query
        self._save_queries_to_file()

    def delete_query(self, name: str) -> bool:
        """Delete a saved filter"""
        if name in self.saved_queries:
            del self.saved_queries[name]
            self._save_queries_to_file()
            return True
        return False

    def list_saved_queries(self) -> Dict[str, str]:
        """List all saved filters"""
        return self.saved_queries.copy()

    def _load_saved_queries(self):
        if not os.path.exists(self.queries_file):
            return
        try:
            with open(self.queries_file, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load saved filters from {self.queries_file}: {e}")
            return
        if data and isinstance(data, dict):
            self.saved_queries = {str(k): str(v) for k, v in data.items()}

    def _save_queries_to_file(self):
        os.makedirs(self.config_dir, exist_ok=True)
        with open(self.queries_file, 'w') as f:
            yaml.safe_dump(self.saved_queries, f, default_flow_style=False)
