"""
Recurrence steps for Todo CLI

This module parses todo.txt recurrence values (``rec:1w``, ``rec:+2m``) and
applies them to dates. The expression evaluator reuses the same steps for
its ``+N<unit>`` / ``-N<unit>`` offsets.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from .errors import InvalidRecurrenceUnit
from .utils.datetime import add_months, add_years


class RecurrenceType(Enum):
    """Units a recurrence step is measured in"""
    DAILY = "d"
    WEEKLY = "w"
    MONTHLY = "m"
    YEARLY = "y"


_STEP_RE = re.compile(r'^(\+?)(\d*)([a-zA-Z]?)$')


@dataclass
class Recurrence:
    """A single recurrence step, e.g. 2 weeks"""
    type: RecurrenceType
    count: int = 1
    strict: bool = False  # '+' prefix: recur from the due date, not from completion

    @classmethod
    def parse(cls, value: str) -> "Recurrence":
        """Parse a recurrence value like ``1w``, ``+3d`` or ``12m``

        Raises:
            InvalidRecurrenceUnit: The count is missing or the unit is unknown
        """
        match = _STEP_RE.match(value)
        if not match or not match.group(2):
            raise InvalidRecurrenceUnit(f"Invalid recurrence '{value}': count expected", value)
        unit = match.group(3).lower()
        try:
            rec_type = RecurrenceType(unit)
        except ValueError:
            raise InvalidRecurrenceUnit(f"Invalid recurrence '{value}': unknown unit '{unit}'", value)
        return cls(type=rec_type, count=int(match.group(2)), strict=bool(match.group(1)))

    def apply(self, from_date: date, subtract: bool = False) -> date:
        """Move ``from_date`` by this step, forwards or backwards"""
        if self.type == RecurrenceType.DAILY:
            days = self.count
        elif self.type == RecurrenceType.WEEKLY:
            days = self.count * 7
        elif self.type == RecurrenceType.MONTHLY:
            return add_months(from_date, self.count, subtract)
        else:
            return add_years(from_date, self.count, subtract)
        return from_date - timedelta(days=days) if subtract else from_date + timedelta(days=days)

    def __str__(self) -> str:
        prefix = '+' if self.strict else ''
        return f"{prefix}{self.count}{self.type.value}"
