"""Human readable date parser for Todo CLI.

Converts a single date token such as ``tomorrow``, ``fri``, ``15``, ``07-04``
or ``2w3d`` into an absolute date relative to a base date.
"""

import logging
import re
from datetime import date, timedelta
from typing import Callable, Dict, Optional

from .errors import (
    EmptyExpression,
    InvalidDate,
    InvalidDayOfMonth,
    NoChange,
)
from .utils.datetime import (
    MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY,
    add_months,
    add_years,
    closest_weekday,
    days_in_month,
    first_of_next_month,
    format_date,
    last_of_month,
    next_weekday,
)
from .todo import replace_word

logger = logging.getLogger(__name__)

DEFAULT_SOON_DAYS = 7

_DAY_OF_MONTH_RE = re.compile(r"^\d+$")
_DASHED_DIGITS_RE = re.compile(r"^[\d-]+$")
_DURATION_RE = re.compile(r"^[\ddwmy]+$")

WEEKDAY_NAMES: Dict[str, int] = {
    "mo": MONDAY, "mon": MONDAY, "monday": MONDAY,
    "tu": TUESDAY, "tue": TUESDAY, "tuesday": TUESDAY,
    "we": WEDNESDAY, "wed": WEDNESDAY, "wednesday": WEDNESDAY,
    "th": THURSDAY, "thu": THURSDAY, "thursday": THURSDAY,
    "fr": FRIDAY, "fri": FRIDAY, "friday": FRIDAY,
    "sa": SATURDAY, "sat": SATURDAY, "saturday": SATURDAY,
    "su": SUNDAY, "sun": SUNDAY, "sunday": SUNDAY,
}


class SmartDateParser:
    """Resolve one date token against a base date.

    Tokens are classified by their characters, in this order:

    * digits only: a day of month (``15``)
    * digits and dashes: ``MM-DD``, or an absolute date that needs no
      resolving (``NoChange`` is raised so the caller can parse it)
    * digits and ``d/w/m/y``: an offset from the base date (``2w3d``)
    * anything else: a keyword (``today``, ``next-fri``, ``last``)
    """

    def __init__(self, soon_days: int = DEFAULT_SOON_DAYS):
        self.soon_days = soon_days
        self.keywords: Dict[str, Callable[[date], date]] = {
            'today': lambda base: base,
            'yesterday': lambda base: base - timedelta(days=1),
            'tomorrow': lambda base: base + timedelta(days=1),
            'tm': lambda base: base + timedelta(days=1),
            'tmr': lambda base: base + timedelta(days=1),
            'soon': lambda base: base + timedelta(days=self.soon_days),
            'first': first_of_next_month,
            'last': last_of_month,
        }

    def parse(self, base: date, human: str) -> date:
        """Convert a date token to an absolute date.

        Args:
            base: Date the token is relative to
            human: Token without a leading sign

        Returns:
            The resolved date

        Raises:
            NoChange: The token is an absolute date already
            DateExprError: The token is invalid
        """
        if not human:
            raise EmptyExpression("empty date", human)
        try:
            if _DAY_OF_MONTH_RE.match(human):
                return self._day_of_month(base, human)
            if _DASHED_DIGITS_RE.match(human):
                if human.count('-') == 1:
                    return self._month_day(base, human)
                raise NoChange("no change", human)
            if _DURATION_RE.match(human):
                return self._offset(base, human)
            return self._keyword(base, human)
        except (OverflowError, ValueError) as e:
            raise InvalidDate(f"date out of range '{human}': {e}", human) from e

    def _day_of_month(self, base: date, human: str) -> date:
        num = int(human)
        if num == 0 or num > 31:
            raise InvalidDayOfMonth(f"Day number too big: {num}", human)

        year, month = base.year, base.month
        base_days = days_in_month(year, month)
        if base.day >= num:
            if month == 12:
                year, month = year + 1, 1
            else:
                month += 1
        target_days = days_in_month(year, month)
        # Asking for the last day of the base month means the last day of the target one
        if num >= target_days or num >= base_days:
            return date(year, month, target_days)
        return date(year, month, num)

    def _month_day(self, base: date, human: str) -> date:
        month_str, day_str = human.split('-')
        if not month_str.isdecimal():
            raise InvalidDate(f"invalid month number: {month_str}", human)
        if not day_str.isdecimal():
            raise InvalidDate(f"invalid day number: {day_str}", human)
        month, day = int(month_str), int(day_str)
        if month < 1 or month > 12:
            raise InvalidDate(f"month number must be between 1 and 12 ({month})", human)
        if day < 1 or day > 31:
            raise InvalidDate(f"day number must be between 1 and 31 ({day})", human)

        year = base.year
        result = date(year, month, min(day, days_in_month(year, month)))
        if result < base:
            year += 1
            result = date(year, month, min(day, days_in_month(year, month)))
        return result

    def _offset(self, base: date, human: str) -> date:
        num = 0
        result = base
        for char in human:
            if char.isdecimal():
                num = num * 10 + int(char)
                continue
            if num == 0:
                continue
            if char == 'd':
                result += timedelta(days=num)
            elif char == 'w':
                result += timedelta(weeks=num)
            elif char == 'm':
                result = add_months(result, num, keep_month_end=True)
            elif char == 'y':
                result = add_years(result, num, keep_month_end=True)
            num = 0

        if result == base:
            raise InvalidDate(f"invalid date '{human}'", human)
        return result

    def _keyword(self, base: date, human: str) -> date:
        word = human.replace('-', '').replace('_', '').lower()
        if word in self.keywords:
            return self.keywords[word](base)
        if word in WEEKDAY_NAMES:
            return closest_weekday(base, WEEKDAY_NAMES[word])
        if word.startswith('next') and word[4:] in WEEKDAY_NAMES:
            return next_weekday(base, WEEKDAY_NAMES[word[4:]])
        raise InvalidDate(f"invalid date '{human}'", human)


def human_to_date(base: date, human: str, soon_days: int = DEFAULT_SOON_DAYS) -> date:
    """Resolve a single date token against ``base``."""
    return SmartDateParser(soon_days).parse(base, human)


def fix_date(base: date, text: str, look_for: str,
             soon_days: int = DEFAULT_SOON_DAYS) -> Optional[str]:
    """Replace a human readable date in a task text with an absolute one.

    Looks for the first word of ``text`` that starts with ``look_for``
    (e.g. ``due:``) and resolves the rest of that word.

    Args:
        base: Date the value is relative to
        text: Task text
        look_for: Prefix of the word to fix, including the colon

    Returns:
        The updated text, or None if there is nothing to fix
    """
    if not text or not look_for:
        return None
    if text.startswith(look_for):
        start = 0
    else:
        pos = text.find(' ' + look_for)
        if pos == -1:
            return None
        start = pos + 1

    rest = text[start + len(look_for):]
    human = rest.split(' ', 1)[0]
    try:
        new_date = human_to_date(base, human, soon_days)
    except NoChange:
        return None
    except (EmptyExpression, InvalidDate, InvalidDayOfMonth) as e:
        logger.warning(f"invalid {look_for.rstrip(':')} date '{human}': {e}")
        return None

    return replace_word(text, look_for + human, look_for + format_date(new_date))
