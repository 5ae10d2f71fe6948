"""Exceptions raised while resolving date tokens and expressions."""

from typing import Optional


class DateExprError(Exception):
    """Base exception for date token and expression evaluation."""

    def __init__(self, message: str, token: Optional[str] = None):
        self.token = token
        super().__init__(message)


class NoChange(DateExprError):
    """The token is already an absolute date; nothing to resolve."""
    pass


class EmptyExpression(DateExprError):
    """Empty date token or expression."""
    pass


class InvalidBaseToken(DateExprError):
    """Expression does not start with a recognizable date."""
    pass


class InvalidDuration(DateExprError):
    """Malformed offset token in an expression."""
    pass


class InvalidDate(DateExprError):
    """Unknown keyword or unparseable literal date."""
    pass


class InvalidDayOfMonth(DateExprError):
    """Day-of-month token is 0 or greater than 31."""
    pass


class InvalidRecurrenceUnit(DateExprError):
    """Recurrence step with a missing count or unknown unit."""
    pass


class RecursionOverflow(DateExprError):
    """Chain of tag references is too deep (or cyclic)."""
    pass
