"""Todo CLI - date expressions and typed tag filters for todo.txt task lists."""

__version__ = "0.2.0"
__author__ = "Todo CLI Team"

from .date_expr import (
    TaskTagList,
    calculate_expr,
    calculate_main_tags,
    update_tags_in_str,
)
from .errors import DateExprError
from .parser import human_to_date
from .query_engine import Filter, QueryEngine
from .todo import Task

__all__ = [
    "DateExprError",
    "Filter",
    "QueryEngine",
    "Task",
    "TaskTagList",
    "calculate_expr",
    "calculate_main_tags",
    "human_to_date",
    "update_tags_in_str",
    "__version__",
]
