"""todo.txt task model for the Todo CLI application."""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from .utils.datetime import format_date, parse_date

NO_PRIORITY = 26

_PRIORITY_RE = re.compile(r'^\(([A-Z])\)$')
_TAG_RE = re.compile(r'^([^\s:]+):(\S+)$')


def str_to_priority(value: str) -> int:
    """Convert a priority letter to its number (A=0 .. Z=25)."""
    if len(value) != 1 or not value.isalpha():
        return NO_PRIORITY
    letter = value.upper()
    if not 'A' <= letter <= 'Z':
        return NO_PRIORITY
    return ord(letter) - ord('A')


def priority_to_str(priority: int) -> str:
    if priority >= NO_PRIORITY:
        return ""
    return chr(ord('A') + priority)


def extract_tags(text: str) -> Dict[str, str]:
    """Collect ``key:value`` words of a task text.

    URLs (``http://...``) are not tags. A repeated key keeps the last value.
    """
    tags: Dict[str, str] = {}
    for word in text.split():
        match = _TAG_RE.match(word)
        if not match or match.group(2).startswith('//'):
            continue
        tags[match.group(1)] = match.group(2)
    return tags


def replace_word(text: str, old: str, new: str) -> str:
    """Replace the first whitespace delimited occurrence of ``old``."""
    pattern = re.compile(r'(?<!\S)' + re.escape(old) + r'(?!\S)')
    return pattern.sub(lambda _: new, text, count=1)


@dataclass
class Task:
    """A single todo.txt line."""

    subject: str
    priority: int = NO_PRIORITY
    finished: bool = False
    finish_date: Optional[date] = None
    create_date: Optional[date] = None

    # Extracted from the subject
    contexts: List[str] = field(default_factory=list)   # @home
    projects: List[str] = field(default_factory=list)   # +garden
    hashtags: List[str] = field(default_factory=list)   # #idea
    tags: Dict[str, str] = field(default_factory=dict)  # due:2020-01-01

    due_date: Optional[date] = None
    threshold_date: Optional[date] = None
    recurrence: Optional[str] = None

    def __post_init__(self):
        """Extract metadata from the subject."""
        words = self.subject.split()
        self.contexts = [w[1:] for w in words if w.startswith('@') and len(w) > 1]
        self.projects = [w[1:] for w in words if w.startswith('+') and len(w) > 1]
        self.hashtags = [w[1:] for w in words if w.startswith('#') and len(w) > 1]
        self.tags = extract_tags(self.subject)
        if 'due' in self.tags:
            self.due_date = parse_date(self.tags['due'])
        if 't' in self.tags:
            self.threshold_date = parse_date(self.tags['t'])
        self.recurrence = self.tags.get('rec')

    @classmethod
    def parse(cls, line: str, base: Optional[date] = None) -> "Task":
        """Parse a todo.txt line.

        Args:
            line: The raw line
            base: Completion date for a finished task that has none

        Returns:
            The parsed task
        """
        words = line.strip().split(' ')
        finished = False
        finish_date = None
        create_date = None
        priority = NO_PRIORITY

        if words and words[0] == 'x':
            finished = True
            words = words[1:]
        if words:
            match = _PRIORITY_RE.match(words[0])
            if match:
                priority = str_to_priority(match.group(1))
                words = words[1:]
        if finished and words and parse_date(words[0]):
            finish_date = parse_date(words[0])
            words = words[1:]
        if words and parse_date(words[0]):
            create_date = parse_date(words[0])
            words = words[1:]
        if finished and finish_date is None:
            finish_date = base

        return cls(
            subject=' '.join(words),
            priority=priority,
            finished=finished,
            finish_date=finish_date,
            create_date=create_date,
        )

    def __str__(self) -> str:
        parts = []
        if self.finished:
            parts.append('x')
        if self.priority < NO_PRIORITY:
            parts.append(f"({priority_to_str(self.priority)})")
        if self.finished and self.finish_date:
            parts.append(format_date(self.finish_date))
        if self.create_date:
            parts.append(format_date(self.create_date))
        parts.append(self.subject)
        return ' '.join(parts)
