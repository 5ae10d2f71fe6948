"""Read-only access to todo.txt files."""

import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from .todo import Task
from .utils.datetime import today

logger = logging.getLogger(__name__)


class Storage:
    """Loads the tasks of a todo.txt file."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def load(self, base: Optional[date] = None) -> List[Task]:
        """Parse every non-empty line of the file.

        Raises:
            FileNotFoundError: The file does not exist
        """
        base = base or today()
        tasks = []
        with open(self.path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.rstrip('\n')
                if line.strip():
                    tasks.append(Task.parse(line, base))
        logger.debug(f"Loaded {len(tasks)} tasks from {self.path}")
        return tasks
