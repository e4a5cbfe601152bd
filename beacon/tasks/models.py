"""Task and dependency records shared by the planning components."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

# Fibonacci-like effort scale.
DIFFICULTY_POINTS = (1, 2, 3, 5, 8)

DateValue = Union[str, datetime, None]


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"


@dataclass(frozen=True)
class DependencyEdge:
    """Finish-to-start edge: task_id cannot start before depends_on_task_id finishes."""

    task_id: str
    depends_on_task_id: str

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.depends_on_task_id} -> {self.task_id}"


@dataclass(frozen=True)
class TimelineTask:
    """Task fields needed for timeline ordering."""

    id: str
    due_at: DateValue = None
    created_at: DateValue = None


@dataclass(frozen=True)
class TaskForAssignment:
    """Task fields needed by the assignment engine."""

    id: str
    status: TaskStatus
    difficulty_points: int
    assignee_user_id: Optional[str] = None

    @property
    def is_eligible(self) -> bool:
        """Only unassigned todo tasks can be assigned."""
        return self.status == TaskStatus.TODO and self.assignee_user_id is None
