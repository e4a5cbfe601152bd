"""Timeline placement for board and timeline views.

Orders tasks by dependency topology and buckets them into coarse phases.
This layer backs read-only views, so it tolerates graphs that would fail
strict validation: unknown edges are ignored and tasks caught in a cycle are
appended at the end instead of raising.
"""

import heapq
import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ..tasks.models import DateValue, DependencyEdge, TimelineTask

logger = logging.getLogger(__name__)


class TimelinePhase(str, Enum):
    """Coarse position of a task in dependency order."""

    BEGINNING = "beginning"
    MIDDLE = "middle"
    END = "end"


class DueDatePlacement(str, Enum):
    """Position of a due date inside the project window."""

    EARLY = "early"
    MID = "mid"
    LATE = "late"
    UNSCHEDULED = "unscheduled"


@dataclass(frozen=True)
class TimelinePlacement:
    """Where a single task sits in the ordered timeline."""

    phase: TimelinePhase
    sequence_index: int
    total_tasks: int


def parse_timestamp(value: DateValue) -> Optional[float]:
    """Convert an ISO-8601 string or datetime to a POSIX timestamp.

    Naive values and date-only strings are read as UTC. Returns None for
    missing or unparseable input.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _sort_key(task: TimelineTask) -> tuple[float, float, str]:
    """Due date, then creation date (missing sorts last), then id."""
    due = parse_timestamp(task.due_at)
    created = parse_timestamp(task.created_at)
    return (
        math.inf if due is None else due,
        math.inf if created is None else created,
        task.id,
    )


def order_by_dependency(
    tasks: Sequence[TimelineTask],
    edges: Iterable[DependencyEdge],
) -> list[str]:
    """Order task ids so every dependency precedes its dependents.

    Args:
        tasks: Tasks to order
        edges: Dependency edges; edges naming unknown tasks are ignored

    Returns:
        Every task id exactly once. Tasks left over by a cycle come last,
        sorted by the same comparator used for ties.
    """
    task_map = {task.id: task for task in tasks}
    incoming: dict[str, int] = {task_id: 0 for task_id in task_map}
    outgoing: dict[str, list[str]] = {task_id: [] for task_id in task_map}

    for edge in edges:
        if edge.task_id not in task_map or edge.depends_on_task_id not in task_map:
            continue
        incoming[edge.task_id] += 1
        outgoing[edge.depends_on_task_id].append(edge.task_id)

    ready = [_sort_key(task) for task in task_map.values() if incoming[task.id] == 0]
    heapq.heapify(ready)
    ordered: list[str] = []

    while ready:
        *_, task_id = heapq.heappop(ready)
        ordered.append(task_id)
        for dependent_id in outgoing[task_id]:
            incoming[dependent_id] -= 1
            if incoming[dependent_id] == 0:
                heapq.heappush(ready, _sort_key(task_map[dependent_id]))

    if len(ordered) == len(task_map):
        return ordered

    visited = set(ordered)
    unresolved = sorted(
        (task for task in task_map.values() if task.id not in visited),
        key=_sort_key,
    )
    logger.debug(f"Appending {len(unresolved)} tasks left unresolved by a dependency cycle")
    return ordered + [task.id for task in unresolved]


def _thirds(ratio: float) -> int:
    """Bucket a 0..1 ratio into 0, 1 or 2."""
    if ratio < 1 / 3:
        return 0
    if ratio < 2 / 3:
        return 1
    return 2


def phase_of(sequence_index: int, total_tasks: int) -> TimelinePhase:
    """Bucket a position in the ordered timeline into a phase."""
    if total_tasks <= 1:
        return TimelinePhase.BEGINNING

    ratio = sequence_index / (total_tasks - 1)
    return (TimelinePhase.BEGINNING, TimelinePhase.MIDDLE, TimelinePhase.END)[_thirds(ratio)]


def placement_of(
    task_id: str,
    tasks: Sequence[TimelineTask],
    edges: Iterable[DependencyEdge],
) -> TimelinePlacement:
    """Locate one task in the dependency-ordered timeline.

    A task id missing from ``tasks`` is placed at index 0.
    """
    ordered = order_by_dependency(tasks, edges)
    try:
        sequence_index = ordered.index(task_id)
    except ValueError:
        sequence_index = 0
    total_tasks = len(ordered)

    return TimelinePlacement(
        phase=phase_of(sequence_index, total_tasks),
        sequence_index=sequence_index,
        total_tasks=total_tasks,
    )


def due_date_placement(
    task_due_at: DateValue,
    project_created_at: DateValue,
    project_deadline: DateValue,
) -> DueDatePlacement:
    """Bucket a due date into the project's creation-to-deadline window."""
    due = parse_timestamp(task_due_at)
    created = parse_timestamp(project_created_at)
    deadline = parse_timestamp(project_deadline)

    if due is None or created is None or deadline is None or deadline <= created:
        return DueDatePlacement.UNSCHEDULED

    ratio = min(max((due - created) / (deadline - created), 0.0), 1.0)
    return (DueDatePlacement.EARLY, DueDatePlacement.MID, DueDatePlacement.LATE)[_thirds(ratio)]
