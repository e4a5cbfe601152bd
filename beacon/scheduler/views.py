"""Board and timeline read models built from in-memory project records."""

import math
from dataclasses import dataclass, field
from typing import Optional

from ..tasks.models import DateValue, DependencyEdge, TaskStatus, TimelineTask
from .timeline import (
    DueDatePlacement,
    TimelinePhase,
    due_date_placement,
    order_by_dependency,
    parse_timestamp,
    phase_of,
)


@dataclass(frozen=True)
class ProjectWindow:
    """Project creation time and deadline."""

    created_at: DateValue = None
    deadline: DateValue = None


@dataclass(frozen=True)
class ViewTask:
    """Task row as the views need it."""

    id: str
    title: str
    status: TaskStatus
    difficulty_points: int
    due_at: DateValue = None
    created_at: DateValue = None
    assignee_user_id: Optional[str] = None


@dataclass(frozen=True)
class ViewMember:
    """Project member with display details."""

    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str = "member"

    @property
    def label(self) -> str:
        """Display name, falling back to email and then user id."""
        if self.name and self.name.strip():
            return self.name.strip()
        return self.email or self.user_id


@dataclass
class TimelineEntry:
    """One task in the timeline view."""

    id: str
    title: str
    status: TaskStatus
    soft_deadline: DateValue
    difficulty_points: int
    assignee_user_id: Optional[str]
    sequence_index: int
    total_tasks: int
    phase: TimelinePhase
    due_date_placement: DueDatePlacement


@dataclass
class TimelineView:
    """Tasks in dependency order plus the edges between them."""

    tasks: list[TimelineEntry] = field(default_factory=list)
    edges: list[DependencyEdge] = field(default_factory=list)


@dataclass
class BoardCard:
    """One task card on the board."""

    id: str
    title: str
    status: TaskStatus
    soft_deadline: DateValue
    difficulty_points: int
    phase: TimelinePhase


@dataclass
class BoardColumn:
    """Cards assigned to one member."""

    user_id: str
    name: str
    email: str
    role: str
    tasks: list[BoardCard] = field(default_factory=list)


@dataclass
class BoardView:
    """Member columns plus unassigned cards."""

    columns: list[BoardColumn] = field(default_factory=list)
    unassigned: list[BoardCard] = field(default_factory=list)


def _timeline_inputs(tasks: list[ViewTask]) -> list[TimelineTask]:
    return [TimelineTask(id=t.id, due_at=t.due_at, created_at=t.created_at) for t in tasks]


def build_timeline_view(
    project: ProjectWindow,
    tasks: list[ViewTask],
    edges: list[DependencyEdge],
) -> TimelineView:
    """Build the timeline view.

    Args:
        project: Project window used for due-date placement
        tasks: Project tasks
        edges: Dependency edges between the tasks

    Returns:
        TimelineView with tasks in dependency order and sorted edges
    """
    task_by_id = {task.id: task for task in tasks}
    ordered_ids = order_by_dependency(_timeline_inputs(tasks), edges)
    total_tasks = len(ordered_ids)

    entries = []
    for index, task_id in enumerate(ordered_ids):
        task = task_by_id[task_id]
        entries.append(
            TimelineEntry(
                id=task.id,
                title=task.title,
                status=task.status,
                soft_deadline=task.due_at,
                difficulty_points=task.difficulty_points,
                assignee_user_id=task.assignee_user_id,
                sequence_index=index,
                total_tasks=total_tasks,
                phase=phase_of(index, total_tasks),
                due_date_placement=due_date_placement(
                    task.due_at, project.created_at, project.deadline
                ),
            )
        )

    sorted_edges = sorted(edges, key=lambda e: (e.task_id, e.depends_on_task_id))
    return TimelineView(tasks=entries, edges=sorted_edges)


def _board_sort_key(task: ViewTask) -> tuple[float, str]:
    due = parse_timestamp(task.due_at)
    return (math.inf if due is None else due, task.id)


def build_board_view(
    members: list[ViewMember],
    tasks: list[ViewTask],
    edges: list[DependencyEdge],
) -> BoardView:
    """Build the board view.

    Args:
        members: Project members, one column each
        tasks: Project tasks
        edges: Dependency edges used to compute each card's phase

    Returns:
        BoardView with columns sorted by member label
    """
    ordered_ids = order_by_dependency(_timeline_inputs(tasks), edges)
    phase_by_id = {
        task_id: phase_of(index, len(ordered_ids)) for index, task_id in enumerate(ordered_ids)
    }

    def to_card(task: ViewTask) -> BoardCard:
        return BoardCard(
            id=task.id,
            title=task.title,
            status=task.status,
            soft_deadline=task.due_at,
            difficulty_points=task.difficulty_points,
            phase=phase_by_id.get(task.id, TimelinePhase.MIDDLE),
        )

    sorted_tasks = sorted(tasks, key=_board_sort_key)

    columns = [
        BoardColumn(
            user_id=member.user_id,
            name=member.label,
            email=member.email or "",
            role=member.role,
            tasks=[to_card(t) for t in sorted_tasks if t.assignee_user_id == member.user_id],
        )
        for member in members
    ]
    columns.sort(key=lambda column: column.name)

    unassigned = [to_card(t) for t in sorted_tasks if not t.assignee_user_id]
    return BoardView(columns=columns, unassigned=unassigned)
