"""Merge a regenerated task list into an existing plan.

Finished and in-progress work survives a replan: done tasks are kept as they
are, in-progress tasks keep their assignee, and neither is ever deleted.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Optional

from .models import DateValue, TaskStatus

PROTECTED_STATUSES = (TaskStatus.DONE, TaskStatus.IN_PROGRESS)


@dataclass(frozen=True)
class PlanTask:
    """Task as stored in or requested for a plan."""

    title: str
    description: str
    difficulty_points: int
    status: TaskStatus
    due_at: DateValue = None
    assignee_user_id: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ReplanResult:
    """What to write, delete and report after a replan."""

    upserts: list[PlanTask] = field(default_factory=list)
    deleted_task_ids: list[str] = field(default_factory=list)
    preserved_task_ids: list[str] = field(default_factory=list)
    ignored_task_ids: list[str] = field(default_factory=list)


def _unique(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def apply_replan_policy(
    existing_tasks: Sequence[PlanTask],
    requested_tasks: Sequence[PlanTask],
) -> ReplanResult:
    """Reconcile requested tasks with the existing plan.

    Args:
        existing_tasks: Tasks currently stored (all have ids)
        requested_tasks: Tasks from the new plan; id set when updating

    Returns:
        ReplanResult with upserts in request order followed by protected
        tasks the request left out
    """
    existing_by_id = {task.id: task for task in existing_tasks}
    preserved: list[str] = []
    ignored: list[str] = []
    seen: set[str] = set()
    upserts: list[PlanTask] = []

    for requested in requested_tasks:
        if requested.id is not None:
            seen.add(requested.id)
        existing = existing_by_id.get(requested.id) if requested.id is not None else None

        if existing is None:
            upserts.append(requested)
        elif existing.status == TaskStatus.DONE:
            preserved.append(existing.id)
            ignored.append(existing.id)
            upserts.append(existing)
        elif existing.status == TaskStatus.IN_PROGRESS:
            preserved.append(existing.id)
            upserts.append(replace(requested, assignee_user_id=existing.assignee_user_id))
        else:
            upserts.append(
                replace(
                    requested,
                    assignee_user_id=requested.assignee_user_id or existing.assignee_user_id,
                )
            )

    for existing in existing_tasks:
        if existing.id in seen:
            continue
        if existing.status in PROTECTED_STATUSES:
            preserved.append(existing.id)
            upserts.append(existing)

    deleted = [
        task.id
        for task in existing_tasks
        if task.id not in seen and task.status not in PROTECTED_STATUSES
    ]

    return ReplanResult(
        upserts=upserts,
        deleted_task_ids=deleted,
        preserved_task_ids=_unique(preserved),
        ignored_task_ids=_unique(ignored),
    )
