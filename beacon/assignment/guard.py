"""Validation of externally proposed assignments.

An external generator may reference tasks or members that do not exist.
Proposals are accepted whole or not at all; on rejection the caller falls
back to the deterministic engine.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from typing import Optional

from ..tasks.models import TaskForAssignment
from .models import Assignment, MemberEffectiveSkills

logger = logging.getLogger(__name__)


def validate_assignments(
    proposed: Sequence[Assignment],
    eligible_task_ids: Iterable[str],
    known_member_ids: Iterable[str],
) -> Optional[list[Assignment]]:
    """Check a proposed assignment list.

    Args:
        proposed: Assignments from an external source
        eligible_task_ids: Ids of tasks that may be assigned
        known_member_ids: Ids of project members

    Returns:
        The proposal as a list, or None if any entry names an ineligible
        task, an unknown member, or a task already seen in the list
    """
    eligible = set(eligible_task_ids)
    members = set(known_member_ids)
    seen: set[str] = set()

    for assignment in proposed:
        if assignment.task_id not in eligible:
            logger.warning(f"Rejecting proposal: task {assignment.task_id} is not eligible")
            return None
        if assignment.assignee_user_id not in members:
            logger.warning(
                f"Rejecting proposal: unknown member {assignment.assignee_user_id}"
            )
            return None
        if assignment.task_id in seen:
            logger.warning(f"Rejecting proposal: task {assignment.task_id} assigned twice")
            return None
        seen.add(assignment.task_id)

    return list(proposed)


def _spread(loads: Iterable[float]) -> float:
    values = list(loads)
    if not values:
        return 0
    return max(values) - min(values)


def has_balanced_load_distribution(
    proposed: Sequence[Assignment],
    tasks: Sequence[TaskForAssignment],
    members: Sequence[MemberEffectiveSkills],
) -> bool:
    """Check that a proposal does not pile work onto a few members.

    The projected load spread may exceed the current spread by at most the
    larger of the biggest assigned task and an even share of the assigned
    points plus one.
    """
    if len(proposed) <= 1 or len(members) <= 1:
        return True

    difficulty_by_task = {task.id: task.difficulty_points for task in tasks if task.is_eligible}
    projected = {member.user_id: member.current_load for member in members}

    assigned_load = 0
    max_difficulty = 0
    for assignment in proposed:
        difficulty = difficulty_by_task.get(assignment.task_id)
        if difficulty is None:
            return False
        assigned_load += difficulty
        max_difficulty = max(max_difficulty, difficulty)
        projected[assignment.assignee_user_id] = (
            projected.get(assignment.assignee_user_id, 0) + difficulty
        )

    baseline = _spread(member.current_load for member in members)
    allowed_increase = max(max_difficulty, math.ceil(assigned_load / len(members)) + 1)
    return _spread(projected.values()) <= baseline + allowed_increase


def accept_proposal(
    proposed: Sequence[Assignment],
    tasks: Sequence[TaskForAssignment],
    members: Sequence[MemberEffectiveSkills],
    require_balance: bool = True,
) -> Optional[list[Assignment]]:
    """Run every check an external proposal must pass.

    Returns:
        Validated assignments, or None if the caller must fall back
    """
    validated = validate_assignments(
        proposed,
        eligible_task_ids=[task.id for task in tasks if task.is_eligible],
        known_member_ids=[member.user_id for member in members],
    )
    if validated is None:
        return None

    if require_balance and not has_balanced_load_distribution(validated, tasks, members):
        logger.warning("Rejecting proposal: load distribution too uneven")
        return None

    return validated
