"""Effective member skills and workload."""

from collections.abc import Iterable, Mapping
from typing import Optional

from ..tasks.models import TaskForAssignment, TaskStatus
from .models import MemberEffectiveSkills


def merge_effective_skills(
    profile_skills: Optional[Mapping[str, int]],
    project_overrides: Optional[Mapping[str, int]],
) -> dict[str, int]:
    """Overlay project-specific levels on profile levels (override wins per skill)."""
    merged = dict(profile_skills or {})
    merged.update(project_overrides or {})
    return merged


def compute_current_loads(tasks: Iterable[TaskForAssignment]) -> dict[str, int]:
    """Sum difficulty points of each member's assigned, unfinished tasks."""
    loads: dict[str, int] = {}
    for task in tasks:
        if not task.assignee_user_id or task.status == TaskStatus.DONE:
            continue
        loads[task.assignee_user_id] = loads.get(task.assignee_user_id, 0) + task.difficulty_points
    return loads


def build_effective_members(
    member_ids: Iterable[str],
    profile_skills: Mapping[str, Mapping[str, int]],
    project_overrides: Mapping[str, Mapping[str, int]],
    tasks: Iterable[TaskForAssignment],
) -> list[MemberEffectiveSkills]:
    """Build the assignment engine's member records.

    Args:
        member_ids: Project member user ids
        profile_skills: user id -> profile-wide skill levels
        project_overrides: user id -> project-specific skill levels
        tasks: All project tasks (used for current load)

    Returns:
        Members sorted by user id
    """
    loads = compute_current_loads(tasks)
    return sorted(
        (
            MemberEffectiveSkills(
                user_id=user_id,
                skills=merge_effective_skills(
                    profile_skills.get(user_id), project_overrides.get(user_id)
                ),
                current_load=loads.get(user_id, 0),
            )
            for user_id in member_ids
        ),
        key=lambda member: member.user_id,
    )
