"""Skill and workload aware task assignment.

Greedy, single pass, no backtracking. Larger tasks are placed first so load
balancing has the most room before loads accumulate; every decision depends
only on decisions already made.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass

from ..tasks.models import TaskForAssignment
from .models import (
    Assignment,
    AssignmentResult,
    MemberEffectiveSkills,
    TaskSkillRequirement,
)

logger = logging.getLogger(__name__)

# Empirically chosen; changing them changes who gets what.
NO_SKILL_LOAD_PENALTY = 0.1
LOAD_PENALTY = 0.35
DIFFICULTY_BONUS = 0.03
MAX_SKILL_LEVEL = 5


@dataclass
class _Candidate:
    member: MemberEffectiveSkills
    score: float
    projected_load: float


def score_member_for_task(
    member: MemberEffectiveSkills,
    task: TaskForAssignment,
    requirements: Sequence[TaskSkillRequirement],
) -> float:
    """Score how well a member fits a task given their current load."""
    if not requirements:
        return 1 - NO_SKILL_LOAD_PENALTY * member.current_load

    skill_score = sum(
        (member.skill_level(req.skill_id) / MAX_SKILL_LEVEL) * req.weight
        for req in requirements
    )
    return (
        skill_score
        + DIFFICULTY_BONUS * task.difficulty_points
        - LOAD_PENALTY * member.current_load
    )


def max_projected_load_gap(task: TaskForAssignment) -> int:
    """How far above the lightest member's projected load a pick may land."""
    return max(1, task.difficulty_points // 2 + 1)


def _rank_candidates(
    members: list[MemberEffectiveSkills],
    task: TaskForAssignment,
    requirements: Sequence[TaskSkillRequirement],
) -> list[_Candidate]:
    candidates = [
        _Candidate(
            member=member,
            score=score_member_for_task(member, task, requirements),
            projected_load=member.current_load + task.difficulty_points,
        )
        for member in members
    ]
    candidates.sort(key=lambda c: (-c.score, c.projected_load, c.member.user_id))
    return candidates


def assign_tasks(
    tasks: Sequence[TaskForAssignment],
    members: Sequence[MemberEffectiveSkills],
    requirements: Sequence[TaskSkillRequirement],
) -> AssignmentResult:
    """Assign every eligible task to a member.

    Args:
        tasks: Project tasks; only unassigned todo tasks are considered
        members: Members with skills and current load (not mutated)
        requirements: Weighted skill requirements per task

    Returns:
        AssignmentResult in assignment order
    """
    if not members:
        return AssignmentResult()

    # Private copies so running loads never leak back to the caller.
    working = [
        MemberEffectiveSkills(
            user_id=m.user_id, skills=dict(m.skills), current_load=m.current_load
        )
        for m in members
    ]
    eligible = sorted(
        (task for task in tasks if task.is_eligible),
        key=lambda task: (-task.difficulty_points, task.id),
    )

    requirements_by_task: dict[str, list[TaskSkillRequirement]] = defaultdict(list)
    for requirement in requirements:
        requirements_by_task[requirement.task_id].append(requirement)

    assignments: list[Assignment] = []

    for task in eligible:
        ranked = _rank_candidates(working, task, requirements_by_task.get(task.id, []))
        if not ranked:
            continue

        lightest = min(c.projected_load for c in ranked)
        gap = max_projected_load_gap(task)
        selected = next(
            (c for c in ranked if c.projected_load - lightest <= gap),
            ranked[0],
        )

        if selected is not ranked[0]:
            logger.debug(
                f"{task.id}: {ranked[0].member.user_id} too loaded, "
                f"picked {selected.member.user_id}"
            )

        assignments.append(Assignment(task_id=task.id, assignee_user_id=selected.member.user_id))
        selected.member.current_load += task.difficulty_points

    logger.info(f"Assigned {len(assignments)} of {len(eligible)} eligible tasks")
    return AssignmentResult(assignments=assignments)
