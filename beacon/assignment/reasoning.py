"""Human-readable explanations for assignments."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..tasks.models import DependencyEdge
from .models import MemberEffectiveSkills, TaskSkillRequirement


@dataclass(frozen=True)
class MatchedSkill:
    """A required skill the assignee has."""

    name: str
    level: int


def _format_matched(skills: Sequence[MatchedSkill]) -> str:
    return ", ".join(f"{skill.name} ({skill.level}/5)" for skill in skills)


def build_assignment_reasoning(
    assignee_label: Optional[str],
    required_skill_names: Sequence[str],
    matched_skills: Sequence[MatchedSkill],
    dependency_count: int,
    difficulty_points: Optional[int],
) -> str:
    """Explain why a task went to its assignee."""
    if not assignee_label:
        return "Task is currently unassigned and awaiting assignment."

    if not required_skill_names:
        return f"{assignee_label} was assigned based on workload balance and current project timing."

    if matched_skills:
        hint = ""
        if dependency_count > 0:
            plural = "" if dependency_count == 1 else "s"
            hint = f" It also coordinates {dependency_count} prerequisite task{plural}."
        return (
            f"{assignee_label} was assigned due to strongest skill coverage in "
            f"{_format_matched(matched_skills)}.{hint}"
        )

    if difficulty_points:
        return (
            f"{assignee_label} was assigned for workload balance and timeline fit "
            f"on a difficulty {difficulty_points} task."
        )

    return f"{assignee_label} was assigned based on workload balance and delivery sequencing."


def explain_assignment(
    task_id: str,
    assignee: Optional[MemberEffectiveSkills],
    requirements: Sequence[TaskSkillRequirement],
    edges: Sequence[DependencyEdge],
    difficulty_points: Optional[int] = None,
    assignee_label: Optional[str] = None,
) -> str:
    """Build the reasoning text for one task from core records.

    Skill ids double as skill names; a matched skill is a required skill the
    assignee holds at level 1 or above.
    """
    required = [req.skill_id for req in requirements if req.task_id == task_id]
    matched = []
    if assignee is not None:
        matched = [
            MatchedSkill(name=skill_id, level=assignee.skill_level(skill_id))
            for skill_id in required
            if assignee.skill_level(skill_id) > 0
        ]
    dependency_count = sum(1 for edge in edges if edge.task_id == task_id)
    label = assignee_label or (assignee.user_id if assignee is not None else None)

    return build_assignment_reasoning(
        assignee_label=label,
        required_skill_names=required,
        matched_skills=matched,
        dependency_count=dependency_count,
        difficulty_points=difficulty_points,
    )
