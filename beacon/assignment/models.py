"""Data models for the assignment engine."""

from dataclasses import dataclass, field


@dataclass
class MemberEffectiveSkills:
    """Member skill vector and current workload for one project."""

    user_id: str
    skills: dict[str, int] = field(default_factory=dict)  # skill id -> level 1..5
    current_load: float = 0.0  # difficulty points of assigned, non-done tasks

    def skill_level(self, skill_id: str) -> int:
        """Level for a skill; a skill the member does not list counts as 0."""
        return self.skills.get(skill_id, 0)


@dataclass(frozen=True)
class TaskSkillRequirement:
    """Weighted skill a task needs."""

    task_id: str
    skill_id: str
    weight: float


@dataclass(frozen=True)
class Assignment:
    """A task handed to a member."""

    task_id: str
    assignee_user_id: str


@dataclass
class AssignmentResult:
    """Assignments in the order they were made."""

    assignments: list[Assignment] = field(default_factory=list)

    @property
    def assigned_count(self) -> int:
        """Number of assignments made."""
        return len(self.assignments)
