"""Project snapshot files.

A snapshot is a YAML or JSON document holding everything the planning
components need for one project. It is validated here, once, and turned
into the plain records the components consume.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..assignment.models import MemberEffectiveSkills, TaskSkillRequirement
from ..assignment.skills import build_effective_members
from ..scheduler.views import ProjectWindow, ViewMember, ViewTask
from ..state.machine import PlanningStatus
from .models import (
    DIFFICULTY_POINTS,
    DependencyEdge,
    TaskForAssignment,
    TaskStatus,
    TimelineTask,
)

SkillLevel = Annotated[int, Field(ge=1, le=5)]
DateField = Optional[Union[datetime, date, str]]


class SnapshotError(Exception):
    """Snapshot file error."""

    pass


class ProjectModel(BaseModel):
    """Project header."""

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    created_at: DateField = None
    deadline: DateField = None
    planning_status: PlanningStatus = PlanningStatus.DRAFT


class MemberModel(BaseModel):
    """Project member with profile skills and project overrides."""

    user_id: str = Field(min_length=1)
    name: Optional[str] = None
    email: Optional[str] = None
    role: Literal["owner", "member"] = "member"
    skills: dict[str, SkillLevel] = Field(default_factory=dict, description="Profile skill levels")
    project_skills: dict[str, SkillLevel] = Field(
        default_factory=dict, description="Project-specific overrides"
    )


class TaskModel(BaseModel):
    """Project task."""

    id: str = Field(min_length=1)
    title: str = ""
    status: TaskStatus = TaskStatus.TODO
    difficulty_points: int = 3
    assignee_user_id: Optional[str] = None
    due_at: DateField = None
    created_at: DateField = None

    @field_validator("difficulty_points")
    @classmethod
    def validate_difficulty(cls, v: int) -> int:
        """Validate difficulty is on the point scale."""
        if v not in DIFFICULTY_POINTS:
            raise ValueError(f"difficulty_points must be one of {DIFFICULTY_POINTS}")
        return v


class RequirementModel(BaseModel):
    """Weighted skill requirement."""

    task_id: str = Field(min_length=1)
    skill_id: str = Field(min_length=1)
    weight: float = Field(gt=0)


class DependencyModel(BaseModel):
    """Finish-to-start dependency."""

    task_id: str = Field(min_length=1)
    depends_on_task_id: str = Field(min_length=1)


class ProjectSnapshot(BaseModel):
    """Everything known about one project."""

    project: ProjectModel
    members: list[MemberModel] = Field(default_factory=list)
    tasks: list[TaskModel] = Field(default_factory=list)
    requirements: list[RequirementModel] = Field(default_factory=list)
    dependencies: list[DependencyModel] = Field(default_factory=list)

    def task_ids(self) -> list[str]:
        return [task.id for task in self.tasks]

    def dependency_edges(self) -> list[DependencyEdge]:
        return [
            DependencyEdge(task_id=dep.task_id, depends_on_task_id=dep.depends_on_task_id)
            for dep in self.dependencies
        ]

    def timeline_tasks(self) -> list[TimelineTask]:
        return [
            TimelineTask(id=task.id, due_at=task.due_at, created_at=task.created_at)
            for task in self.tasks
        ]

    def assignment_tasks(self) -> list[TaskForAssignment]:
        return [
            TaskForAssignment(
                id=task.id,
                status=task.status,
                difficulty_points=task.difficulty_points,
                assignee_user_id=task.assignee_user_id,
            )
            for task in self.tasks
        ]

    def skill_requirements(self) -> list[TaskSkillRequirement]:
        return [
            TaskSkillRequirement(task_id=req.task_id, skill_id=req.skill_id, weight=req.weight)
            for req in self.requirements
        ]

    def effective_members(self) -> list[MemberEffectiveSkills]:
        return build_effective_members(
            [member.user_id for member in self.members],
            {member.user_id: member.skills for member in self.members},
            {member.user_id: member.project_skills for member in self.members},
            self.assignment_tasks(),
        )

    def project_window(self) -> ProjectWindow:
        return ProjectWindow(created_at=self.project.created_at, deadline=self.project.deadline)

    def view_tasks(self) -> list[ViewTask]:
        return [
            ViewTask(
                id=task.id,
                title=task.title,
                status=task.status,
                difficulty_points=task.difficulty_points,
                due_at=task.due_at,
                created_at=task.created_at,
                assignee_user_id=task.assignee_user_id,
            )
            for task in self.tasks
        ]

    def view_members(self) -> list[ViewMember]:
        return [
            ViewMember(user_id=m.user_id, name=m.name, email=m.email, role=m.role)
            for m in self.members
        ]

    def member_labels(self) -> dict[str, str]:
        return {member.user_id: view.label for member, view in zip(self.members, self.view_members())}


def load_snapshot(path: Path) -> ProjectSnapshot:
    """Load and validate a project snapshot.

    JSON is used for ``.json`` files, YAML for everything else.

    Args:
        path: Snapshot file path

    Returns:
        Validated ProjectSnapshot

    Raises:
        SnapshotError: If the file is missing, unreadable or invalid
    """
    if not path.exists():
        raise SnapshotError(f"Snapshot file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except UnicodeDecodeError as e:
        raise SnapshotError(f"Snapshot {path} is not UTF-8 text: {e}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SnapshotError(f"Invalid snapshot in {path}: {e}")

    if not data:
        raise SnapshotError(f"Empty snapshot file: {path}")

    try:
        return ProjectSnapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"Snapshot validation failed: {e}")


def save_snapshot(snapshot: ProjectSnapshot, path: Path) -> None:
    """Write a snapshot back to disk in the format its suffix names.

    Args:
        snapshot: Snapshot to write
        path: Destination file path
    """
    data = snapshot.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        else:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
