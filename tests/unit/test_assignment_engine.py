"""Unit tests for the deterministic assignment engine."""

from collections import Counter

import pytest

from beacon.assignment.engine import (
    assign_tasks,
    max_projected_load_gap,
    score_member_for_task,
)
from beacon.assignment.models import MemberEffectiveSkills, TaskSkillRequirement
from beacon.tasks.models import TaskForAssignment, TaskStatus


def todo(task_id: str, points: int = 1) -> TaskForAssignment:
    return TaskForAssignment(id=task_id, status=TaskStatus.TODO, difficulty_points=points)


def member(user_id: str, load: float = 0, **skills: int) -> MemberEffectiveSkills:
    return MemberEffectiveSkills(user_id=user_id, skills=dict(skills), current_load=load)


def assignee_of(result, task_id):
    return next(a.assignee_user_id for a in result.assignments if a.task_id == task_id)


class TestScoring:
    """Tests for score_member_for_task."""

    def test_no_requirements_prefers_idle(self):
        """Test the no-requirement score only penalizes load."""
        task = todo("t1")
        assert score_member_for_task(member("a"), task, []) == pytest.approx(1.0)
        assert score_member_for_task(member("a", load=3), task, []) == pytest.approx(0.7)

    def test_weighted_skill_score(self):
        """Test skill levels are normalized to five and weighted."""
        task = todo("t1", points=2)
        requirements = [
            TaskSkillRequirement("t1", "python", 2.0),
            TaskSkillRequirement("t1", "sql", 1.0),
        ]
        m = member("a", load=1, python=5, sql=2)

        expected = (1.0 * 2.0 + 0.4 * 1.0) + 0.03 * 2 - 0.35 * 1
        assert score_member_for_task(m, task, requirements) == pytest.approx(expected)

    def test_missing_skill_counts_as_zero(self):
        """Test a skill the member does not list contributes nothing."""
        task = todo("t1")
        requirements = [TaskSkillRequirement("t1", "rust", 3.0)]

        assert score_member_for_task(member("a"), task, requirements) == pytest.approx(0.03)

    @pytest.mark.parametrize("points, gap", [(1, 1), (2, 2), (3, 2), (5, 3), (8, 5)])
    def test_load_gap(self, points, gap):
        """Test the allowed projected-load gap grows with difficulty."""
        assert max_projected_load_gap(todo("t", points)) == gap


class TestAssignTasks:
    """Tests for assign_tasks."""

    def test_no_members(self):
        """Test an empty member list yields no assignments."""
        result = assign_tasks([todo("t1")], [], [])

        assert result.assignments == []
        assert result.assigned_count == 0

    def test_only_unassigned_todo_tasks(self):
        """Test in-progress, done, blocked and already-assigned tasks are skipped."""
        tasks = [
            todo("t1"),
            TaskForAssignment("t2", TaskStatus.IN_PROGRESS, 1),
            TaskForAssignment("t3", TaskStatus.DONE, 1),
            TaskForAssignment("t4", TaskStatus.BLOCKED, 1),
            TaskForAssignment("t5", TaskStatus.TODO, 1, assignee_user_id="a"),
        ]

        result = assign_tasks(tasks, [member("a"), member("b")], [])

        assert [a.task_id for a in result.assignments] == ["t1"]

    def test_each_task_assigned_once_to_known_member(self):
        """Test assignments are unique per task and name real members."""
        tasks = [todo(f"t{i}", points) for i, points in enumerate([1, 2, 3, 5, 8, 3, 2])]
        members = [member("a", python=3), member("b", sql=4), member("c")]
        requirements = [TaskSkillRequirement("t1", "python", 1.0)]

        result = assign_tasks(tasks, members, requirements)

        task_ids = [a.task_id for a in result.assignments]
        assert sorted(task_ids) == sorted(t.id for t in tasks)
        assert len(set(task_ids)) == len(task_ids)
        assert {a.assignee_user_id for a in result.assignments} <= {"a", "b", "c"}

    def test_larger_tasks_assigned_first(self):
        """Test assignment order is difficulty descending, then id."""
        tasks = [todo("b", 1), todo("a", 1), todo("z", 8), todo("m", 3)]

        result = assign_tasks(tasks, [member("u")], [])

        assert [a.task_id for a in result.assignments] == ["z", "m", "a", "b"]

    def test_deterministic(self):
        """Test identical input gives identical output."""
        tasks = [todo(f"t{i}", p) for i, p in enumerate([5, 3, 3, 1, 8, 2])]
        members = [member("a", python=2), member("b", python=4, load=2), member("c")]
        requirements = [TaskSkillRequirement(f"t{i}", "python", 1.0) for i in range(0, 6, 2)]

        assert assign_tasks(tasks, members, requirements) == assign_tasks(
            tasks, members, requirements
        )

    def test_caller_members_not_mutated(self):
        """Test running loads do not leak into the caller's member records."""
        members = [member("a", load=1), member("b")]

        assign_tasks([todo("t1", 5), todo("t2", 3)], members, [])

        assert members[0].current_load == 1
        assert members[1].current_load == 0

    def test_without_requirements_spreads_by_load(self):
        """Test skill-less tasks go to the least loaded member."""
        members = [member("a", load=4), member("b"), member("c", load=2)]

        result = assign_tasks([todo("t1", 2)], members, [])

        assert assignee_of(result, "t1") == "b"

    def test_skill_beats_small_load_difference(self):
        """Test a level-5 member with load 1 beats an unskilled idle member."""
        members = [member("a", load=1, design=5), member("b")]
        requirements = [TaskSkillRequirement("t1", "design", 3.0)]

        result = assign_tasks([todo("t1", 1)], members, requirements)

        assert assignee_of(result, "t1") == "a"

    def test_overloaded_skilled_member_loses(self):
        """Test a level-5 member with load 4 loses to an unskilled idle member."""
        members = [member("a", load=4, design=5), member("b")]
        requirements = [TaskSkillRequirement("t1", "design", 3.0)]

        result = assign_tasks([todo("t1", 1)], members, requirements)

        assert assignee_of(result, "t1") == "b"

    def test_single_skilled_member_load_spread(self):
        """Test nine equal tasks needing one member's skill stay spread out."""
        tasks = [todo(f"t{i}", 1) for i in range(1, 10)]
        members = [member("u1", backend=5), member("u2"), member("u3")]
        requirements = [TaskSkillRequirement(t.id, "backend", 1.0) for t in tasks]

        result = assign_tasks(tasks, members, requirements)

        loads = Counter(a.assignee_user_id for a in result.assignments)
        assert result.assigned_count == 9
        assert max(loads.values()) - min(loads[m.user_id] for m in members) <= 2
        assert loads["u1"] == max(loads.values())

    def test_ties_broken_by_user_id(self):
        """Test equal candidates resolve to the smallest user id."""
        result = assign_tasks([todo("t1")], [member("zoe"), member("amy")], [])

        assert assignee_of(result, "t1") == "amy"
