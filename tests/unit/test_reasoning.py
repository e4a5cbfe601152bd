"""Unit tests for assignment reasoning text."""

from beacon.assignment.models import MemberEffectiveSkills, TaskSkillRequirement
from beacon.assignment.reasoning import (
    MatchedSkill,
    build_assignment_reasoning,
    explain_assignment,
)
from beacon.tasks.models import DependencyEdge


def test_unassigned():
    """Test the unassigned sentence."""
    assert (
        build_assignment_reasoning(None, ["python"], [], 0, 3)
        == "Task is currently unassigned and awaiting assignment."
    )


def test_no_required_skills():
    """Test workload-only reasoning when nothing is required."""
    assert build_assignment_reasoning("Ada", [], [], 2, 3) == (
        "Ada was assigned based on workload balance and current project timing."
    )


def test_matched_skills_with_prerequisites():
    """Test matched skills are listed with levels and prerequisites pluralized."""
    text = build_assignment_reasoning(
        "Ada",
        ["python", "sql"],
        [MatchedSkill("python", 5), MatchedSkill("sql", 2)],
        2,
        3,
    )

    assert text == (
        "Ada was assigned due to strongest skill coverage in python (5/5), sql (2/5). "
        "It also coordinates 2 prerequisite tasks."
    )


def test_single_prerequisite_is_singular():
    """Test one prerequisite uses the singular form."""
    text = build_assignment_reasoning("Ada", ["python"], [MatchedSkill("python", 4)], 1, 3)

    assert text.endswith("It also coordinates 1 prerequisite task.")


def test_no_match_uses_difficulty():
    """Test unmatched requirements fall back to difficulty wording."""
    assert build_assignment_reasoning("Ada", ["rust"], [], 0, 5) == (
        "Ada was assigned for workload balance and timeline fit on a difficulty 5 task."
    )


def test_no_match_no_difficulty():
    """Test the final fallback sentence."""
    assert build_assignment_reasoning("Ada", ["rust"], [], 0, None) == (
        "Ada was assigned based on workload balance and delivery sequencing."
    )


def test_explain_assignment_from_records():
    """Test explanation is derived from requirements, skills and edges."""
    assignee = MemberEffectiveSkills("u1", skills={"python": 4, "go": 0})
    requirements = [
        TaskSkillRequirement("t1", "python", 2.0),
        TaskSkillRequirement("t1", "go", 1.0),
        TaskSkillRequirement("t2", "sql", 1.0),
    ]
    edges = [DependencyEdge("t1", "t0"), DependencyEdge("t2", "t1")]

    text = explain_assignment("t1", assignee, requirements, edges, 3, assignee_label="Ada")

    assert text == (
        "Ada was assigned due to strongest skill coverage in python (4/5). "
        "It also coordinates 1 prerequisite task."
    )


def test_explain_assignment_defaults_label_to_user_id():
    """Test the user id is used when no label is given."""
    text = explain_assignment("t1", MemberEffectiveSkills("u1"), [], [])

    assert text.startswith("u1 was assigned")


def test_explain_assignment_without_assignee():
    """Test a missing assignee reads as unassigned."""
    assert explain_assignment("t1", None, [], []).startswith("Task is currently unassigned")
