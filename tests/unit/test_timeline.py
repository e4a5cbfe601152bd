"""Unit tests for timeline ordering and placement."""

from datetime import datetime, timezone

import pytest

from beacon.scheduler.timeline import (
    DueDatePlacement,
    TimelinePhase,
    due_date_placement,
    order_by_dependency,
    parse_timestamp,
    phase_of,
    placement_of,
)
from beacon.tasks.models import DependencyEdge, TimelineTask


def edge(task_id: str, depends_on: str) -> DependencyEdge:
    return DependencyEdge(task_id=task_id, depends_on_task_id=depends_on)


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_z_suffix(self):
        """Test a trailing Z is read as UTC."""
        expected = datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp()
        assert parse_timestamp("2024-01-01T00:00:00Z") == expected

    def test_naive_string_is_utc(self):
        """Test a string without offset is read as UTC."""
        assert parse_timestamp("2024-01-01T00:00:00") == parse_timestamp("2024-01-01T00:00:00Z")

    def test_offset_is_honored(self):
        """Test explicit offsets shift the instant."""
        assert parse_timestamp("2024-01-01T02:00:00+02:00") == parse_timestamp(
            "2024-01-01T00:00:00Z"
        )

    def test_datetime_input(self):
        """Test datetime objects are accepted directly."""
        value = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert parse_timestamp(value) == value.timestamp()

    @pytest.mark.parametrize(
        "value",
        ["2026-03-01T10:00:00.5Z", "2026-03-01T10:00:00.500+00:00", "2026-03-01T11:00:00.5+0100"],
    )
    def test_fractional_and_compact_offsets(self, value):
        """Test fractional seconds and offsets without a colon are accepted."""
        expected = datetime(2026, 3, 1, 10, 0, 0, 500000, tzinfo=timezone.utc).timestamp()
        assert parse_timestamp(value) == expected

    def test_compact_utc_offset(self):
        """Test +0000 is the same instant as Z."""
        assert parse_timestamp("2026-03-01T10:00:00+0000") == parse_timestamp(
            "2026-03-01T10:00:00Z"
        )

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date"])
    def test_missing_or_unparseable(self, value):
        """Test missing and garbage values give None."""
        assert parse_timestamp(value) is None


class TestOrderByDependency:
    """Tests for order_by_dependency."""

    def test_dependencies_first(self):
        """Test prerequisites precede dependents even with later due dates."""
        tasks = [
            TimelineTask("a", due_at="2024-01-01T00:00:00Z"),
            TimelineTask("b", due_at="2024-06-01T00:00:00Z"),
        ]

        assert order_by_dependency(tasks, [edge("a", "b")]) == ["b", "a"]

    def test_ready_tasks_sorted_by_due_date(self):
        """Test independent tasks are ordered by due date."""
        tasks = [
            TimelineTask("a", due_at="2024-03-01T00:00:00Z"),
            TimelineTask("b", due_at="2024-01-01T00:00:00Z"),
            TimelineTask("c", due_at="2024-02-01T00:00:00Z"),
        ]

        assert order_by_dependency(tasks, []) == ["b", "c", "a"]

    def test_missing_due_dates_sort_last(self):
        """Test tasks without a due date come after dated ones."""
        tasks = [
            TimelineTask("a"),
            TimelineTask("b", due_at="2030-01-01T00:00:00Z"),
        ]

        assert order_by_dependency(tasks, []) == ["b", "a"]

    def test_created_at_breaks_due_ties(self):
        """Test equal due dates fall back to creation time, then id."""
        due = "2024-05-01T00:00:00Z"
        tasks = [
            TimelineTask("c", due_at=due, created_at="2024-01-03T00:00:00Z"),
            TimelineTask("b", due_at=due, created_at="2024-01-02T00:00:00Z"),
            TimelineTask("a", due_at=due),
            TimelineTask("d", due_at=due, created_at="2024-01-02T00:00:00Z"),
        ]

        assert order_by_dependency(tasks, []) == ["b", "d", "c", "a"]

    def test_unknown_edges_ignored(self):
        """Test edges naming tasks outside the list are skipped."""
        tasks = [TimelineTask("a"), TimelineTask("b")]

        assert order_by_dependency(tasks, [edge("a", "ghost"), edge("ghost", "b")]) == ["a", "b"]

    def test_cycle_members_appended(self):
        """Test tasks caught in a cycle are appended instead of dropped."""
        tasks = [
            TimelineTask("x", due_at="2024-01-02T00:00:00Z"),
            TimelineTask("y", due_at="2024-01-01T00:00:00Z"),
            TimelineTask("z"),
        ]
        edges = [edge("x", "y"), edge("y", "x")]

        assert order_by_dependency(tasks, edges) == ["z", "y", "x"]

    def test_every_task_exactly_once(self):
        """Test output is a permutation of the input ids."""
        tasks = [TimelineTask(str(i)) for i in range(8)]
        edges = [edge("1", "0"), edge("2", "1"), edge("0", "2"), edge("5", "4")]

        ordered = order_by_dependency(tasks, edges)

        assert sorted(ordered) == sorted(t.id for t in tasks)


class TestPhases:
    """Tests for phase bucketing."""

    @pytest.mark.parametrize("total", [0, 1])
    def test_single_task_is_beginning(self, total):
        """Test degenerate totals map to the beginning phase."""
        assert phase_of(0, total) == TimelinePhase.BEGINNING

    def test_two_tasks(self):
        """Test two tasks split into beginning and end."""
        assert phase_of(0, 2) == TimelinePhase.BEGINNING
        assert phase_of(1, 2) == TimelinePhase.END

    def test_boundaries_ten_tasks(self):
        """Test phase boundaries over ten tasks."""
        phases = [phase_of(i, 10) for i in range(10)]

        assert phases[:3] == [TimelinePhase.BEGINNING] * 3
        assert phases[3:6] == [TimelinePhase.MIDDLE] * 3
        assert phases[6:] == [TimelinePhase.END] * 4

    def test_placement_of(self):
        """Test placement reports index, total and phase."""
        tasks = [TimelineTask("a"), TimelineTask("b"), TimelineTask("c")]
        edges = [edge("a", "b"), edge("b", "c")]

        placement = placement_of("b", tasks, edges)

        assert placement.sequence_index == 1
        assert placement.total_tasks == 3
        assert placement.phase == TimelinePhase.MIDDLE

    def test_placement_of_unknown_task(self):
        """Test an unknown task id is placed at index zero."""
        placement = placement_of("ghost", [TimelineTask("a"), TimelineTask("b")], [])

        assert placement.sequence_index == 0
        assert placement.total_tasks == 2
        assert placement.phase == TimelinePhase.BEGINNING


class TestDueDatePlacement:
    """Tests for due_date_placement."""

    CREATED = "2024-01-01T00:00:00Z"
    DEADLINE = "2024-01-31T00:00:00Z"

    @pytest.mark.parametrize(
        "due_at, expected",
        [
            ("2024-01-02T00:00:00Z", DueDatePlacement.EARLY),
            ("2024-01-16T00:00:00Z", DueDatePlacement.MID),
            ("2024-01-30T00:00:00Z", DueDatePlacement.LATE),
            ("2023-12-01T00:00:00Z", DueDatePlacement.EARLY),
            ("2024-03-01T00:00:00Z", DueDatePlacement.LATE),
        ],
    )
    def test_buckets(self, due_at, expected):
        """Test due dates bucket into thirds, clamped to the window."""
        assert due_date_placement(due_at, self.CREATED, self.DEADLINE) == expected

    def test_missing_values(self):
        """Test any missing date gives unscheduled."""
        assert due_date_placement(None, self.CREATED, self.DEADLINE) == DueDatePlacement.UNSCHEDULED
        assert due_date_placement(self.CREATED, None, self.DEADLINE) == DueDatePlacement.UNSCHEDULED
        assert due_date_placement(self.CREATED, self.CREATED, None) == DueDatePlacement.UNSCHEDULED

    def test_degenerate_window(self):
        """Test a deadline not after creation gives unscheduled."""
        assert (
            due_date_placement(self.CREATED, self.DEADLINE, self.CREATED)
            == DueDatePlacement.UNSCHEDULED
        )
        assert (
            due_date_placement(self.CREATED, self.CREATED, self.CREATED)
            == DueDatePlacement.UNSCHEDULED
        )
