"""Project planning lifecycle."""

import logging
from collections.abc import Iterable
from enum import Enum

from ..tasks.dependencies import DependencyValidationResult, validate_dependency_graph
from ..tasks.models import DependencyEdge

logger = logging.getLogger(__name__)


class PlanningStatus(str, Enum):
    """Planning status of a project."""

    DRAFT = "draft"
    LOCKED = "locked"
    ASSIGNED = "assigned"


class StateTransitionError(Exception):
    """Invalid state transition."""

    pass


class PlanningError(Exception):
    """Plan cannot be locked as it stands."""

    pass


TRANSITIONS = {
    PlanningStatus.DRAFT: [PlanningStatus.LOCKED],
    PlanningStatus.LOCKED: [PlanningStatus.ASSIGNED],
    PlanningStatus.ASSIGNED: [],  # Terminal
}


def can_transition(current: PlanningStatus, target: PlanningStatus) -> bool:
    """Check if a planning status transition is allowed."""
    return target in TRANSITIONS.get(current, [])


def is_project_complete(statuses: Iterable[str]) -> bool:
    """A project is complete when it has tasks and all of them are done."""
    normalized = [str(status).strip().lower() for status in statuses]
    return bool(normalized) and all(status == "done" for status in normalized)


class PlanningMachine:
    """Planning status with guarded transitions.

    Holds the status in memory only; persisting it is the caller's job.
    """

    def __init__(self, status: PlanningStatus = PlanningStatus.DRAFT):
        """Initialize planning machine.

        Args:
            status: Current planning status
        """
        self.status = PlanningStatus(status)

    def can_transition_to(self, target: PlanningStatus) -> bool:
        """Check if transition is valid."""
        return can_transition(self.status, target)

    def _require(self, target: PlanningStatus) -> None:
        if not self.can_transition_to(target):
            raise StateTransitionError(
                f"Invalid transition from {self.status.value} to {target.value}"
            )

    def lock(
        self,
        task_ids: Iterable[str],
        edges: Iterable[DependencyEdge],
    ) -> DependencyValidationResult:
        """Lock the plan if its dependency graph is valid.

        Args:
            task_ids: Ids of all tasks in the plan
            edges: Dependency edges between them

        Returns:
            The validation result; the status only changes when it is ok

        Raises:
            StateTransitionError: If the plan is not a draft
            PlanningError: If the plan has no tasks
        """
        self._require(PlanningStatus.LOCKED)

        ids = list(task_ids)
        if not ids:
            raise PlanningError("Plan must contain at least one task before lock")

        result = validate_dependency_graph(ids, edges)
        if not result.ok:
            logger.info(f"Plan lock rejected: {result.reason.value}")
            return result

        logger.info(f"State transition: {self.status.value} -> {PlanningStatus.LOCKED.value}")
        self.status = PlanningStatus.LOCKED
        return result

    def mark_assigned(self) -> None:
        """Record that assignments were run on a locked plan.

        Raises:
            StateTransitionError: If the plan is not locked
        """
        self._require(PlanningStatus.ASSIGNED)
        logger.info(f"State transition: {self.status.value} -> {PlanningStatus.ASSIGNED.value}")
        self.status = PlanningStatus.ASSIGNED
