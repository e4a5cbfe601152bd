"""Base interface for external assignment generators."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..assignment.models import Assignment, MemberEffectiveSkills, TaskSkillRequirement
from ..tasks.models import TaskForAssignment


class AgentError(Exception):
    """Agent execution error."""

    pass


@dataclass
class AssignmentRequest:
    """Everything an agent sees when proposing assignments."""

    tasks: list[TaskForAssignment]
    members: list[MemberEffectiveSkills]
    requirements: list[TaskSkillRequirement]
    project_id: str = ""
    project_name: str = ""
    project_description: str = ""


class BaseAssignmentAgent(ABC):
    """Base agent interface."""

    #: Model name reported with results; None when not applicable.
    model: str | None = None

    def __init__(self, config: dict):
        """Initialize agent.

        Args:
            config: Agent configuration dict
        """
        self.config = config

    @abstractmethod
    async def propose(self, request: AssignmentRequest) -> list[Assignment]:
        """Propose assignments for the eligible tasks in ``request``.

        The proposal is untrusted; callers must validate it.

        Args:
            request: Tasks, members and requirements

        Returns:
            Proposed assignments

        Raises:
            AgentError: If no proposal could be produced
        """
        pass
