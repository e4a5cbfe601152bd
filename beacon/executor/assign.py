"""Assignment run: optional AI proposal with deterministic fallback."""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..agents.base import AgentError, AssignmentRequest, BaseAssignmentAgent
from ..assignment.engine import assign_tasks
from ..assignment.guard import accept_proposal
from ..assignment.models import AssignmentResult, MemberEffectiveSkills, TaskSkillRequirement
from ..tasks.models import TaskForAssignment

logger = logging.getLogger(__name__)


class AssignmentMode(str, Enum):
    """Which path produced the assignments."""

    OPENAI = "openai"
    DETERMINISTIC = "deterministic"


@dataclass
class AssignmentRun:
    """Outcome of an assignment run."""

    result: AssignmentResult
    mode: AssignmentMode
    model: Optional[str] = None
    latency_ms: Optional[int] = None


async def _try_agent(
    agent: BaseAssignmentAgent,
    request: AssignmentRequest,
    timeout_sec: float,
    require_balance: bool,
) -> tuple[Optional[AssignmentResult], Optional[int]]:
    """One bounded attempt at an external proposal; None means fall back."""
    started = time.perf_counter()
    try:
        proposed = await asyncio.wait_for(agent.propose(request), timeout=timeout_sec)
    except asyncio.TimeoutError:
        logger.warning(f"Assignment agent timed out after {timeout_sec}s")
        return None, None
    except AgentError as e:
        logger.warning(f"Assignment agent failed: {e}")
        return None, max(1, round((time.perf_counter() - started) * 1000))
    except Exception as e:
        # Any other agent failure also falls back.
        logger.warning(f"Assignment agent crashed: {type(e).__name__}: {e}", exc_info=True)
        return None, max(1, round((time.perf_counter() - started) * 1000))

    latency_ms = max(1, round((time.perf_counter() - started) * 1000))
    validated = accept_proposal(
        proposed, request.tasks, request.members, require_balance=require_balance
    )
    if validated is None:
        return None, latency_ms
    return AssignmentResult(assignments=validated), latency_ms


async def run_assignments(
    tasks: Sequence[TaskForAssignment],
    members: Sequence[MemberEffectiveSkills],
    requirements: Sequence[TaskSkillRequirement],
    agent: Optional[BaseAssignmentAgent] = None,
    timeout_sec: float = 30.0,
    require_balance: bool = True,
    project_id: str = "",
    project_name: str = "",
    project_description: str = "",
) -> AssignmentRun:
    """Assign eligible tasks, trying the agent first when one is given.

    Args:
        tasks: Project tasks
        members: Members with effective skills and load
        requirements: Task skill requirements
        agent: Optional external proposal source
        timeout_sec: Attempt window for the agent
        require_balance: Also reject proposals that skew member load
        project_id: Project id passed to the agent
        project_name: Project name passed to the agent
        project_description: Project description passed to the agent

    Returns:
        AssignmentRun naming the path that produced the result
    """
    latency_ms = None

    if agent is not None and members:
        request = AssignmentRequest(
            tasks=list(tasks),
            members=list(members),
            requirements=list(requirements),
            project_id=project_id,
            project_name=project_name,
            project_description=project_description,
        )
        result, latency_ms = await _try_agent(agent, request, timeout_sec, require_balance)
        if result is not None:
            logger.info(f"Accepted {result.assigned_count} AI-proposed assignments")
            return AssignmentRun(
                result=result,
                mode=AssignmentMode.OPENAI,
                model=agent.model,
                latency_ms=latency_ms,
            )
        logger.info(f"Falling back to deterministic assignment for project {project_id or '-'}")

    return AssignmentRun(
        result=assign_tasks(tasks, members, requirements),
        mode=AssignmentMode.DETERMINISTIC,
        model=agent.model if agent is not None else None,
        latency_ms=latency_ms,
    )
