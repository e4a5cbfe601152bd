"""Dependency graph validation.

Checks a finish-to-start edge set before a plan is locked: every edge must
join two distinct known tasks, no edge may repeat, and the graph must be
acyclic. Failures are returned as data so callers can decide what to show.
"""

import heapq
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .models import DependencyEdge

logger = logging.getLogger(__name__)


class DependencyErrorReason(str, Enum):
    """Why a dependency graph was rejected."""

    SELF_DEPENDENCY = "SELF_DEPENDENCY"
    UNKNOWN_TASK = "UNKNOWN_TASK"
    DUPLICATE_EDGE = "DUPLICATE_EDGE"
    CYCLE = "CYCLE"


@dataclass(frozen=True)
class GraphValid:
    """Accepted graph with its deterministic topological order."""

    topological_order: list[str] = field(default_factory=list)
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class GraphInvalid:
    """Rejected graph.

    ``edge`` names the offending edge, except for cycles where membership
    is not pinpointed.
    """

    reason: DependencyErrorReason
    edge: Optional[DependencyEdge] = None
    ok: bool = field(default=False, init=False)


DependencyValidationResult = Union[GraphValid, GraphInvalid]


def _check_edges(
    task_ids: set[str], edges: list[DependencyEdge]
) -> Optional[GraphInvalid]:
    """Run the per-edge checks in precedence order."""
    seen: set[tuple[str, str]] = set()

    for edge in edges:
        if edge.task_id == edge.depends_on_task_id:
            return GraphInvalid(DependencyErrorReason.SELF_DEPENDENCY, edge)

        if edge.task_id not in task_ids or edge.depends_on_task_id not in task_ids:
            return GraphInvalid(DependencyErrorReason.UNKNOWN_TASK, edge)

        key = (edge.task_id, edge.depends_on_task_id)
        if key in seen:
            return GraphInvalid(DependencyErrorReason.DUPLICATE_EDGE, edge)
        seen.add(key)

    return None


def _kahn_order(task_ids: list[str], edges: list[DependencyEdge]) -> list[str]:
    """Topological order always taking the smallest ready id."""
    indegree: dict[str, int] = {t: 0 for t in task_ids}
    adjacency: dict[str, list[str]] = {t: [] for t in task_ids}

    for edge in edges:
        adjacency[edge.depends_on_task_id].append(edge.task_id)
        indegree[edge.task_id] += 1

    ready = [t for t in task_ids if indegree[t] == 0]
    heapq.heapify(ready)
    order: list[str] = []

    while ready:
        current = heapq.heappop(ready)
        order.append(current)
        for dependent in adjacency[current]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                heapq.heappush(ready, dependent)

    return order


def validate_dependency_graph(
    task_ids: Iterable[str],
    edges: Iterable[DependencyEdge],
) -> DependencyValidationResult:
    """Validate a dependency edge set.

    Args:
        task_ids: Ids of every task in the validation scope
        edges: Dependency edges, checked in list order

    Returns:
        GraphValid with the full topological order (ties broken by ascending
        id), or GraphInvalid naming the first problem found
    """
    id_list = sorted(set(task_ids))
    edge_list = list(edges)

    failure = _check_edges(set(id_list), edge_list)
    if failure is not None:
        logger.debug(f"Dependency graph rejected: {failure.reason.value} ({failure.edge})")
        return failure

    order = _kahn_order(id_list, edge_list)
    if len(order) < len(id_list):
        logger.debug(
            f"Dependency graph rejected: cycle among {len(id_list) - len(order)} tasks"
        )
        return GraphInvalid(DependencyErrorReason.CYCLE)

    return GraphValid(topological_order=order)
