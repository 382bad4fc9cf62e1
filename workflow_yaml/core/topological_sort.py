"""Topological sort with cycle detection for workflow steps.

Depth-first search with three states per step. A step is emitted only after
all of its dependencies; steps with no ordering constraint between them keep
their input order.
"""

import logging
from enum import Enum
from typing import Iterator, Mapping, Sequence

from .errors import CircularDependencyError, DuplicateStepIdError, UnknownDependencyError
from .models import StepIR

logger = logging.getLogger(__name__)


class VisitState(Enum):
    UNVISITED = "unvisited"
    VISITING = "visiting"
    VISITED = "visited"


def build_dependency_map(steps: Sequence[StepIR]) -> dict[str, list[str]]:
    """Map each step id to its dependency ids. Steps without any are left out."""
    return {
        step.id: list(step.depends_on)
        for step in steps
        if step.depends_on
    }


def assert_unique_ids(steps: Sequence[StepIR]) -> None:
    """Raise ``DuplicateStepIdError`` listing every repeated id once."""
    seen: set[str] = set()
    duplicates: list[str] = []

    for step in steps:
        if step.id in seen:
            if step.id not in duplicates:
                duplicates.append(step.id)
        else:
            seen.add(step.id)

    if duplicates:
        raise DuplicateStepIdError(duplicates)


def topological_sort(
    steps: Sequence[StepIR],
    dependency_map: Mapping[str, Sequence[str]],
) -> list[StepIR]:
    """Return ``steps`` in dependency order.

    Args:
        steps: Steps in authored order.
        dependency_map: Step id -> ids it depends on.

    Raises:
        UnknownDependencyError: a dependency id matches no step.
        CircularDependencyError: the dependencies form a cycle.
    """
    steps_by_id: dict[str, StepIR] = {}
    for step in steps:
        steps_by_id.setdefault(step.id, step)

    state: dict[str, VisitState] = {}
    path: list[str] = []
    ordered: list[StepIR] = []

    def dependencies_of(step_id: str) -> Iterator[str]:
        return iter(dependency_map.get(step_id, ()))

    def enter(step_id: str, stack: list[tuple[str, Iterator[str]]]) -> None:
        state[step_id] = VisitState.VISITING
        path.append(step_id)
        stack.append((step_id, dependencies_of(step_id)))

    def visit(root_id: str) -> None:
        if state.get(root_id) is VisitState.VISITED:
            return

        stack: list[tuple[str, Iterator[str]]] = []
        enter(root_id, stack)

        while stack:
            step_id, pending = stack[-1]
            for dep_id in pending:
                if dep_id not in steps_by_id:
                    raise UnknownDependencyError(step_id, dep_id)

                dep_state = state.get(dep_id, VisitState.UNVISITED)
                if dep_state is VisitState.VISITED:
                    continue
                if dep_state is VisitState.VISITING:
                    cycle = path[path.index(dep_id):] + [dep_id]
                    raise CircularDependencyError(cycle)

                enter(dep_id, stack)
                break
            else:
                # every dependency emitted
                stack.pop()
                path.pop()
                state[step_id] = VisitState.VISITED
                ordered.append(steps_by_id[step_id])

    for step in steps:
        visit(step.id)

    logger.debug("Sorted %d steps: %s", len(ordered), [s.id for s in ordered])
    return ordered


def validate_dependencies(steps: Sequence[StepIR]) -> None:
    """Check ids are unique, references resolve and there is no cycle.

    The order of ``steps`` is left untouched.
    """
    assert_unique_ids(steps)
    topological_sort(steps, build_dependency_map(steps))
