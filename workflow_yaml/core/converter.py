"""Converters between the workflow IR and the editor graph model."""

import copy
import logging
import math
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..config import CompilerConfig, get_config
from .errors import SchemaIssue, SchemaValidationError
from .layout import PositionFn, vertical_position
from .models import (
    GraphConversionResult,
    GraphEdge,
    GraphNode,
    NodeData,
    Position,
    StepIR,
    TriggerIR,
    WorkflowIR,
    WorkflowMetadata,
)
from .schema import validate_workflow
from .topological_sort import assert_unique_ids, build_dependency_map, topological_sort

logger = logging.getLogger(__name__)

DEFAULT_EDGE_TYPE = "default"

NodeLike = Union[GraphNode, Mapping[str, Any]]
EdgeLike = Union[GraphEdge, Mapping[str, Any]]

_NODE_LIST = TypeAdapter(list[GraphNode])
_EDGE_LIST = TypeAdapter(list[GraphEdge])


def edge_id(source: str, target: str) -> str:
    """Stable edge id for a dependency pair."""
    return f"{source}->{target}"


class IrToGraphConverter:
    """Convert a workflow IR to editor nodes and edges.

    Steps are emitted in stored order; the IR is not re-sorted.
    """

    def __init__(self, position_fn: PositionFn = vertical_position):
        """Initialize converter with the layout used for unpositioned steps."""
        self.position_fn = position_fn

    def convert(self, ir: WorkflowIR) -> GraphConversionResult:
        """Convert IR to graph nodes and edges."""
        nodes: list[GraphNode] = []
        edges: list[GraphEdge] = []
        total = len(ir.steps)

        for index, step in enumerate(ir.steps):
            nodes.append(self._convert_step(step, index, total))

            seen: set[str] = set()
            for dep_id in step.depends_on or []:
                if dep_id in seen:
                    continue
                seen.add(dep_id)
                edges.append(GraphEdge(
                    id=edge_id(dep_id, step.id),
                    source=dep_id,
                    target=step.id,
                    type=DEFAULT_EDGE_TYPE,
                ))

        logger.debug("Converted IR to %d nodes and %d edges", len(nodes), len(edges))
        return GraphConversionResult(
            nodes=nodes,
            edges=edges,
            trigger=ir.trigger.model_copy(deep=True),
        )

    def _convert_step(self, step: StepIR, index: int, total: int) -> GraphNode:
        """Convert a single step to a node."""
        if step.position is not None:
            position = step.position.model_copy()
        else:
            position = self.position_fn(index, total)

        return GraphNode(
            id=step.id,
            type=step.type,
            position=position,
            data=NodeData(label=step.name, config=copy.deepcopy(step.config)),
        )


class GraphToIrConverter:
    """Convert editor nodes and edges back to a sorted, validated IR."""

    def __init__(self, config: Optional[CompilerConfig] = None):
        """Initialize converter with configuration."""
        self.config = config or get_config()

    def convert(
        self,
        nodes: Sequence[NodeLike],
        edges: Sequence[EdgeLike],
        trigger: Union[TriggerIR, Mapping[str, Any]],
        *,
        metadata: Union[WorkflowMetadata, Mapping[str, Any], None] = None,
        version: Optional[str] = None,
    ) -> WorkflowIR:
        """Convert graph to IR.

        Raises:
            SchemaValidationError: malformed nodes, edges, trigger or steps.
            DuplicateStepIdError: two nodes share an id.
            UnknownDependencyError: an edge starts at a missing node.
            CircularDependencyError: the edges form a cycle.
        """
        graph_nodes, graph_edges = self._load_graph(nodes, edges)

        dependency_map = build_edge_dependency_map(graph_edges)
        steps = [self._convert_node(node, dependency_map.get(node.id)) for node in graph_nodes]

        assert_unique_ids(steps)
        sorted_steps = topological_sort(steps, build_dependency_map(steps))

        raw: dict[str, Any] = {
            "version": version or self.config.default_version,
            "trigger": _as_dict(trigger),
            "steps": [step.to_dict() for step in sorted_steps],
        }
        if metadata is not None:
            raw["metadata"] = _as_dict(metadata)

        ir = validate_workflow(raw)
        logger.debug("Converted graph with %d nodes to IR", len(graph_nodes))
        return ir

    def _load_graph(
        self,
        nodes: Sequence[NodeLike],
        edges: Sequence[EdgeLike],
    ) -> tuple[list[GraphNode], list[GraphEdge]]:
        """Validate raw editor state, reporting node and edge problems together."""
        issues: list[SchemaIssue] = []
        graph_nodes: list[GraphNode] = []
        graph_edges: list[GraphEdge] = []

        try:
            graph_nodes = _NODE_LIST.validate_python(list(nodes))
        except ValidationError as e:
            issues.extend(_issues_from_pydantic(e, "nodes"))

        try:
            graph_edges = _EDGE_LIST.validate_python(list(edges))
        except ValidationError as e:
            issues.extend(_issues_from_pydantic(e, "edges"))

        if issues:
            raise SchemaValidationError(issues, prefix="Graph validation error")
        return graph_nodes, graph_edges

    def _convert_node(self, node: GraphNode, depends_on: Optional[list[str]]) -> StepIR:
        """Convert a single node to a step."""
        return StepIR(
            id=node.id,
            name=node.data.label or node.id,
            type=node.type,
            config=copy.deepcopy(node.data.config),
            depends_on=list(depends_on) if depends_on else None,
            position=self._convert_position(node.position),
        )

    def _convert_position(self, position: Position) -> Position:
        if not self.config.round_positions:
            return position.model_copy()
        # leave non-finite values for the schema check to report
        if not (math.isfinite(position.x) and math.isfinite(position.y)):
            return position.model_copy()
        return Position(x=_round_half_up(position.x), y=_round_half_up(position.y))


def _round_half_up(value: float) -> int:
    # 2.5 -> 3, -2.5 -> -2
    return math.floor(value + 0.5)


def build_edge_dependency_map(edges: Sequence[GraphEdge]) -> dict[str, list[str]]:
    """Map each edge target to the ordered, unique sources pointing at it.

    Edges with an empty source or target are ignored.
    """
    dependency_map: dict[str, list[str]] = {}
    for edge in edges:
        if not edge.source or not edge.target:
            continue
        sources = dependency_map.setdefault(edge.target, [])
        if edge.source not in sources:
            sources.append(edge.source)
    return dependency_map


def _as_dict(value: Any) -> Any:
    """Plain-data form of an IR model; other values pass through."""
    if isinstance(value, BaseModel):
        to_dict = getattr(value, "to_dict", None)
        return to_dict() if to_dict is not None else value.model_dump()
    return value


def _issues_from_pydantic(error: ValidationError, root: str) -> list[SchemaIssue]:
    return [
        SchemaIssue((root,) + tuple(detail["loc"]), detail["msg"])
        for detail in error.errors()
    ]
