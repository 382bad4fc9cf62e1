"""Public API for YAML <-> graph conversion.

Load YAML into the editor::

    result = yaml_to_graph(yaml_text)
    nodes, edges, trigger = result.nodes, result.edges, result.trigger

Save the editor state back to YAML::

    yaml_text = graph_to_yaml(nodes, edges, trigger)
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from .config import CompilerConfig, get_config
from .core import (
    GraphEdge,
    GraphNode,
    GraphToIrConverter,
    IrToGraphConverter,
    RoundTripDifference,
    TriggerIR,
    WorkflowError,
    WorkflowIR,
    WorkflowMetadata,
    WorkflowParser,
    compare_workflows,
    parse_workflow,
    serialize_workflow,
    validate_dependencies,
)
from .core.round_trip import has_errors

logger = logging.getLogger(__name__)


class YamlToGraphResult(BaseModel):
    """Editor graph plus the IR it came from."""
    nodes: list[GraphNode] = Field(..., description="Editor nodes, one per step")
    edges: list[GraphEdge] = Field(..., description="Editor edges, one per dependency")
    trigger: TriggerIR = Field(..., description="Workflow trigger")
    ir: WorkflowIR = Field(..., description="Validated IR, kept for reference")
    was_legacy: bool = Field(False, description="Input used the legacy stages/blocks layout")


class ValidationResult(BaseModel):
    """Outcome of a validation-only parse."""
    valid: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None


class RoundTripReport(BaseModel):
    """Outcome of a round-trip fidelity check."""
    fidelity: bool
    original_yaml: str = ""
    converted_yaml: str = ""
    differences: list[RoundTripDifference] = Field(default_factory=list)


def yaml_to_graph(
    yaml_text: str,
    *,
    event_source_type: Optional[str] = None,
    event_source_params: Optional[Mapping[str, Any]] = None,
) -> YamlToGraphResult:
    """Convert YAML text to editor nodes and edges.

    Pipeline: YAML -> IR (validated, dependencies checked) -> graph. The
    stored step order is kept as-is. Legacy ``stages`` files are converted
    first, their trigger inferred from ``event_source_type``.

    Raises:
        WorkflowError: any parse, schema or dependency failure.
    """
    parsed = WorkflowParser(event_source_type, event_source_params).parse_with_info(yaml_text)
    ir = parsed.ir
    validate_dependencies(ir.steps)

    graph = IrToGraphConverter().convert(ir)
    return YamlToGraphResult(
        nodes=graph.nodes,
        edges=graph.edges,
        trigger=graph.trigger,
        ir=ir,
        was_legacy=parsed.was_legacy,
    )


def graph_to_yaml(
    nodes: Sequence[Union[GraphNode, Mapping[str, Any]]],
    edges: Sequence[Union[GraphEdge, Mapping[str, Any]]],
    trigger: Union[TriggerIR, Mapping[str, Any]],
    *,
    metadata: Union[WorkflowMetadata, Mapping[str, Any], None] = None,
    version: Optional[str] = None,
    config: Optional[CompilerConfig] = None,
) -> str:
    """Convert editor nodes and edges to YAML text.

    Pipeline: graph -> IR (topologically sorted, validated) -> YAML. Nothing
    is returned unless every stage succeeds.

    Raises:
        WorkflowError: cyclic or broken graph, invalid IR, or dump failure.
    """
    config = config or get_config()
    ir = GraphToIrConverter(config).convert(
        nodes, edges, trigger, metadata=metadata, version=version
    )
    return serialize_workflow(ir, config)


def validate_yaml(
    yaml_text: str,
    *,
    event_source_type: Optional[str] = None,
    event_source_params: Optional[Mapping[str, Any]] = None,
) -> ValidationResult:
    """Validate YAML text without returning the converted graph."""
    try:
        ir = parse_workflow(
            yaml_text,
            event_source_type=event_source_type,
            event_source_params=event_source_params,
        )
        validate_dependencies(ir.steps)
    except WorkflowError as e:
        logger.debug("Validation failed (%s): %s", e.kind, e.message)
        return ValidationResult(valid=False, error=e.message, error_kind=e.kind)
    return ValidationResult(valid=True)


def round_trip_check(yaml_text: str) -> RoundTripReport:
    """Check YAML -> graph -> YAML keeps the workflow's meaning.

    Both sides are compared as IR structures, so formatting differences do
    not count against fidelity.

    Raises:
        WorkflowError: the input itself cannot be loaded or saved.
    """
    config = get_config()
    loaded = yaml_to_graph(yaml_text)
    original_ir = loaded.ir

    converted_yaml = graph_to_yaml(
        loaded.nodes,
        loaded.edges,
        loaded.trigger,
        metadata=original_ir.metadata,
        version=original_ir.version,
        config=config,
    )
    converted_ir = parse_workflow(converted_yaml)

    differences = compare_workflows(original_ir, converted_ir, config.position_tolerance)
    return RoundTripReport(
        fidelity=not has_errors(differences),
        original_yaml=yaml_text,
        converted_yaml=converted_yaml,
        differences=differences,
    )


def graph_round_trip_check(
    nodes: Sequence[Union[GraphNode, Mapping[str, Any]]],
    edges: Sequence[Union[GraphEdge, Mapping[str, Any]]],
    trigger: Union[TriggerIR, Mapping[str, Any]],
) -> RoundTripReport:
    """Check graph -> IR -> YAML -> IR keeps the workflow's meaning.

    Raises:
        WorkflowError: the graph cannot be converted.
    """
    config = get_config()
    original_ir = GraphToIrConverter(config).convert(nodes, edges, trigger)
    converted_yaml = serialize_workflow(original_ir, config)
    converted_ir = parse_workflow(converted_yaml)

    differences = compare_workflows(original_ir, converted_ir, config.position_tolerance)
    return RoundTripReport(
        fidelity=not has_errors(differences),
        converted_yaml=converted_yaml,
        differences=differences,
    )
