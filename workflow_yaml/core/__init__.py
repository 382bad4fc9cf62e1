"""Core package for workflow YAML conversion.

This package provides parsing, validation, ordering and conversion between
workflow YAML text, the intermediate representation (IR) and the editor's
node/edge graph model.

Classes:
    WorkflowParser: Parse YAML text (current or legacy layout) into a validated IR
    IrToGraphConverter: Convert IR to editor nodes and edges
    GraphToIrConverter: Convert editor nodes and edges to a sorted IR

    WorkflowIR: Root IR model representing a complete workflow
    TriggerIR: IR model for the event that starts a workflow
    StepIR: IR model for a single step
    GraphNode: Editor node
    GraphEdge: Editor edge

Functions:
    parse_workflow: Parse YAML text into IR
    convert_legacy_to_ir: Flatten a legacy stages/blocks document into steps
    serialize_workflow: Serialize IR into YAML text
    topological_sort: Order steps by dependency
    validate_workflow: Validate raw data against the workflow schema
"""

from .errors import (
    CircularDependencyError,
    DuplicateStepIdError,
    SchemaIssue,
    SchemaValidationError,
    SerializationValidationError,
    UnknownDependencyError,
    WorkflowError,
    YAMLSerializationError,
    YAMLSyntaxError,
)
from .models import (
    GraphConversionResult,
    GraphEdge,
    GraphNode,
    NodeData,
    Position,
    StepIR,
    TriggerIR,
    WorkflowIR,
    ParseResult,
    WorkflowMetadata,
)
from .schema import collect_issues, validate_workflow
from .legacy import adapt_to_ir, convert_legacy_to_ir, is_legacy_format
from .parser import WorkflowParser, parse_workflow, is_legacy_yaml, is_valid_workflow
from .topological_sort import (
    assert_unique_ids,
    build_dependency_map,
    topological_sort,
    validate_dependencies,
)
from .layout import apply_grid_layout, grid_position, vertical_position
from .converter import GraphToIrConverter, IrToGraphConverter
from .serializer import serialize_workflow, serialize_workflow_with_options
from .round_trip import RoundTripDifference, compare_workflows

__all__ = [
    "CircularDependencyError",
    "DuplicateStepIdError",
    "SchemaIssue",
    "SchemaValidationError",
    "SerializationValidationError",
    "UnknownDependencyError",
    "WorkflowError",
    "YAMLSerializationError",
    "YAMLSyntaxError",
    "GraphConversionResult",
    "GraphEdge",
    "GraphNode",
    "NodeData",
    "Position",
    "StepIR",
    "TriggerIR",
    "WorkflowIR",
    "ParseResult",
    "WorkflowMetadata",
    "collect_issues",
    "validate_workflow",
    "WorkflowParser",
    "parse_workflow",
    "is_valid_workflow",
    "is_legacy_yaml",
    "adapt_to_ir",
    "convert_legacy_to_ir",
    "is_legacy_format",
    "assert_unique_ids",
    "build_dependency_map",
    "topological_sort",
    "validate_dependencies",
    "apply_grid_layout",
    "grid_position",
    "vertical_position",
    "GraphToIrConverter",
    "IrToGraphConverter",
    "serialize_workflow",
    "serialize_workflow_with_options",
    "RoundTripDifference",
    "compare_workflows",
]
