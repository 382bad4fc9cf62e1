"""Workflow YAML - bidirectional compiler between workflow YAML and an editor graph.

This package converts declarative workflow definitions (a trigger plus
ordered, dependent steps) into the node/edge model consumed by a visual
editor, and converts that model back into YAML for storage.

Example:
    Load a workflow into the editor and save it again:

    >>> from workflow_yaml import yaml_to_graph, graph_to_yaml
    >>> result = yaml_to_graph(yaml_text)
    >>> yaml_text = graph_to_yaml(result.nodes, result.edges, result.trigger)

    Or use the CLI:

    $ python -m workflow_yaml validate workflow.yaml

Key Features:
    - Exhaustive schema validation (every problem reported at once)
    - Deterministic cycle detection with the offending path
    - Topological ordering of persisted steps
    - Deterministic auto-layout for unpositioned steps
    - Structural round-trip fidelity checks

Modules:
    core: IR models, parser, sorter, converters and serializer
    api: Public conversion entry points
    cli: Command-line interface
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .api import (
    graph_round_trip_check,
    graph_to_yaml,
    round_trip_check,
    validate_yaml,
    yaml_to_graph,
)
from .core import WorkflowError, WorkflowIR, parse_workflow, serialize_workflow

__all__ = [
    "graph_round_trip_check",
    "graph_to_yaml",
    "round_trip_check",
    "validate_yaml",
    "yaml_to_graph",
    "WorkflowError",
    "WorkflowIR",
    "parse_workflow",
    "serialize_workflow",
]
