"""Pytest configuration and shared fixtures."""

import pytest
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from workflow_yaml.config import CompilerConfig
from workflow_yaml.core import (
    GraphToIrConverter,
    IrToGraphConverter,
    StepIR,
    WorkflowIR,
    WorkflowParser,
)


@pytest.fixture
def sample_yaml() -> str:
    """Three-step linear workflow without stored positions."""
    return '''version: "1.0"
trigger:
  type: schedule
  config:
    cron: "0 9 * * 1-5"
steps:
  - id: fetch_orders
    name: Fetch orders
    type: table_operation
    config:
      table: orders
      action: list
  - id: build_report
    name: Build report
    type: math
    depends_on:
      - fetch_orders
    config:
      expression: sum(orders.total)
  - id: send_report
    name: Send report
    type: smtp_email
    depends_on:
      - build_report
    config:
      to: ops@example.com
      subject: Daily report
metadata:
  description: Daily order report
  tags:
    - reports
    - email
'''


@pytest.fixture
def branching_yaml() -> str:
    """Workflow where two steps fan out from one, with stored positions."""
    return '''version: "1.0"
trigger:
  type: webhook
  config:
    path: /hooks/signup
steps:
  - id: receive
    name: Receive signup
    type: log
    config: {}
    position: {x: 10, y: 20}
  - id: welcome
    name: Send welcome
    type: smtp_email
    depends_on: [receive]
    config:
      template: welcome
    position: {x: 10, y: 200}
  - id: record
    name: Record user
    type: table_operation
    depends_on: [receive]
    config:
      table: users
    position: {x: 300, y: 200}
'''


@pytest.fixture
def legacy_yaml() -> str:
    """Two-stage workflow in the legacy stages/blocks layout."""
    return '''stages:
  - name: intake
    blocks:
      - type: table
        name: Load order
        input:
          table: orders
      - type: condition
        name: In stock
        input:
          expressions:
            - "stock > 0"
        then:
          - type: smtp_email
            name: Confirm order
            input: {to: "{{email}}"}
        else:
          - type: log
            name: Log backorder
            input: {message: backorder}
  - name: follow up
    blocks:
      - type: api_call
        name: Notify warehouse
        input:
          url: https://warehouse.example.com/orders
          request_type: POST
'''


@pytest.fixture
def sample_graph() -> Dict[str, Any]:
    """Editor state for a two-step workflow, as plain JSON data."""
    return {
        "nodes": [
            {
                "id": "notify",
                "type": "log",
                "position": {"x": 400.4, "y": 220.6},
                "data": {"label": "Notify", "config": {"message": "done"}},
            },
            {
                "id": "load",
                "type": "table_operation",
                "position": {"x": 400, "y": 100},
                "data": {"label": "Load rows", "config": {"table": "tasks"}},
            },
        ],
        "edges": [
            {"id": "load->notify", "source": "load", "target": "notify", "type": "default"},
        ],
        "trigger": {"type": "form", "config": {"form_id": "f-1"}},
    }


@pytest.fixture
def make_step() -> Callable[..., StepIR]:
    """Factory for minimal steps."""
    def _make(step_id: str, depends_on: Optional[List[str]] = None, **fields: Any) -> StepIR:
        return StepIR(
            id=step_id,
            name=fields.pop("name", step_id.title()),
            type=fields.pop("type", "log"),
            config=fields.pop("config", {}),
            depends_on=depends_on,
            **fields,
        )
    return _make


@pytest.fixture
def make_workflow(make_step) -> Callable[..., WorkflowIR]:
    """Factory for workflows from ``(id, depends_on)`` pairs."""
    def _make(*specs, trigger_type: str = "schedule") -> WorkflowIR:
        steps = [make_step(step_id, deps) for step_id, deps in specs]
        return WorkflowIR(
            version="1.0",
            trigger={"type": trigger_type, "config": {}},
            steps=steps,
        )
    return _make


@pytest.fixture
def workflow_parser() -> WorkflowParser:
    """Workflow parser instance."""
    return WorkflowParser()


@pytest.fixture
def ir_to_graph_converter() -> IrToGraphConverter:
    """IR to graph converter instance."""
    return IrToGraphConverter()


@pytest.fixture
def graph_to_ir_converter() -> GraphToIrConverter:
    """Graph to IR converter instance with default settings."""
    return GraphToIrConverter(CompilerConfig())


@pytest.fixture
def temp_yaml_file(tmp_path: Path, sample_yaml: str) -> Path:
    """Create a temporary workflow YAML file."""
    yaml_file = tmp_path / "workflow.yaml"
    yaml_file.write_text(sample_yaml)
    return yaml_file


@pytest.fixture
def temp_graph_file(tmp_path: Path, sample_graph: Dict[str, Any]) -> Path:
    """Create a temporary graph JSON file."""
    graph_file = tmp_path / "graph.json"
    graph_file.write_text(json.dumps(sample_graph, indent=2))
    return graph_file
