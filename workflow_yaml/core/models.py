"""IR and graph model definitions for workflow YAML conversion."""

import copy
from typing import Any, Literal, Optional, Union, get_args
from pydantic import BaseModel, Field


TriggerType = Literal["schedule", "webhook", "form", "table"]
TRIGGER_TYPES: tuple[str, ...] = get_args(TriggerType)


class Position(BaseModel):
    """Canvas coordinates."""
    x: Union[int, float]
    y: Union[int, float]


class TriggerIR(BaseModel):
    """Event source that starts a workflow."""
    type: TriggerType
    config: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "config": copy.deepcopy(self.config)}


class StepIR(BaseModel):
    """One unit of work in a workflow."""
    id: str
    name: str
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    depends_on: Optional[list[str]] = None
    position: Optional[Position] = None

    def to_dict(self) -> dict[str, Any]:
        """Persisted form, unset optional fields omitted."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "config": copy.deepcopy(self.config),
        }
        if self.depends_on is not None:
            data["depends_on"] = list(self.depends_on)
        if self.position is not None:
            data["position"] = {"x": self.position.x, "y": self.position.y}
        return data


class WorkflowMetadata(BaseModel):
    """Free-form descriptive data."""
    description: Optional[str] = None
    tags: Optional[list[str]] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.description is not None:
            data["description"] = self.description
        if self.tags is not None:
            data["tags"] = list(self.tags)
        return data


class WorkflowIR(BaseModel):
    """Complete workflow: trigger plus ordered steps."""
    version: str
    trigger: TriggerIR
    steps: list[StepIR] = Field(default_factory=list)
    metadata: Optional[WorkflowMetadata] = None

    def to_dict(self) -> dict[str, Any]:
        """Persisted form with key order version, trigger, steps, metadata."""
        data: dict[str, Any] = {
            "version": self.version,
            "trigger": self.trigger.to_dict(),
            "steps": [step.to_dict() for step in self.steps],
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data

    def get_step(self, step_id: str) -> StepIR | None:
        """Find step by id."""
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def list_step_ids(self) -> list[str]:
        """Get list of all step ids in stored order."""
        return [step.id for step in self.steps]


class NodeData(BaseModel):
    """Editor payload carried by a graph node."""
    label: str = ""
    config: dict[str, Any] = Field(default_factory=dict)


class GraphNode(BaseModel):
    """Editor node, one per step."""
    id: str
    type: str = ""
    position: Position = Field(default_factory=lambda: Position(x=0, y=0))
    data: NodeData = Field(default_factory=NodeData)


class GraphEdge(BaseModel):
    """Editor edge from a dependency to the step that needs it."""
    id: str = ""
    source: str
    target: str
    type: str = "default"


class GraphConversionResult(BaseModel):
    """Nodes and edges produced from an IR."""
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    trigger: TriggerIR


class ParseResult(BaseModel):
    """Parsed IR plus the format the text was written in."""
    ir: WorkflowIR
    was_legacy: bool = False
