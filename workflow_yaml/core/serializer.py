"""Serializer from workflow IR to YAML text."""

import logging
from typing import Any, Mapping, Optional, Union

import yaml

from ..config import CompilerConfig, get_config
from .errors import SchemaValidationError, SerializationValidationError, YAMLSerializationError
from .models import WorkflowIR
from .schema import validate_workflow

logger = logging.getLogger(__name__)


class WorkflowDumper(yaml.SafeDumper):
    """SafeDumper that never emits anchors/aliases and indents sequences."""

    def ignore_aliases(self, data: Any) -> bool:
        return True

    def increase_indent(self, flow: bool = False, indentless: bool = False):
        return super().increase_indent(flow, False)


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    # multi-line text reads best as a literal block
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


WorkflowDumper.add_representer(str, _represent_str)


def _validated_data(ir: Union[WorkflowIR, Mapping[str, Any]]) -> dict[str, Any]:
    """Re-validate before dumping and return the persisted mapping."""
    raw = ir.to_dict() if isinstance(ir, WorkflowIR) else ir
    try:
        return validate_workflow(raw).to_dict()
    except SchemaValidationError as e:
        raise SerializationValidationError(e) from e


def serialize_workflow_with_options(
    ir: Union[WorkflowIR, Mapping[str, Any]],
    config: Optional[CompilerConfig] = None,
    **dump_options: Any,
) -> str:
    """Serialize IR to YAML with custom ``yaml.dump`` options.

    Raises:
        SerializationValidationError: the IR is structurally invalid.
        YAMLSerializationError: PyYAML could not dump the IR.
    """
    config = config or get_config()
    data = _validated_data(ir)

    options: dict[str, Any] = {
        "Dumper": WorkflowDumper,
        "indent": config.yaml_indent,
        "width": config.yaml_line_width,
        "sort_keys": False,
        "default_flow_style": False,
        "allow_unicode": True,
    }
    options.update(dump_options)

    try:
        text = yaml.dump(data, **options)
    except yaml.YAMLError as e:
        raise YAMLSerializationError(f"YAML serialization error: {e}", e) from e
    except RecursionError as e:
        raise YAMLSerializationError("YAML serialization error: value refers to itself or is nested too deeply", e) from e

    logger.debug("Serialized workflow with %d steps (%d chars)", len(data["steps"]), len(text))
    return text


def serialize_workflow(
    ir: Union[WorkflowIR, Mapping[str, Any]],
    config: Optional[CompilerConfig] = None,
) -> str:
    """Serialize IR to YAML text.

    Output uses 2-space indentation, wraps around 120 columns, keeps key
    order as authored and writes every value out in full.
    """
    return serialize_workflow_with_options(ir, config)
