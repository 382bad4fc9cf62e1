"""Adapter for the legacy ``stages``/``blocks`` workflow format.

Older workflows group blocks into named stages, and blocks can nest their
follow-up blocks::

    stages:
      - name: main
        blocks:
          - type: condition
            name: Check stock
            input:
              expressions: [...]
            then:
              - type: smtp_email
                name: Notify buyer

Blocks are flattened into steps in execution order (a block, then its
``blocks``, ``then`` and ``else`` children). A nested block depends on its
parent, and the first step of each stage depends on the last step of the
stage before it. Legacy files carry no trigger, so it is inferred from the
event source the workflow is attached to.
"""

import copy
import logging
import re
from typing import Any, Mapping, Optional

from .errors import PathPart, SchemaIssue, SchemaValidationError
from .schema import describe_type

logger = logging.getLogger(__name__)

LEGACY_VERSION = "1.0"

EVENT_SOURCE_TRIGGERS = {
    "ACTIVE_TABLE": "table",
    "WEBHOOK": "webhook",
    "OPTIN_FORM": "form",
    "SCHEDULE": "schedule",
}
DEFAULT_TRIGGER_TYPE = "webhook"

# Block types renamed in the step format; every other type is kept as-is
BLOCK_TYPE_RENAMES = {
    "table": "table_operation",
}

# Per block type: legacy input key -> step config key
INPUT_KEY_RENAMES = {
    "api_call": {"request_type": "requestType", "response_format": "responseFormat"},
    "loop": {"array": "items", "iterator": "itemVariable"},
}

CHILD_KEYS = ("blocks", "then", "else")

PLACEHOLDER_STEP = {
    "id": "placeholder_1",
    "name": "placeholder",
    "type": "log",
    "config": {"message": "Empty workflow - add steps", "level": "info"},
}

_INVALID_ID_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def is_legacy_format(raw: Any) -> bool:
    """Check whether loaded YAML uses the ``stages`` layout."""
    return isinstance(raw, Mapping) and isinstance(raw.get("stages"), list)


def is_ir_format(raw: Any) -> bool:
    """Check whether loaded YAML uses the ``trigger``/``steps`` layout."""
    return isinstance(raw, Mapping) and "trigger" in raw and "steps" in raw


def infer_trigger_type(event_source_type: Optional[str]) -> str:
    return EVENT_SOURCE_TRIGGERS.get(event_source_type or "", DEFAULT_TRIGGER_TYPE)


def map_block_type(block_type: Any) -> Any:
    if not isinstance(block_type, str):
        return block_type
    return BLOCK_TYPE_RENAMES.get(block_type, block_type)


def map_block_input(block_type: Any, block_input: Any) -> Any:
    """Copy a block's ``input`` into step config, renaming legacy keys."""
    if not isinstance(block_input, Mapping):
        # reported by the schema check as a non-object config
        return block_input

    config = copy.deepcopy(dict(block_input))
    for old_key, new_key in INPUT_KEY_RENAMES.get(block_type, {}).items():
        if old_key in config:
            config[new_key] = config.pop(old_key)
    return config


def _expected(kind: str, value: Any) -> str:
    return f"Expected {kind}, received {describe_type(value)}"


def _id_prefix(stage_name: Any) -> str:
    return _INVALID_ID_CHARS.sub("_", str(stage_name))


def _block_to_step(block: Mapping, step_id: str, counter: int, parent_id: Optional[str]) -> dict[str, Any]:
    block_type = block.get("type")
    step: dict[str, Any] = {
        "id": step_id,
        "name": block.get("name") or f"step_{counter}",
        "type": map_block_type(block_type),
        "config": map_block_input(block_type, block.get("input") or {}),
    }
    if parent_id is not None:
        step["depends_on"] = [parent_id]
    return step


def _flatten_blocks(
    blocks: list,
    prefix: str,
    path: tuple[PathPart, ...],
    issues: list[SchemaIssue],
) -> list[dict[str, Any]]:
    """Flatten one stage's block tree into steps, parents before children."""
    steps: list[dict[str, Any]] = []
    counter = 0
    stack = [(block, None, path + (index,)) for index, block in enumerate(blocks)]
    stack.reverse()

    while stack:
        block, parent_id, block_path = stack.pop()
        if not isinstance(block, Mapping):
            issues.append(SchemaIssue(block_path, _expected("object", block)))
            continue

        counter += 1
        step_id = f"{prefix}_{counter}"
        steps.append(_block_to_step(block, step_id, counter, parent_id))

        children = []
        for key in CHILD_KEYS:
            nested = block.get(key)
            if nested is None:
                continue
            if not isinstance(nested, list):
                issues.append(SchemaIssue(block_path + (key,), _expected("array", nested)))
                continue
            children.extend(
                (child, step_id, block_path + (key, index)) for index, child in enumerate(nested)
            )
        stack.extend(reversed(children))

    return steps


def convert_legacy_to_ir(
    raw: Mapping[str, Any],
    event_source_type: Optional[str] = None,
    event_source_params: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Convert a legacy ``stages`` document into raw workflow data.

    The result still goes through the normal schema validation.

    Raises:
        SchemaValidationError: stages or blocks that are not objects/arrays.
    """
    issues: list[SchemaIssue] = []
    steps: list[dict[str, Any]] = []
    previous_last: Optional[str] = None

    for index, stage in enumerate(raw["stages"]):
        if stage is None:
            continue
        path: tuple[PathPart, ...] = ("stages", index)
        if not isinstance(stage, Mapping):
            issues.append(SchemaIssue(path, _expected("object", stage)))
            continue

        blocks = stage.get("blocks") or []
        if not isinstance(blocks, list):
            issues.append(SchemaIssue(path + ("blocks",), _expected("array", blocks)))
            continue

        prefix = _id_prefix(stage.get("name") or f"stage_{index + 1}")
        stage_steps = _flatten_blocks(blocks, prefix, path + ("blocks",), issues)
        if not stage_steps:
            continue

        if previous_last is not None:
            depends_on = stage_steps[0].setdefault("depends_on", [])
            if previous_last not in depends_on:
                depends_on.append(previous_last)

        steps.extend(stage_steps)
        previous_last = stage_steps[-1]["id"]

    if issues:
        raise SchemaValidationError(issues, prefix="Legacy workflow validation error")

    if not steps:
        steps.append(copy.deepcopy(PLACEHOLDER_STEP))

    logger.debug("Converted legacy workflow with %d stages to %d steps", len(raw["stages"]), len(steps))
    return {
        "version": LEGACY_VERSION,
        "trigger": {
            "type": infer_trigger_type(event_source_type),
            "config": copy.deepcopy(dict(event_source_params or {})),
        },
        "steps": steps,
    }


def adapt_to_ir(
    raw: Any,
    event_source_type: Optional[str] = None,
    event_source_params: Optional[Mapping[str, Any]] = None,
) -> tuple[Any, bool]:
    """Return raw workflow data and whether it was converted from the legacy layout.

    Anything that is neither layout is returned unchanged for the schema check
    to report.
    """
    if is_ir_format(raw) or not is_legacy_format(raw):
        return raw, False
    return convert_legacy_to_ir(raw, event_source_type, event_source_params), True
