"""Structural validation of raw workflow data.

The checks never stop at the first problem: every violation is collected as
a ``SchemaIssue`` so a user can fix all of them in one pass. Validated data
is then loaded into the pydantic IR models.
"""

import math
import re
from typing import Any, Mapping

from .errors import PathPart, SchemaIssue, SchemaValidationError
from .models import TRIGGER_TYPES, WorkflowIR


STEP_ID_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")

Path = tuple[PathPart, ...]


def describe_type(value: Any) -> str:
    """Name a value's type the way a YAML/JSON author thinks of it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _expected(kind: str, value: Any) -> str:
    return f"Expected {kind}, received {describe_type(value)}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_string_map(value: Any, path: Path, issues: list[SchemaIssue]) -> None:
    if not isinstance(value, Mapping):
        issues.append(SchemaIssue(path, _expected("object", value)))
        return
    for key in value:
        if not isinstance(key, str):
            issues.append(SchemaIssue(path + (str(key),), "Keys must be strings"))


def _check_required_string(
    data: Mapping,
    key: str,
    path: Path,
    issues: list[SchemaIssue],
    empty_message: str | None = None,
) -> None:
    if key not in data:
        issues.append(SchemaIssue(path + (key,), "Required"))
        return
    value = data[key]
    if not isinstance(value, str):
        issues.append(SchemaIssue(path + (key,), _expected("string", value)))
    elif empty_message and not value:
        issues.append(SchemaIssue(path + (key,), empty_message))


def _check_trigger(trigger: Any, path: Path, issues: list[SchemaIssue]) -> None:
    if not isinstance(trigger, Mapping):
        issues.append(SchemaIssue(path, _expected("object", trigger)))
        return

    if "type" not in trigger:
        issues.append(SchemaIssue(path + ("type",), "Required"))
    elif trigger["type"] not in TRIGGER_TYPES or not isinstance(trigger["type"], str):
        allowed = " | ".join(f"'{t}'" for t in TRIGGER_TYPES)
        issues.append(SchemaIssue(
            path + ("type",),
            f"Invalid enum value. Expected {allowed}, received {trigger['type']!r}",
        ))

    if "config" not in trigger:
        issues.append(SchemaIssue(path + ("config",), "Required"))
    else:
        _check_string_map(trigger["config"], path + ("config",), issues)


def _check_position(position: Any, path: Path, issues: list[SchemaIssue]) -> None:
    if not isinstance(position, Mapping):
        issues.append(SchemaIssue(path, _expected("object", position)))
        return
    for axis in ("x", "y"):
        if axis not in position:
            issues.append(SchemaIssue(path + (axis,), "Required"))
            continue
        value = position[axis]
        if not _is_number(value):
            issues.append(SchemaIssue(path + (axis,), _expected("number", value)))
        elif not math.isfinite(value):
            issues.append(SchemaIssue(path + (axis,), "Number must be finite"))


def _check_step(step: Any, path: Path, issues: list[SchemaIssue]) -> None:
    if not isinstance(step, Mapping):
        issues.append(SchemaIssue(path, _expected("object", step)))
        return

    _check_required_string(step, "id", path, issues, "Step ID cannot be empty")
    step_id = step.get("id")
    if isinstance(step_id, str) and step_id and not STEP_ID_PATTERN.fullmatch(step_id):
        issues.append(SchemaIssue(
            path + ("id",),
            "Step ID must contain only alphanumeric characters, underscores, and hyphens",
        ))
    _check_required_string(step, "name", path, issues, "Step name cannot be empty")
    _check_required_string(step, "type", path, issues, "Step type cannot be empty")

    if "config" not in step:
        issues.append(SchemaIssue(path + ("config",), "Required"))
    else:
        _check_string_map(step["config"], path + ("config",), issues)

    depends_on = step.get("depends_on")
    if depends_on is not None:
        if not isinstance(depends_on, list):
            issues.append(SchemaIssue(path + ("depends_on",), _expected("array", depends_on)))
        else:
            for index, dep in enumerate(depends_on):
                dep_path = path + ("depends_on", index)
                if not isinstance(dep, str):
                    issues.append(SchemaIssue(dep_path, _expected("string", dep)))
                elif not dep:
                    issues.append(SchemaIssue(dep_path, "Dependency ID cannot be empty"))

    if step.get("position") is not None:
        _check_position(step["position"], path + ("position",), issues)


def _check_metadata(metadata: Any, path: Path, issues: list[SchemaIssue]) -> None:
    if not isinstance(metadata, Mapping):
        issues.append(SchemaIssue(path, _expected("object", metadata)))
        return
    description = metadata.get("description")
    if description is not None and not isinstance(description, str):
        issues.append(SchemaIssue(path + ("description",), _expected("string", description)))
    tags = metadata.get("tags")
    if tags is not None:
        if not isinstance(tags, list):
            issues.append(SchemaIssue(path + ("tags",), _expected("array", tags)))
        else:
            for index, tag in enumerate(tags):
                if not isinstance(tag, str):
                    issues.append(SchemaIssue(path + ("tags", index), _expected("string", tag)))


def collect_issues(raw: Any) -> list[SchemaIssue]:
    """Return every structural violation in ``raw``; empty when valid."""
    issues: list[SchemaIssue] = []

    if not isinstance(raw, Mapping):
        issues.append(SchemaIssue((), _expected("object", raw)))
        return issues

    if "version" not in raw:
        issues.append(SchemaIssue(("version",), "Required"))
    elif not isinstance(raw["version"], str):
        issues.append(SchemaIssue(("version",), _expected("string", raw["version"])))

    if "trigger" not in raw:
        issues.append(SchemaIssue(("trigger",), "Required"))
    else:
        _check_trigger(raw["trigger"], ("trigger",), issues)

    if "steps" not in raw:
        issues.append(SchemaIssue(("steps",), "Required"))
    elif not isinstance(raw["steps"], list):
        issues.append(SchemaIssue(("steps",), _expected("array", raw["steps"])))
    else:
        for index, step in enumerate(raw["steps"]):
            _check_step(step, ("steps", index), issues)

    if raw.get("metadata") is not None:
        _check_metadata(raw["metadata"], ("metadata",), issues)

    return issues


def validate_workflow(raw: Any) -> WorkflowIR:
    """Validate raw data and load it into a ``WorkflowIR``.

    Raises:
        SchemaValidationError: with every issue found.
    """
    issues = collect_issues(raw)
    if issues:
        raise SchemaValidationError(issues)
    return WorkflowIR.model_validate(dict(raw))
