"""Structural comparison of two workflow IRs.

Used to check that converting a workflow to the graph model and back keeps
its meaning: same steps, same dependency wiring, same trigger and config.
"""

from typing import Any, Literal, Mapping

from pydantic import BaseModel

from .models import StepIR, WorkflowIR


DifferenceKind = Literal[
    "version_mismatch",
    "trigger_mismatch",
    "metadata_mismatch",
    "step_missing",
    "step_added",
    "name_mismatch",
    "step_type_mismatch",
    "config_mismatch",
    "dependency_mismatch",
    "position_drift",
    "order_changed",
]


class RoundTripDifference(BaseModel):
    """A single difference between the original and converted IR."""
    kind: DifferenceKind
    path: str
    expected: Any = None
    actual: Any = None
    severity: Literal["error", "warning"] = "error"

    def __str__(self) -> str:
        return f"{self.path}: {self.kind} (expected {self.expected!r}, got {self.actual!r})"


def deep_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps booleans distinct from numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left) != set(right):
            return False
        return all(deep_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            deep_equal(a, b) for a, b in zip(left, right)
        )
    return left == right


def _compare_step(
    expected: StepIR,
    actual: StepIR,
    position_tolerance: float,
) -> list[RoundTripDifference]:
    path = f"steps.{expected.id}"
    differences: list[RoundTripDifference] = []

    if expected.name != actual.name:
        differences.append(RoundTripDifference(
            kind="name_mismatch", path=f"{path}.name",
            expected=expected.name, actual=actual.name,
        ))
    if expected.type != actual.type:
        differences.append(RoundTripDifference(
            kind="step_type_mismatch", path=f"{path}.type",
            expected=expected.type, actual=actual.type,
        ))
    if not deep_equal(expected.config, actual.config):
        differences.append(RoundTripDifference(
            kind="config_mismatch", path=f"{path}.config",
            expected=expected.config, actual=actual.config,
        ))

    expected_deps = set(expected.depends_on or [])
    actual_deps = set(actual.depends_on or [])
    if expected_deps != actual_deps:
        differences.append(RoundTripDifference(
            kind="dependency_mismatch", path=f"{path}.depends_on",
            expected=sorted(expected_deps), actual=sorted(actual_deps),
        ))

    # only stored positions are compared; generated layout is ignored
    if expected.position is not None:
        actual_position = actual.position
        drifted = actual_position is None or (
            abs(expected.position.x - actual_position.x) > position_tolerance
            or abs(expected.position.y - actual_position.y) > position_tolerance
        )
        if drifted:
            differences.append(RoundTripDifference(
                kind="position_drift", path=f"{path}.position",
                expected=expected.position.model_dump(),
                actual=actual_position.model_dump() if actual_position else None,
                severity="warning",
            ))

    return differences


def compare_workflows(
    expected: WorkflowIR,
    actual: WorkflowIR,
    position_tolerance: float = 1.0,
) -> list[RoundTripDifference]:
    """List every structural difference between two IRs."""
    differences: list[RoundTripDifference] = []

    if expected.version != actual.version:
        differences.append(RoundTripDifference(
            kind="version_mismatch", path="version",
            expected=expected.version, actual=actual.version,
        ))

    if not deep_equal(expected.trigger.to_dict(), actual.trigger.to_dict()):
        differences.append(RoundTripDifference(
            kind="trigger_mismatch", path="trigger",
            expected=expected.trigger.to_dict(), actual=actual.trigger.to_dict(),
        ))

    expected_meta = expected.metadata.to_dict() if expected.metadata else {}
    actual_meta = actual.metadata.to_dict() if actual.metadata else {}
    if not deep_equal(expected_meta, actual_meta):
        differences.append(RoundTripDifference(
            kind="metadata_mismatch", path="metadata",
            expected=expected_meta, actual=actual_meta,
        ))

    actual_by_id = {step.id: step for step in actual.steps}
    expected_ids = {step.id for step in expected.steps}

    for step in expected.steps:
        other = actual_by_id.get(step.id)
        if other is None:
            differences.append(RoundTripDifference(
                kind="step_missing", path=f"steps.{step.id}", expected=step.id,
            ))
            continue
        differences.extend(_compare_step(step, other, position_tolerance))

    for step in actual.steps:
        if step.id not in expected_ids:
            differences.append(RoundTripDifference(
                kind="step_added", path=f"steps.{step.id}", actual=step.id,
            ))

    expected_order = [sid for sid in expected.list_step_ids() if sid in actual_by_id]
    actual_order = [sid for sid in actual.list_step_ids() if sid in expected_ids]
    if expected_order != actual_order:
        differences.append(RoundTripDifference(
            kind="order_changed", path="steps",
            expected=expected_order, actual=actual_order, severity="warning",
        ))

    return differences


def has_errors(differences: list[RoundTripDifference]) -> bool:
    """True when any difference breaks fidelity."""
    return any(d.severity == "error" for d in differences)
