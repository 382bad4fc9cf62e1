"""Error taxonomy for workflow YAML conversion.

Every error carries a ``message`` suitable for display to an end user and a
``kind`` tag so callers can branch without ``isinstance`` chains.
"""

from dataclasses import dataclass
from typing import Optional, Union


PathPart = Union[str, int]


@dataclass(frozen=True)
class SchemaIssue:
    """A single structural violation."""
    path: tuple[PathPart, ...]
    message: str

    @property
    def dotted_path(self) -> str:
        return ".".join(str(part) for part in self.path) or "<root>"

    def __str__(self) -> str:
        return f"{self.dotted_path}: {self.message}"


class WorkflowError(Exception):
    """Base class for all conversion failures."""

    kind = "workflow"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class YAMLSyntaxError(WorkflowError):
    """Malformed YAML text."""

    kind = "yaml_syntax"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        mark = getattr(cause, "problem_mark", None)
        # PyYAML marks are zero-based
        self.line = mark.line + 1 if mark is not None else None
        self.column = mark.column + 1 if mark is not None else None


class SchemaValidationError(WorkflowError):
    """Structure does not match the workflow schema. Lists every issue."""

    kind = "schema_validation"

    def __init__(self, issues: list[SchemaIssue], prefix: str = "Workflow validation error"):
        self.issues = list(issues)
        super().__init__(f"{prefix}: " + "; ".join(str(issue) for issue in self.issues))


class DuplicateStepIdError(WorkflowError):
    """Two or more steps share an id."""

    kind = "duplicate_step_id"

    def __init__(self, duplicates: list[str]):
        self.duplicates = list(duplicates)
        super().__init__(
            f"Duplicate step IDs found: {', '.join(self.duplicates)}. "
            "Each step must have a unique ID."
        )


class UnknownDependencyError(WorkflowError):
    """A depends_on entry names a step that does not exist."""

    kind = "unknown_dependency"

    def __init__(self, step_id: str, dependency_id: str):
        self.step_id = step_id
        self.dependency_id = dependency_id
        super().__init__(
            f'Step "{step_id}" depends on non-existent step "{dependency_id}". '
            "Please ensure all dependencies reference valid step IDs."
        )


class CircularDependencyError(WorkflowError):
    """Steps depend on each other in a cycle."""

    kind = "circular_dependency"

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"Circular dependency detected: {' -> '.join(self.cycle)}. "
            "Steps in a workflow cannot depend on each other in a cycle. "
            "Please review the 'depends_on' configuration for these steps."
        )


class SerializationValidationError(WorkflowError):
    """IR failed validation immediately before being dumped."""

    kind = "serialization_validation"

    def __init__(self, validation_error: SchemaValidationError):
        self.validation_error = validation_error
        self.issues = validation_error.issues
        super().__init__(
            "IR validation error before serialization: "
            + "; ".join(str(issue) for issue in validation_error.issues)
        )


class YAMLSerializationError(WorkflowError):
    """The YAML library failed to dump a validated IR."""

    kind = "yaml_serialization"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
