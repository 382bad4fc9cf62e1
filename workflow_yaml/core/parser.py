"""Parser for workflow YAML text."""

import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .errors import WorkflowError, YAMLSyntaxError
from .legacy import adapt_to_ir, is_legacy_format
from .models import ParseResult, WorkflowIR
from .schema import validate_workflow

logger = logging.getLogger(__name__)


class JsonCompatibleLoader(yaml.SafeLoader):
    """SafeLoader restricted to JSON-compatible values.

    Mappings, sequences, strings, numbers, booleans and null only. Timestamps
    and YAML 1.1 booleans (yes/no/on/off) are left as strings. Tags that
    would build other types are rejected, as are aliases that refer back to a
    node still being composed.
    """

    def __init__(self, stream):
        super().__init__(stream)
        self._open_anchors: set[str] = set()

    def compose_node(self, parent, index):
        event = self.peek_event()
        if isinstance(event, yaml.AliasEvent) and event.anchor in self._open_anchors:
            raise yaml.composer.ComposerError(
                None, None, f"recursive alias {event.anchor!r} is not allowed in workflow YAML", event.start_mark
            )
        if not isinstance(event, yaml.CollectionStartEvent) or event.anchor is None:
            return super().compose_node(parent, index)

        self._open_anchors.add(event.anchor)
        try:
            return super().compose_node(parent, index)
        finally:
            self._open_anchors.discard(event.anchor)


_BOOL_TAG = "tag:yaml.org,2002:bool"
_JSON_BOOL = re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$")

JsonCompatibleLoader.yaml_implicit_resolvers = {
    first_char: [
        (tag, _JSON_BOOL if tag == _BOOL_TAG else regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first_char, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _reject_tag(loader: yaml.SafeLoader, node: yaml.Node):
    raise yaml.constructor.ConstructorError(
        None, None, f"tag {node.tag!r} is not allowed in workflow YAML", node.start_mark
    )


for _tag in ("timestamp", "binary", "set", "omap", "pairs"):
    JsonCompatibleLoader.add_constructor(f"tag:yaml.org,2002:{_tag}", _reject_tag)


def load_yaml(text: str):
    """Load YAML text into plain Python structures.

    Raises:
        YAMLSyntaxError: if the text is malformed or uses a forbidden tag.
    """
    try:
        return yaml.load(text, Loader=JsonCompatibleLoader)
    except yaml.YAMLError as e:
        raise YAMLSyntaxError(f"YAML syntax error: {e}", e) from e
    except RecursionError as e:
        raise YAMLSyntaxError("YAML syntax error: document is nested too deeply", e) from e


class WorkflowParser:
    """Main workflow YAML parser.

    Accepts both the ``trigger``/``steps`` layout and the legacy ``stages``
    layout. Legacy files have no trigger of their own, so the event source
    the workflow is attached to decides it.
    """

    def __init__(
        self,
        event_source_type: Optional[str] = None,
        event_source_params: Optional[Mapping[str, Any]] = None,
    ):
        """Initialize parser with the event source used for legacy files."""
        self.event_source_type = event_source_type
        self.event_source_params = event_source_params

    def parse_with_info(self, text: str) -> ParseResult:
        """Parse YAML text and report whether it was in the legacy layout."""
        raw = load_yaml(text)
        adapted, was_legacy = adapt_to_ir(raw, self.event_source_type, self.event_source_params)
        ir = validate_workflow(adapted)
        logger.debug("Parsed workflow with %d steps (legacy=%s)", len(ir.steps), was_legacy)
        return ParseResult(ir=ir, was_legacy=was_legacy)

    def parse(self, text: str) -> WorkflowIR:
        """Parse YAML text into a validated IR."""
        return self.parse_with_info(text).ir

    def parse_file(self, path: str | Path) -> WorkflowIR:
        """Parse YAML file into a validated IR."""
        with open(path, encoding="utf-8") as f:
            return self.parse(f.read())


def parse_workflow(
    text: str,
    *,
    event_source_type: Optional[str] = None,
    event_source_params: Optional[Mapping[str, Any]] = None,
) -> WorkflowIR:
    """Parse YAML text into a validated ``WorkflowIR``.

    Raises:
        YAMLSyntaxError: malformed text.
        SchemaValidationError: structure violations, all of them.
    """
    return WorkflowParser(event_source_type, event_source_params).parse(text)


def is_valid_workflow(text: str) -> bool:
    """Check whether text parses and validates."""
    try:
        parse_workflow(text)
    except WorkflowError:
        return False
    return True


def is_legacy_yaml(text: str) -> bool:
    """Check whether text is a legacy ``stages`` workflow, without validating it."""
    try:
        raw = load_yaml(text)
    except YAMLSyntaxError:
        return False
    return is_legacy_format(raw)
