"""Command-line interface for workflow YAML conversion.

Usage:
    workflow-yaml validate workflow.yaml
    workflow-yaml to-graph workflow.yaml -o graph.json
    workflow-yaml to-graph legacy.yaml --event-source ACTIVE_TABLE
    workflow-yaml to-yaml graph.json -o workflow.yaml
    workflow-yaml round-trip workflow.yaml
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .api import graph_to_yaml, round_trip_check, validate_yaml, yaml_to_graph
from .core import WorkflowError

logger = logging.getLogger(__name__)

EVENT_SOURCE_HELP = "Event source of a legacy stages/blocks file (ACTIVE_TABLE, WEBHOOK, OPTIN_FORM, SCHEDULE)"


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        logger.info("Wrote %s (%d chars)", output, len(text))
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a workflow YAML file."""
    result = validate_yaml(
        Path(args.file).read_text(encoding="utf-8"),
        event_source_type=args.event_source,
    )
    if result.valid:
        print(f"✓ {args.file} is valid")
        return 0
    print(f"✗ {args.file}: {result.error}", file=sys.stderr)
    return 1


def cmd_to_graph(args: argparse.Namespace) -> int:
    """Convert a workflow YAML file to graph JSON."""
    result = yaml_to_graph(
        Path(args.file).read_text(encoding="utf-8"),
        event_source_type=args.event_source,
    )
    if result.was_legacy:
        logger.info("Converted legacy stages/blocks workflow %s", args.file)
    payload = {
        "nodes": [node.model_dump() for node in result.nodes],
        "edges": [edge.model_dump() for edge in result.edges],
        "trigger": result.trigger.to_dict(),
    }
    if result.ir.metadata is not None:
        payload["metadata"] = result.ir.metadata.to_dict()
    _write_output(json.dumps(payload, indent=2), args.output)
    return 0


def cmd_to_yaml(args: argparse.Namespace) -> int:
    """Convert graph JSON to workflow YAML."""
    try:
        graph = json.loads(Path(args.file).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"✗ Invalid JSON in {args.file}: {e}", file=sys.stderr)
        return 1

    if not isinstance(graph, dict):
        print(f"✗ {args.file}: expected a JSON object with nodes, edges and trigger", file=sys.stderr)
        return 1

    yaml_text = graph_to_yaml(
        graph.get("nodes", []),
        graph.get("edges", []),
        graph.get("trigger"),
        metadata=graph.get("metadata"),
        version=graph.get("version"),
    )
    _write_output(yaml_text, args.output)
    return 0


def cmd_round_trip(args: argparse.Namespace) -> int:
    """Report whether a workflow survives YAML -> graph -> YAML."""
    report = round_trip_check(Path(args.file).read_text(encoding="utf-8"))
    for difference in report.differences:
        print(f"  [{difference.severity}] {difference}")
    if report.fidelity:
        print(f"✓ {args.file} round-trips without loss")
        return 0
    print(f"✗ {args.file} lost information in the round trip", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-yaml",
        description="Convert workflow YAML to and from the editor graph model",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"workflow-yaml {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a workflow YAML file")
    validate.add_argument("file", help="Workflow YAML file")
    validate.add_argument("--event-source", help=EVENT_SOURCE_HELP)
    validate.set_defaults(handler=cmd_validate)

    to_graph = subparsers.add_parser("to-graph", help="Convert workflow YAML to graph JSON")
    to_graph.add_argument("file", help="Workflow YAML file")
    to_graph.add_argument("--event-source", help=EVENT_SOURCE_HELP)
    to_graph.add_argument("-o", "--output", help="Output file (default: stdout)")
    to_graph.set_defaults(handler=cmd_to_graph)

    to_yaml = subparsers.add_parser("to-yaml", help="Convert graph JSON to workflow YAML")
    to_yaml.add_argument("file", help="Graph JSON file with nodes, edges and trigger")
    to_yaml.add_argument("-o", "--output", help="Output file (default: stdout)")
    to_yaml.set_defaults(handler=cmd_to_yaml)

    round_trip = subparsers.add_parser("round-trip", help="Check round-trip fidelity")
    round_trip.add_argument("file", help="Workflow YAML file")
    round_trip.set_defaults(handler=cmd_round_trip)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.debug else logging.WARNING
    logging.basicConfig(level=level)

    try:
        return args.handler(args)
    except FileNotFoundError as e:
        print(f"✗ File not found: {e.filename}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"✗ Cannot read {e.filename}: {e.strerror}", file=sys.stderr)
        return 1
    except UnicodeDecodeError:
        print(f"✗ {args.file} is not valid UTF-8 text", file=sys.stderr)
        return 1
    except WorkflowError as e:
        logger.debug("Command failed with %s", e.kind)
        print(f"✗ {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
