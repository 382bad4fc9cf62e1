"""Integration tests for the public conversion API."""

import pytest
from typing import Any, Dict

from workflow_yaml import (
    graph_round_trip_check,
    graph_to_yaml,
    parse_workflow,
    round_trip_check,
    validate_yaml,
    yaml_to_graph,
)
from workflow_yaml.core import (
    CircularDependencyError,
    SchemaValidationError,
    UnknownDependencyError,
    YAMLSerializationError,
    YAMLSyntaxError,
)


CYCLIC_YAML = '''version: "1.0"
trigger: {type: form, config: {}}
steps:
  - {id: x, name: X, type: log, config: {}, depends_on: [y]}
  - {id: y, name: Y, type: log, config: {}, depends_on: [x]}
'''

OUT_OF_ORDER_YAML = '''version: "1.0"
trigger: {type: table, config: {table_id: t1}}
steps:
  - {id: notify, name: Notify, type: log, config: {}, depends_on: [load]}
  - {id: load, name: Load, type: table_operation, config: {}}
'''


class TestYamlToGraph:
    """Test the read path."""

    def test_linear_chain(self, sample_yaml: str):
        """Test three unpositioned steps become a downward chain."""
        result = yaml_to_graph(sample_yaml)

        assert len(result.nodes) == 3
        ys = [node.position.y for node in result.nodes]
        assert ys[0] < ys[1] < ys[2]

        assert len(result.edges) == 2
        ids = [node.id for node in result.nodes]
        assert [(e.source, e.target) for e in result.edges] == [
            (ids[0], ids[1]),
            (ids[1], ids[2]),
        ]

    def test_returns_trigger_and_ir(self, sample_yaml: str):
        result = yaml_to_graph(sample_yaml)
        assert result.trigger.type == "schedule"
        assert result.ir.metadata.tags == ["reports", "email"]

    def test_stored_order_is_displayed_as_is(self):
        result = yaml_to_graph(OUT_OF_ORDER_YAML)
        assert [node.id for node in result.nodes] == ["notify", "load"]

    def test_cycle_is_rejected_on_load(self):
        with pytest.raises(CircularDependencyError):
            yaml_to_graph(CYCLIC_YAML)

    def test_dangling_reference_is_rejected_on_load(self):
        text = OUT_OF_ORDER_YAML.replace("depends_on: [load]", "depends_on: [missing]")
        with pytest.raises(UnknownDependencyError):
            yaml_to_graph(text)

    def test_syntax_error(self):
        with pytest.raises(YAMLSyntaxError):
            yaml_to_graph("trigger: {type: form")

    def test_self_referencing_anchor_is_rejected_on_load(self):
        text = OUT_OF_ORDER_YAML.replace("config: {}, depends_on", "config: &c {self: *c}, depends_on")
        with pytest.raises(YAMLSyntaxError):
            yaml_to_graph(text)
        assert validate_yaml(text).error_kind == "yaml_syntax"


class TestGraphToYaml:
    """Test the write path."""

    def test_sample_graph(self, sample_graph: Dict[str, Any]):
        text = graph_to_yaml(sample_graph["nodes"], sample_graph["edges"], sample_graph["trigger"])
        ir = parse_workflow(text)

        assert ir.list_step_ids() == ["load", "notify"]
        assert ir.get_step("notify").depends_on == ["load"]
        assert ir.get_step("notify").position.y == 221

    def test_cycle_fails_before_any_output(self):
        """Test a cyclic graph produces no text at all."""
        nodes = [
            {"id": "a", "type": "log", "data": {"label": "A"}},
            {"id": "b", "type": "log", "data": {"label": "B"}},
        ]
        edges = [
            {"id": "a->b", "source": "a", "target": "b"},
            {"id": "b->a", "source": "b", "target": "a"},
        ]
        output = None
        with pytest.raises(CircularDependencyError) as exc_info:
            output = graph_to_yaml(nodes, edges, {"type": "webhook", "config": {}})

        assert output is None
        assert exc_info.value.cycle == ["a", "b", "a"]

    def test_self_referencing_config_raises_workflow_error(self, sample_graph: Dict[str, Any]):
        looped: Dict[str, Any] = {}
        looped["self"] = looped
        sample_graph["nodes"][0]["data"]["config"] = {"value": looped}

        with pytest.raises(YAMLSerializationError):
            graph_to_yaml(sample_graph["nodes"], sample_graph["edges"], sample_graph["trigger"])

    def test_invalid_trigger(self, sample_graph: Dict[str, Any]):
        with pytest.raises(SchemaValidationError):
            graph_to_yaml(sample_graph["nodes"], sample_graph["edges"], {"type": "email", "config": {}})

    def test_load_edit_save(self, sample_yaml: str):
        """Test a step added in the editor is saved after its dependency."""
        loaded = yaml_to_graph(sample_yaml)
        nodes = [node.model_dump() for node in loaded.nodes]
        edges = [edge.model_dump() for edge in loaded.edges]

        nodes.insert(0, {
            "id": "archive",
            "type": "table_operation",
            "position": {"x": 700, "y": 340},
            "data": {"label": "Archive report", "config": {"table": "archive"}},
        })
        edges.append({"id": "build_report->archive", "source": "build_report", "target": "archive"})

        ir = parse_workflow(graph_to_yaml(nodes, edges, loaded.trigger, metadata=loaded.ir.metadata))
        order = ir.list_step_ids()

        assert order.index("build_report") < order.index("archive")
        assert ir.get_step("archive").depends_on == ["build_report"]
        assert ir.metadata.description == "Daily order report"


class TestValidateYaml:
    """Test validation results."""

    def test_valid(self, sample_yaml: str):
        result = validate_yaml(sample_yaml)
        assert result.valid is True
        assert result.error is None

    @pytest.mark.parametrize("text, kind", [
        ("steps: [", "yaml_syntax"),
        ("version: '1.0'\n", "schema_validation"),
        (CYCLIC_YAML, "circular_dependency"),
    ])
    def test_invalid(self, text: str, kind: str):
        result = validate_yaml(text)
        assert result.valid is False
        assert result.error_kind == kind
        assert result.error

    def test_duplicate_ids(self):
        text = '''version: "1.0"
trigger: {type: form, config: {}}
steps:
  - {id: a, name: A, type: log, config: {}}
  - {id: a, name: A2, type: log, config: {}}
'''
        result = validate_yaml(text)
        assert result.error_kind == "duplicate_step_id"
        assert "a" in result.error


class TestRoundTripCheck:
    """Test structural round-trip fidelity."""

    def test_sample_has_fidelity(self, sample_yaml: str):
        report = round_trip_check(sample_yaml)

        assert report.fidelity is True
        assert report.differences == []
        assert report.original_yaml == sample_yaml
        assert parse_workflow(report.converted_yaml).metadata.tags == ["reports", "email"]

    def test_positioned_workflow(self, branching_yaml: str):
        assert round_trip_check(branching_yaml).fidelity is True

    def test_formatting_differences_do_not_matter(self):
        compact = '''version: "1.0"
trigger: {type: webhook, config: {path: /x}}
steps: [{id: a, name: A, type: log, config: {level: info}}]
'''
        report = round_trip_check(compact)
        assert report.fidelity is True
        assert report.converted_yaml != compact

    def test_reordering_is_reported_as_warning(self):
        report = round_trip_check(OUT_OF_ORDER_YAML)

        assert report.fidelity is True
        assert [d.kind for d in report.differences] == ["order_changed"]
        assert parse_workflow(report.converted_yaml).list_step_ids() == ["load", "notify"]

    def test_invalid_input_raises(self):
        with pytest.raises(CircularDependencyError):
            round_trip_check(CYCLIC_YAML)


class TestGraphRoundTripCheck:

    def test_sample_graph(self, sample_graph: Dict[str, Any]):
        report = graph_round_trip_check(
            sample_graph["nodes"], sample_graph["edges"], sample_graph["trigger"]
        )
        assert report.fidelity is True
        assert report.differences == []


class TestLegacyWorkflows:
    """Test legacy stages/blocks files load like current ones."""

    def test_yaml_to_graph(self, legacy_yaml: str):
        result = yaml_to_graph(
            legacy_yaml,
            event_source_type="ACTIVE_TABLE",
            event_source_params={"table_id": "t1"},
        )

        assert result.was_legacy is True
        assert result.trigger.to_dict() == {"type": "table", "config": {"table_id": "t1"}}
        assert len(result.nodes) == 5
        assert [(e.source, e.target) for e in result.edges] == [
            ("intake_2", "intake_3"),
            ("intake_2", "intake_4"),
            ("intake_4", "follow_up_1"),
        ]

    def test_current_layout_flag(self, sample_yaml: str):
        assert yaml_to_graph(sample_yaml).was_legacy is False

    def test_validate(self, legacy_yaml: str):
        assert validate_yaml(legacy_yaml).valid is True

    def test_saved_in_current_layout(self, legacy_yaml: str):
        loaded = yaml_to_graph(legacy_yaml, event_source_type="WEBHOOK")
        text = graph_to_yaml(loaded.nodes, loaded.edges, loaded.trigger)

        assert "stages" not in text
        assert parse_workflow(text).list_step_ids() == loaded.ir.list_step_ids()

    def test_round_trip(self, legacy_yaml: str):
        report = round_trip_check(legacy_yaml)
        assert report.fidelity is True
        assert report.differences == []
