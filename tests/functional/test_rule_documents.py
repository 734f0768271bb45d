"""Functional tests for rule documents and batch evaluation."""

from __future__ import annotations

import json
from datetime import datetime

from decision_engine.annotator import TAKEN_COLOR
from decision_engine.rules import DecisionEngine
from models.schemas import Graph, RuleDefinition


class TestRuleTesting:
    """Test evaluating stored rules."""

    def test_rule_report_marks_tested(self, editor_graph_json: str) -> None:
        """Test: The report carries the annotated graph and tested=True."""
        rule = RuleDefinition(title="Loan", condition=editor_graph_json)

        report = DecisionEngine.test_rule(rule, {"salary": 90000, "city": "Pune"})

        assert report.rule.tested is True
        assert report.output is not None
        assert report.output[0].value == "approved"
        assert report.rule.condition.get_node("3").data.color == TAKEN_COLOR
        assert rule.tested is False
        assert rule.condition.get_node("3").data.color is None

    def test_rule_report_without_output(self) -> None:
        """Test: No output node reached gives output None."""
        graph = {
            "nodes": [
                {"id": "1", "type": "attributeNode", "data": {}},
                {
                    "id": "2",
                    "type": "conditionalNode",
                    "data": {
                        "conditions": [
                            {"expression": {"lhs": [{"op1": "a"}], "comparator": ">", "rhs": [{"op1": "1"}]}}
                        ]
                    },
                },
            ],
            "edges": [{"id": "e1", "source": "1", "target": "2"}],
        }
        rule = RuleDefinition(title="Partial", condition=json.dumps(graph))

        report = DecisionEngine.test_rule(rule, {"a": 5})

        assert report.output is None
        assert report.rule.tested is True

    def test_report_serializes_condition_as_string(self, editor_graph_json: str) -> None:
        """Test: The tested rule dumps its condition as JSON text."""
        rule = RuleDefinition(title="Loan", condition=editor_graph_json)
        report = DecisionEngine.test_rule(rule, {"salary": 10, "city": "Pune"})

        dumped = report.model_dump(by_alias=True)
        condition = json.loads(dumped["rule"]["condition"])
        assert condition["nodes"][3]["data"]["color"] == TAKEN_COLOR


class TestBatchEvaluation:
    """Test evaluating many records against one graph."""

    def test_first_output_written_into_row(self, age_graph: Graph) -> None:
        """Test: Each row gains the first output field."""
        records = [{"name": "ann", "age": 30}, {"name": "bo", "age": 9}]

        rows = DecisionEngine.evaluate_batch(age_graph, records)

        assert [r.values for r in rows] == [
            {"name": "ann", "age": 30, "eligible": "yes"},
            {"name": "bo", "age": 9, "eligible": "no"},
        ]
        assert [r.row_index for r in rows] == [0, 1]
        assert all(r.matched for r in rows)

    def test_records_not_mutated(self, age_graph: Graph) -> None:
        """Test: Input records are copied, not modified."""
        records = [{"age": 30}]
        DecisionEngine.evaluate_batch(age_graph, records)
        assert records == [{"age": 30}]

    def test_unmatched_row_unchanged(self, fan_out_graph: Graph) -> None:
        """Test: Rows without output keep their original values."""
        rows = DecisionEngine.evaluate_batch(fan_out_graph, [{"income": 5000, "age": 5}])

        assert rows[0].matched is False
        assert rows[0].values == {"income": 5000, "age": 5}
        assert rows[0].output_fields == []

    def test_shared_clock(self, age_graph: Graph, fixed_now: datetime) -> None:
        """Test: An explicit now is accepted for the whole batch."""
        rows = DecisionEngine.evaluate_batch(age_graph, [{"age": 18}], now=fixed_now)
        assert rows[0].values["eligible"] == "yes"

    def test_empty_batch(self, age_graph: Graph) -> None:
        """Test: No records, no rows."""
        assert DecisionEngine.evaluate_batch(age_graph, []) == []
