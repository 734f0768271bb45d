"""Regression tests for evaluated paths and their trace colours."""

from __future__ import annotations

from typing import Any

from syrupy.assertion import SnapshotAssertion

from decision_engine.rules import DecisionEngine
from models.schemas import EvaluationResult, Graph


def summarize(result: EvaluationResult) -> dict[str, Any]:
    """Reduce an evaluation to the parts a rendering tool depends on."""
    return {
        "output": [f.model_dump() for f in result.output_fields],
        "path": result.visited_nodes,
        "node_colors": {
            n.id: n.data.color for n in result.annotated_graph.nodes if n.data.color
        },
        "edge_colors": {
            e.id: e.style["stroke"] for e in result.annotated_graph.edges if e.style
        },
    }


class TestLoanRuleRegression:
    """Regression tests for the editor loan rule."""

    def test_approved_path(self, editor_graph_json: str, snapshot: SnapshotAssertion) -> None:
        """Regression: Salary and city both satisfied reaches approval."""
        graph = Graph.from_json(editor_graph_json)

        result = DecisionEngine.evaluate(graph, {"salary": 75000, "city": "pune"})

        assert result.matched is True
        assert snapshot == summarize(result)

    def test_city_mismatch_denied(self, editor_graph_json: str) -> None:
        """Regression: && folds a failing city row into a single false."""
        graph = Graph.from_json(editor_graph_json)

        result = DecisionEngine.evaluate(graph, {"salary": 75000, "city": "Mumbai"})

        assert summarize(result)["output"] == [{"field": "loan", "value": "denied"}]


class TestFanOutRegression:
    """Regression tests for fan-out selection."""

    def test_adult_path(self, fan_out_graph: Graph, snapshot: SnapshotAssertion) -> None:
        """Regression: Failing senior candidate is painted red, adult path green."""
        result = DecisionEngine.evaluate(fan_out_graph, {"income": 2500, "age": 35})

        assert snapshot == summarize(result)

    def test_repeat_evaluation_stable(self, fan_out_graph: Graph) -> None:
        """Regression: Same input, same summary."""
        record = {"income": 2500, "age": 35}
        first = summarize(DecisionEngine.evaluate(fan_out_graph, record))
        second = summarize(DecisionEngine.evaluate(fan_out_graph, record))

        assert first == second
