"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.setdefault("LOG_LEVEL", "WARNING")

from models.schemas import (  # noqa: E402
    AttributeNode,
    Condition,
    ConditionNode,
    Edge,
    Expression,
    Graph,
    Operand,
    OutputNode,
)


def make_operand(
    op1: Any,
    operator: str | None = None,
    op2: Any = None,
) -> Operand:
    """Factory for creating Operand test fixtures."""
    return Operand(op1=op1, operator=operator, op2=op2)


def _as_operand(value: Any) -> Operand:
    if isinstance(value, Operand):
        return value
    if isinstance(value, dict):
        return Operand.model_validate(value)
    return make_operand(value)


def _as_side(side: Any) -> list[Operand]:
    if isinstance(side, list):
        return [_as_operand(s) for s in side]
    return [_as_operand(side)]


def make_expression(lhs: Any, comparator: str, rhs: Any) -> Expression:
    """Factory for creating Expression test fixtures.

    Each side may be a scalar, an Operand, or a list of either.
    """
    return Expression(lhs=_as_side(lhs), comparator=comparator, rhs=_as_side(rhs))


def make_condition(
    lhs: Any,
    comparator: str,
    rhs: Any,
    boolean: str | None = None,
) -> Condition:
    """Factory for creating Condition test fixtures."""
    return Condition(expression=make_expression(lhs, comparator, rhs), boolean=boolean)


def make_attribute_node(node_id: str = "1") -> AttributeNode:
    """Factory for creating AttributeNode test fixtures."""
    return AttributeNode(id=node_id)


def make_condition_node(
    node_id: str,
    conditions: list[Condition] | None,
    rule: str | None = None,
) -> ConditionNode:
    """Factory for creating ConditionNode test fixtures."""
    return ConditionNode.model_validate(
        {
            "id": node_id,
            "type": "conditionalNode",
            "data": {
                "conditions": [c.model_dump() for c in conditions] if conditions is not None else None,
                "rule": rule,
            },
        }
    )


def make_output_node(node_id: str, **fields: Any) -> OutputNode:
    """Factory for creating OutputNode test fixtures."""
    return OutputNode.model_validate(
        {
            "id": node_id,
            "type": "outputNode",
            "data": {"outputFields": [{"field": k, "value": v} for k, v in fields.items()]},
        }
    )


def make_edge(
    edge_id: str,
    source: str,
    target: str,
    handle: str | None = None,
) -> Edge:
    """Factory for creating Edge test fixtures."""
    if handle is None:
        return Edge(id=edge_id, source=source, target=target)
    return Edge(id=edge_id, source=source, target=target, source_handle=handle)


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed evaluation instant for date and time functions."""
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def age_graph() -> Graph:
    """Single condition routed by yes/no edges to two output nodes."""
    return Graph(
        nodes=[
            make_attribute_node("1"),
            make_condition_node("2", [make_condition("age", ">=", "18")]),
            make_output_node("3", eligible="yes"),
            make_output_node("4", eligible="no"),
        ],
        edges=[
            make_edge("e1-2", "1", "2"),
            make_edge("e2-3", "2", "3", "yes"),
            make_edge("e2-4", "2", "4", "no"),
        ],
    )


@pytest.fixture
def fan_out_graph() -> Graph:
    """A first split whose yes branch fans out to two condition nodes."""
    return Graph(
        nodes=[
            make_attribute_node("1"),
            make_condition_node("2", [make_condition("income", ">", "1000")]),
            make_condition_node("3", [make_condition("age", ">", "60")]),
            make_condition_node("4", [make_condition("age", ">", "18")]),
            make_output_node("5", tier="senior"),
            make_output_node("6", tier="adult"),
            make_output_node("7", tier="rejected"),
        ],
        edges=[
            make_edge("e1-2", "1", "2"),
            make_edge("e2-3", "2", "3", "yes"),
            make_edge("e2-4", "2", "4", "yes"),
            make_edge("e2-7", "2", "7", "no"),
            make_edge("e3-5", "3", "5", "yes"),
            make_edge("e4-6", "4", "6", "yes"),
        ],
    )


@pytest.fixture
def editor_graph_json() -> str:
    """Graph exactly as the rule editor serializes it."""
    return """
    {
      "nodes": [
        {"id": "1", "type": "attributeNode", "position": {"x": 0, "y": 0},
         "data": {"label": "Attributes", "inputAttributes": ["salary", "city"]}},
        {"id": "2", "type": "conditionalNode", "position": {"x": 0, "y": 150},
         "data": {"label": "Salary check", "rule": "All", "conditions": [
            {"expression": {"lhs": [{"op1": "salary", "operator": null, "op2": null}],
                            "comparator": ">", "rhs": [{"op1": "50000"}]},
             "boolean": "&&"},
            {"expression": {"lhs": [{"op1": "city"}], "comparator": "==",
                            "rhs": [{"op1": "Pune"}]}}
         ]}},
        {"id": "3", "type": "outputNode", "position": {"x": -100, "y": 300},
         "data": {"outputFields": [{"field": "loan", "value": "approved"}]}},
        {"id": "4", "type": "outputNode", "position": {"x": 100, "y": 300},
         "data": {"outputFields": [{"field": "loan", "value": "denied"}]}}
      ],
      "edges": [
        {"id": "reactflow__edge-1-2", "source": "1", "target": "2", "sourceHandle": null},
        {"id": "reactflow__edge-2yes-3", "source": "2", "target": "3", "sourceHandle": "yes"},
        {"id": "reactflow__edge-2no-4", "source": "2", "target": "4", "sourceHandle": "no"}
      ]
    }
    """
