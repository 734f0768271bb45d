"""Models module containing Pydantic schemas for all data structures."""

from models.schemas import (
    AttributeNode,
    BatchRow,
    Condition,
    ConditionNode,
    Edge,
    EvaluationResult,
    Expression,
    Graph,
    Node,
    Operand,
    OutputField,
    OutputNode,
    RuleDefinition,
    RuleTestReport,
)

__all__ = [
    "AttributeNode",
    "BatchRow",
    "Condition",
    "ConditionNode",
    "Edge",
    "EvaluationResult",
    "Expression",
    "Graph",
    "Node",
    "Operand",
    "OutputField",
    "OutputNode",
    "RuleDefinition",
    "RuleTestReport",
]
