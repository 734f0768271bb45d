"""Decision engine module for evaluating authored rule graphs."""

from decision_engine.annotator import REJECTED_COLOR, TAKEN_COLOR, TraceAnnotator, TraceOutcome
from decision_engine.conditions import ConditionEvaluator
from decision_engine.errors import (
    GraphCycleDetected,
    GraphMalformed,
    RuleEngineError,
    TraversalLimitExceeded,
)
from decision_engine.expressions import ExpressionEvaluator
from decision_engine.rules import DecisionEngine
from decision_engine.special_functions import SpecialFunctions

__all__ = [
    "ConditionEvaluator",
    "DecisionEngine",
    "ExpressionEvaluator",
    "GraphCycleDetected",
    "GraphMalformed",
    "REJECTED_COLOR",
    "RuleEngineError",
    "SpecialFunctions",
    "TAKEN_COLOR",
    "TraceAnnotator",
    "TraceOutcome",
    "TraversalLimitExceeded",
]
