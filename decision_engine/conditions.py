"""Reduction of a node's condition rows to a single pass/fail outcome."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from decision_engine.expressions import ExpressionEvaluator
from models.schemas import Condition

AGGREGATE_ANY = "Any"
AGGREGATE_ALL = "All"


class ConditionEvaluator:
    """Combines condition rows with boolean operators and an aggregation mode."""

    @staticmethod
    def evaluate_conditions(
        conditions: list[Condition] | None,
        rule: str | None,
        input_record: dict[str, Any],
        now: datetime | None = None,
    ) -> tuple[bool, list[bool]]:
        """
        Evaluate condition rows.

        A row's ``boolean`` operator folds the next row's result into the
        running result; otherwise each row starts a new running result.

        Rules:
        - IF rule == "Any": pass when any running result is true
        - IF rule == "All": pass when every running result is true
        - ELSE: pass when the first running result is true

        Returns (passed, per-row expression results).
        """
        running: list[bool] = []
        each_result: list[bool] = []
        pending_operator: str | None = None

        for condition in conditions or []:
            result = ExpressionEvaluator.evaluate(condition.expression, input_record, now)
            each_result.append(result)

            if pending_operator and running:
                running[-1] = ConditionEvaluator.combine(running[-1], pending_operator, result)
            else:
                running.append(result)
            pending_operator = condition.boolean or None

        if rule == AGGREGATE_ANY:
            return any(running), each_result
        if rule == AGGREGATE_ALL:
            return all(running), each_result
        return (running[0] if running else False), each_result

    @staticmethod
    def combine(left: bool, operator: str, right: bool) -> bool:
        """Apply a logical operator; unknown operators yield False."""
        if operator == "&&":
            return left and right
        if operator == "||":
            return left or right
        return False
