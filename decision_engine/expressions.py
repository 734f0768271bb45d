"""Evaluation of single comparison expressions."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from decision_engine.coercion import (
    apply_arithmetic,
    is_number,
    loose_equals,
    parse_float,
    strict_not_equals,
    to_display_string,
)
from decision_engine.special_functions import SpecialFunctions
from models.schemas import Expression, Operand

ARITHMETIC_OPERATORS = ("+", "-", "*", "/")
EQUALITY_COMPARATORS = ("==", "!=")


class ExpressionEvaluator:
    """Evaluates one ``lhs <comparator> rhs`` expression against an input record."""

    @staticmethod
    def evaluate(
        expression: Expression,
        input_record: dict[str, Any],
        now: datetime | None = None,
    ) -> bool:
        """
        Evaluate an expression to a boolean.

        Rules:
        - == compares loosely (a number equals its string form)
        - != compares strictly (a number never equals a string)
        - >, <, >=, <= compare numerically; NaN compares false
        - a null side (unrecognised special-function unit) is always false
        """
        comparator = expression.comparator
        left = ExpressionEvaluator.evaluate_side(expression.lhs, comparator, input_record, now)
        right = ExpressionEvaluator.evaluate_side(expression.rhs, comparator, input_record, now)
        return ExpressionEvaluator.compare(left, comparator, right)

    @staticmethod
    def evaluate_side(
        side: list[Operand],
        comparator: str,
        input_record: dict[str, Any],
        now: datetime | None = None,
    ) -> Any:
        """Walk an operand chain left to right and return the last computed value."""
        results: list[Any] = []

        for operand in side:
            if operand.op1 is None:
                value = results[-1] if results else 0
            elif SpecialFunctions.is_special(operand.op1):
                value = SpecialFunctions.evaluate(operand.op1, input_record, now)
            else:
                value = ExpressionEvaluator.comparison_value(operand.op1, input_record)

            if operand.operator in ARITHMETIC_OPERATORS:
                if comparator not in EQUALITY_COMPARATORS and value is not None:
                    value = parse_float(value)
                value = apply_arithmetic(value, operand.operator, parse_float(operand.op2))
            elif comparator not in EQUALITY_COMPARATORS and value is not None:
                value = parse_float(value)

            results.append(value)

        return results[-1] if results else 0

    @staticmethod
    def comparison_value(attribute: str | int | float, input_record: dict[str, Any]) -> str:
        """Resolve an attribute against the record, falling back to the literal."""
        key = attribute if isinstance(attribute, str) else to_display_string(attribute)
        if key in input_record:
            return to_display_string(input_record[key]).lower()
        return to_display_string(attribute).lower()

    @staticmethod
    def compare(left: Any, comparator: str, right: Any) -> bool:
        """Apply a comparator to two resolved side values."""
        if left is None or right is None:
            return False

        if comparator == "==":
            return loose_equals(left, right)
        if comparator == "!=":
            return strict_not_equals(left, right)

        if comparator not in (">", "<", ">=", "<="):
            return False

        left_number = left if is_number(left) else parse_float(left)
        right_number = right if is_number(right) else parse_float(right)
        if math.isnan(left_number) or math.isnan(right_number):
            return False

        if comparator == ">":
            return left_number > right_number
        if comparator == "<":
            return left_number < right_number
        if comparator == ">=":
            return left_number >= right_number
        return left_number <= right_number
