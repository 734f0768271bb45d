"""Value coercion with the loose typing rule authors expect.

Rule graphs come from a browser-based editor, so scalars are compared the way
the editor's scripting runtime compares them: numbers print without a trailing
``.0``, ``parseFloat`` reads a numeric prefix, and ``==`` is loose while
``!=`` is strict.
"""

from __future__ import annotations

import math
import re
from typing import Any

_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_FULL_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

NAN = float("nan")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_display_string(value: Any) -> str:
    """Render a scalar the way string conversion does in the editor."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return _format_float(value)
    return str(value)


def _format_float(value: float) -> str:
    """Shortest round-trip digits laid out with the editor's exponent thresholds."""
    sign = "-" if value < 0 else ""
    mantissa, _, exp = repr(abs(value)).partition("e")
    whole, _, frac = mantissa.partition(".")
    digits = (whole + frac).lstrip("0")
    # Decimal point position relative to the first significant digit.
    point = int(exp or 0) + len(whole) - (len(whole + frac) - len(digits))
    digits = digits.rstrip("0")

    if len(digits) <= point <= 21:
        return sign + digits + "0" * (point - len(digits))
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits

    exponent = point - 1
    exponent_text = f"e+{exponent}" if exponent >= 0 else f"e-{-exponent}"
    if len(digits) == 1:
        return sign + digits + exponent_text
    return sign + digits[0] + "." + digits[1:] + exponent_text


def parse_float(value: Any) -> float:
    """Read the leading number of a value; NaN when there is none."""
    if is_number(value):
        return float(value)
    if value is None or isinstance(value, bool):
        return NAN
    text = str(value)
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        stripped = text.strip()
        if stripped.startswith(("Infinity", "+Infinity")):
            return math.inf
        if stripped.startswith("-Infinity"):
            return -math.inf
        return NAN
    return float(match.group(1))


def to_number(value: Any) -> float:
    """Whole-value numeric conversion; blank strings are 0, junk is NaN."""
    if is_number(value):
        return float(value)
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if value is None:
        return NAN
    text = str(value).strip()
    if not text:
        return 0.0
    if _FULL_NUMBER.match(text):
        return float(text)
    return NAN


def divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return NAN
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def apply_arithmetic(base: Any, operator: str, operand: float) -> Any:
    """Apply one arithmetic step with loose typing.

    ``+`` on a string base concatenates; every other combination works on
    numbers.
    """
    if base is None:
        return None
    if operator == "+" and isinstance(base, str):
        return base + to_display_string(operand)

    left = to_number(base)
    if operator == "+":
        return left + operand
    if operator == "-":
        return left - operand
    if operator == "*":
        return left * operand
    if operator == "/":
        return divide(left, operand)
    raise ValueError(f"Unsupported arithmetic operator: {operator}")


def loose_equals(left: Any, right: Any) -> bool:
    """Loose equality: a string compared with a number is read as a number."""
    if left is None or right is None:
        return False
    if isinstance(left, bool):
        left = 1.0 if left else 0.0
    if isinstance(right, bool):
        right = 1.0 if right else 0.0
    if is_number(left) and isinstance(right, str):
        return float(left) == to_number(right)
    if isinstance(left, str) and is_number(right):
        return to_number(left) == float(right)
    return left == right


def strict_not_equals(left: Any, right: Any) -> bool:
    """Strict inequality: values of different kinds are always unequal."""
    if left is None or right is None:
        return False
    if is_number(left) and is_number(right):
        return float(left) != float(right)
    if type(left) is not type(right):
        return True
    return left != right
