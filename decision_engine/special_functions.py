"""Built-in derived-value functions usable as expression operands."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any

from decision_engine.coercion import NAN, is_number

SPECIAL_FUNCTIONS = ("date_diff", "time_diff")

CURRENT_DATE = "current_date"
CURRENT_TIME = "current_time"

MS_PER_SECOND = 1000
MS_PER_DAY = 24 * 60 * 60 * MS_PER_SECOND

# Fixed-length months and years; differences are deliberately calendar-naive.
DATE_UNITS_MS: dict[str, int] = {
    "years": 365 * MS_PER_DAY,
    "months": 30 * MS_PER_DAY,
    "days": MS_PER_DAY,
}

TIME_UNITS_SECONDS: dict[str, int] = {
    "seconds": 1,
    "minutes": 60,
    "hours": 60 * 60,
}

_FALLBACK_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d %b %Y",
    "%b %d %Y",
    "%b %d, %Y",
)


class SpecialFunctions:
    """Evaluator for ``date_diff`` and ``time_diff`` operand descriptors."""

    @staticmethod
    def is_special(op1: Any) -> bool:
        """Check whether an operand names a special function."""
        if not isinstance(op1, str):
            return False
        return op1.split(",")[0].strip() in SPECIAL_FUNCTIONS

    @staticmethod
    def evaluate(
        descriptor: str,
        input_record: dict[str, Any],
        now: datetime | None = None,
    ) -> float | int | None:
        """
        Evaluate a descriptor of the form ``name,attr1,attr2,unit``.

        Returns an integer difference, NaN when a date cannot be read, or
        None when the unit is not recognised.
        """
        parts = [p.strip() for p in descriptor.split(",")]
        parts += [""] * (4 - len(parts))
        function, attribute1, attribute2, unit = parts[:4]
        now = now or datetime.now(timezone.utc)

        if function == "date_diff":
            first = SpecialFunctions._resolve(attribute1, CURRENT_DATE, input_record, now)
            second = SpecialFunctions._resolve(attribute2, CURRENT_DATE, input_record, now)
            return SpecialFunctions.date_difference(first, second, unit)

        if function == "time_diff":
            first = SpecialFunctions._resolve(attribute1, CURRENT_TIME, input_record, now)
            second = SpecialFunctions._resolve(attribute2, CURRENT_TIME, input_record, now)
            return SpecialFunctions.time_difference(first, second, unit)

        return 0

    @staticmethod
    def date_difference(first_ms: float, second_ms: float, unit: str) -> float | int | None:
        """Whole years, months or days between two instants in epoch milliseconds."""
        divisor = DATE_UNITS_MS.get(unit)
        if divisor is None:
            return None
        diff = abs(first_ms - second_ms)
        if math.isnan(diff):
            return NAN
        return math.floor(diff / divisor)

    @staticmethod
    def time_difference(first_ms: float, second_ms: float, unit: str) -> float | int | None:
        """Whole seconds, minutes or hours between two instants in epoch milliseconds."""
        divisor = TIME_UNITS_SECONDS.get(unit)
        if divisor is None:
            return None
        diff_seconds = abs(first_ms - second_ms) / MS_PER_SECOND
        if math.isnan(diff_seconds):
            return NAN
        return math.floor(diff_seconds / divisor)

    @staticmethod
    def _resolve(
        attribute: str,
        now_keyword: str,
        input_record: dict[str, Any],
        now: datetime,
    ) -> float:
        if attribute.lower() == now_keyword:
            return SpecialFunctions.to_epoch_ms(now)
        return SpecialFunctions.to_epoch_ms(input_record.get(attribute))

    @staticmethod
    def to_epoch_ms(value: Any) -> float:
        """Convert a date-like value to epoch milliseconds; NaN if unreadable.

        Naive datetimes and bare dates are taken as UTC.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.timestamp() * MS_PER_SECOND
        if isinstance(value, date):
            return SpecialFunctions.to_epoch_ms(datetime(value.year, value.month, value.day))
        if is_number(value):
            return float(value)
        if isinstance(value, str) and value.strip():
            parsed = SpecialFunctions._parse_date_string(value.strip())
            if parsed is not None:
                return SpecialFunctions.to_epoch_ms(parsed)
        return NAN

    @staticmethod
    def _parse_date_string(text: str) -> datetime | None:
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
        for fmt in _FALLBACK_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
        return None
