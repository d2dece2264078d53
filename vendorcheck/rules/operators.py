# vendorcheck/rules/operators.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..utils.dates import days_until
from ..utils.numbers import to_number

DEFAULT_OPERATOR = "eq"

# -----------------------------
# Coercion helpers
# -----------------------------
def is_empty(v: Any) -> bool:
    return v is None or v == ""

def stringify(v: Any) -> str:
    """String form used by eq/ne/in so "1000000" and 1000000 compare equal."""
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    if isinstance(v, (list, tuple)):
        return ",".join("" if x is None else stringify(x) for x in v)
    return str(v)

def _numeric(cmp: Callable[[float, float], bool]) -> Callable[[Any, Any, Optional[datetime]], bool]:
    def op(actual, expected, now=None):
        a = to_number(actual)
        b = to_number(expected)
        if a is None or b is None:
            return False
        return cmp(a, b)
    return op

def _day_window(cmp: Callable[[int, float], bool]) -> Callable[[Any, Any, Optional[datetime]], bool]:
    def op(actual, expected, now=None):
        days = days_until(actual, now)
        threshold = to_number(expected)
        if days is None or threshold is None:
            return False
        return cmp(days, threshold)
    return op

# -----------------------------
# Operators
# -----------------------------
def op_missing(actual, expected, now=None) -> bool:
    return is_empty(actual)

def op_present(actual, expected, now=None) -> bool:
    return not is_empty(actual)

def op_eq(actual, expected, now=None) -> bool:
    return stringify(actual) == stringify(expected)

def op_ne(actual, expected, now=None) -> bool:
    return stringify(actual) != stringify(expected)

def op_in(actual, expected, now=None) -> bool:
    if not isinstance(expected, (list, tuple)):
        return False
    return stringify(actual) in [stringify(x) for x in expected]

OPERATORS: Dict[str, Callable[[Any, Any, Optional[datetime]], bool]] = {
    "missing": op_missing,
    "present": op_present,
    "eq": op_eq,
    "ne": op_ne,
    "in": op_in,
    "lt": _numeric(lambda a, b: a < b),
    "lte": _numeric(lambda a, b: a <= b),
    "gt": _numeric(lambda a, b: a > b),
    "gte": _numeric(lambda a, b: a >= b),
    # expiring within (or already past) N days
    "beforeDays": _day_window(lambda days, n: days <= n),
    "afterDays": _day_window(lambda days, n: days >= n),
}

PRESENCE_OPERATORS = frozenset({"missing", "present"})

def evaluate_operator(operator: Any, actual: Any, expected: Any, now: datetime | None = None) -> bool:
    """
    Evaluate one comparison. Unknown operators fail closed (False);
    nothing in here raises on bad data.
    """
    if operator is None or operator == "":
        operator = DEFAULT_OPERATOR
    if not isinstance(operator, str) or operator not in OPERATORS:
        return False
    return OPERATORS[operator](actual, expected, now)
