from __future__ import annotations
import math
from typing import Any

def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))

def round_half_up(v: float) -> int:
    # builtin round() is banker's rounding; scores round .5 upwards
    return int(math.floor(v + 0.5))

def clamp_score(v: float) -> int:
    """Clamp to 0..100 and round to an int score."""
    return round_half_up(clamp(v, 0, 100))

def is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)

def to_number(v: Any) -> float | None:
    """
    Lenient numeric parse used by comparison operators.
    None, "" and anything unparseable give None instead of raising.
    """
    if v is None or isinstance(v, (list, tuple, dict, set)):
        return None
    if isinstance(v, bool):
        return 1.0 if v else 0.0
    if isinstance(v, (int, float)):
        try:
            n = float(v)
        except OverflowError:
            return None
    elif isinstance(v, str):
        s = v.strip()
        # "1_000" is not a number in stored rule values
        if s == "" or "_" in s:
            return None
        try:
            n = float(s)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(n):
        return None
    return n

def weight_or(v: Any, default: float = 1.0) -> float:
    if not is_number(v):
        return default
    try:
        return float(v)
    except OverflowError:
        return default
