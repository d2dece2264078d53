# scoring.py
from __future__ import annotations
from collections.abc import Mapping
from typing import Any, Dict, List, Tuple

from ..utils.numbers import clamp_score, is_number

# -----------------------------
# Tunables (renewal risk v1)
# -----------------------------
# (upper bound on days_left, points); first band that fits wins
EXPIRED_POINTS = 90
DAYS_LEFT_BANDS: List[Tuple[int, int]] = [
    (1, 70),
    (3, 60),
    (7, 45),
    (30, 30),
    (90, 15),
]
DAYS_LEFT_FAR = 5
DAYS_LEFT_UNKNOWN = 20

STAGE_POINTS = {0: 20, 1: 15, 3: 10, 7: 5}

ALERT_POINTS_EACH = 5
ALERT_POINTS_CAP = 25

FAILING_RULE_POINTS = 4
MISSING_RULE_POINTS = 3

HISTORY_ADJUSTMENTS = {
    "mostly_late": 20,
    "mostly_on_time": -10,
    "last_expired": 15,
    "last_on_time": -5,
}

# score >= threshold → bucket, checked top-down
RISK_BUCKETS: List[Tuple[int, str]] = [
    (80, "high_risk_fail"),
    (60, "at_risk"),
    (40, "watch"),
    (20, "likely_on_time"),
]
LOWEST_BUCKET = "very_likely_on_time"

NEUTRAL_HISTORY = {"late_renewals": 0, "on_time_renewals": 0, "last_outcome": None}

# -----------------------------
# Signals
# -----------------------------
def _count(v: Any) -> int:
    try:
        return int(v or 0)
    except (TypeError, ValueError, OverflowError):
        return 0

def days_left_points(days_left: Any) -> int:
    if not is_number(days_left):
        return DAYS_LEFT_UNKNOWN
    if days_left < 0:
        return EXPIRED_POINTS
    for upper, points in DAYS_LEFT_BANDS:
        if days_left <= upper:
            return points
    return DAYS_LEFT_FAR

def stage_points(stage: Any) -> int:
    if isinstance(stage, bool):
        return 0
    return STAGE_POINTS.get(stage, 0)

def alert_points(alerts_count: Any) -> int:
    n = _count(alerts_count)
    if n <= 0:
        return 0
    return min(ALERT_POINTS_CAP, n * ALERT_POINTS_EACH)

def history_points(history: Dict[str, Any] | None) -> int:
    if not history or not isinstance(history, Mapping):
        return 0
    late = _count(history.get("late_renewals"))
    on_time = _count(history.get("on_time_renewals"))

    points = 0
    if late > on_time:
        points += HISTORY_ADJUSTMENTS["mostly_late"]
    elif on_time > late:
        points += HISTORY_ADJUSTMENTS["mostly_on_time"]
    # equal counts: no adjustment

    last = history.get("last_outcome")
    if last == "expired":
        points += HISTORY_ADJUSTMENTS["last_expired"]
    elif last == "on_time":
        points += HISTORY_ADJUSTMENTS["last_on_time"]
    return points

# -----------------------------
# Main entry
# -----------------------------
def compute_renewal_risk_score(factors: Dict[str, Any] | None) -> int:
    """
    Renewal risk 0..100, higher = more likely to lapse or renew late.

    factors:
      {
        "days_left": int | None,       # negative once expired
        "stage": 0|1|3|7|30|90|None,   # last renewal reminder milestone
        "alerts_count": int,
        "failing_rules_count": int,
        "missing_rules_count": int,
        "history": {"late_renewals", "on_time_renewals", "last_outcome"} | None,
      }
    """
    f = factors or {}

    score = 0
    score += days_left_points(f.get("days_left"))
    score += stage_points(f.get("stage"))
    score += alert_points(f.get("alerts_count"))
    score += _count(f.get("failing_rules_count")) * FAILING_RULE_POINTS
    score += _count(f.get("missing_rules_count")) * MISSING_RULE_POINTS
    score += history_points(f.get("history"))

    return clamp_score(score)

def risk_bucket(score: int) -> str:
    for threshold, bucket in RISK_BUCKETS:
        if score >= threshold:
            return bucket
    return LOWEST_BUCKET
