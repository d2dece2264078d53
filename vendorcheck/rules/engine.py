# vendorcheck/rules/engine.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict

from ..utils.numbers import clamp_score
from .ruleset import evaluate_rule_group

def evaluate_compliance_rules(rule_groups: Any, ctx: Any, now: datetime | None = None) -> Dict[str, Any]:
    """
    Run every rule group for one vendor context.

    Returns:
      {
        "global_score": int (0..100),   # group scores averaged by group weight
        "group_results": [GroupResult],
        "failing_groups": [GroupResult],
      }
    No groups (or zero total weight) scores a clean 100.
    """
    groups = rule_groups if isinstance(rule_groups, list) else []
    group_results = [evaluate_rule_group(g, ctx or {}, now) for g in groups]

    total = 0.0
    weight_sum = 0.0
    for gr in group_results:
        total += (gr.get("score") or 0) * gr["weight"]
        weight_sum += gr["weight"]

    global_score = 100 if weight_sum == 0 else clamp_score(total / weight_sum)

    return {
        "global_score": global_score,
        "group_results": group_results,
        "failing_groups": [gr for gr in group_results if not gr["passed"]],
    }
