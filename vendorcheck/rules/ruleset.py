# vendorcheck/rules/ruleset.py
from __future__ import annotations
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..utils.numbers import clamp_score, weight_or
from .operators import PRESENCE_OPERATORS, evaluate_operator, is_empty

# -----------------------------
# Tunables
# -----------------------------
SEVERITY_SCORES = {
    "critical": 100,
    "high": 80,
    "medium": 55,
    "low": 30,
}
UNKNOWN_SEVERITY_SCORE = 40
DEFAULT_SEVERITY = "medium"

# points lost by one failing rule at full severity and weight 1
MAX_RULE_PENALTY = 15

LOGIC_ALL = "ALL"
LOGIC_ANY = "ANY"

SCOPE_PER_VENDOR = "perVendor"
SCOPE_ANY_POLICY = "anyPolicy"
SCOPE_ALL_POLICIES = "allPolicies"

# -----------------------------
# Helpers
# -----------------------------
def _as_mapping(v: Any) -> Mapping:
    return v if isinstance(v, Mapping) else {}

def severity_to_score(severity: Any) -> int:
    return SEVERITY_SCORES.get(severity, UNKNOWN_SEVERITY_SCORE) if isinstance(severity, str) else UNKNOWN_SEVERITY_SCORE

def get_field_value(source: Any, field: Any) -> Any:
    """
    Walk a dotted path ("limits.general") through nested records.
    Any absent segment gives None.
    """
    if not field or not isinstance(field, str):
        return None
    cur = source
    for part in field.split("."):
        if cur is None:
            return None
        if isinstance(cur, Mapping):
            cur = cur.get(part)
        else:
            cur = getattr(cur, part, None)
    return cur

def get_target_source(rule: Mapping, ctx: Mapping, policy: Optional[Mapping]) -> Any:
    target = rule.get("target")
    if target == "vendor":
        return ctx.get("vendor") or {}
    if target == "org":
        return ctx.get("org") or {}
    # "policy" and anything unrecognised
    return policy or {}

def _combine(verdicts: List[Dict[str, Any]], logic: Any) -> bool:
    if logic == LOGIC_ALL:
        return all(v["matched"] for v in verdicts)
    return any(v["matched"] for v in verdicts)

# -----------------------------
# Rule evaluation
# -----------------------------
def evaluate_rule(rule: Any, ctx: Any, policy: Any = None, now: datetime | None = None) -> Dict[str, Any]:
    rule = _as_mapping(rule)
    ctx = _as_mapping(ctx)

    source = get_target_source(rule, ctx, policy)
    operator = rule.get("operator")
    actual = get_field_value(source, rule.get("field"))

    matched = evaluate_operator(operator, actual, rule.get("value"), now)

    return {
        "rule_id": rule.get("id"),
        "label": rule.get("label"),
        "field": rule.get("field"),
        "operator": operator,
        "expected": rule.get("value"),
        "actual": actual,
        "severity": rule.get("severity") or DEFAULT_SEVERITY,
        "weight": weight_or(rule.get("weight")),
        "matched": matched,
        "failing": not matched,
        "missing": isinstance(operator, str) and operator in PRESENCE_OPERATORS and is_empty(actual),
        "ai_hint": rule.get("ai_hint") or rule.get("aiHint") or None,
    }

# -----------------------------
# Group evaluation
# -----------------------------
def compute_group_score(group: Any, verdicts: Optional[List[Dict[str, Any]]]) -> int:
    """
    100 minus severity/weight scaled penalties for failing verdicts,
    scaled again by the group weight. Always an int in 0..100.
    """
    if not verdicts:
        return 100

    penalty = 0.0
    for v in verdicts:
        if not v.get("failing"):
            continue
        sev = severity_to_score(v.get("severity"))
        penalty += (sev / 100) * MAX_RULE_PENALTY * weight_or(v.get("weight"))

    group_weight = weight_or(_as_mapping(group).get("weight"))
    return clamp_score(100 - penalty * group_weight)

def evaluate_rule_group(group: Any, ctx: Any, now: datetime | None = None) -> Dict[str, Any]:
    group = _as_mapping(group)
    ctx = _as_mapping(ctx)

    scope = group.get("scope") or SCOPE_ANY_POLICY
    logic = group.get("logic") or LOGIC_ALL
    rules = group.get("rules")
    rules = rules if isinstance(rules, list) else []
    policies = ctx.get("policies")
    policies = policies if isinstance(policies, list) else []

    result = {
        "group_id": group.get("id"),
        "label": group.get("label"),
        "scope": scope,
        "logic": logic,
        "weight": weight_or(group.get("weight")),
    }

    failing_rules: List[Dict[str, Any]] = []
    missing_data: List[Dict[str, Any]] = []

    if scope == SCOPE_PER_VENDOR:
        # vendor/org level rules, evaluated once with no policy
        verdicts = [evaluate_rule(rule, ctx, None, now) for rule in rules]
        failing_rules.extend(v for v in verdicts if v["failing"])
        missing_data.extend(v for v in verdicts if v["missing"])
        result.update(
            passed=_combine(verdicts, logic),
            policies_evaluated=0,
            score=compute_group_score(group, verdicts),
            failing_rules=failing_rules,
            missing_data=missing_data,
            verdicts=verdicts,
        )
        return result

    policy_results: List[Dict[str, Any]] = []
    any_policy_pass = False
    all_policies_pass = True

    for policy in policies:
        policy_id = _as_mapping(policy).get("id")
        verdicts = [evaluate_rule(rule, ctx, policy, now) for rule in rules]
        passed_this_policy = _combine(verdicts, logic)

        any_policy_pass = any_policy_pass or passed_this_policy
        all_policies_pass = all_policies_pass and passed_this_policy

        for v in verdicts:
            if v["failing"]:
                failing_rules.append({**v, "policy_id": policy_id})
            if v["missing"]:
                missing_data.append({**v, "policy_id": policy_id})

        policy_results.append({"policy_id": policy_id, "passed": passed_this_policy, "rules": verdicts})

    passed = all_policies_pass if scope == SCOPE_ALL_POLICIES else any_policy_pass

    # failing set when there is one, otherwise every per-policy verdict
    scored = failing_rules or [v for p in policy_results for v in p["rules"]]

    result.update(
        passed=passed,
        policies_evaluated=len(policies),
        score=compute_group_score(group, scored),
        failing_rules=failing_rules,
        missing_data=missing_data,
        policy_results=policy_results,
    )
    return result
