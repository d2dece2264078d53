# tests/test_ruleset.py
from datetime import datetime

import pytest

from vendorcheck.rules.ruleset import (
    compute_group_score, evaluate_rule, evaluate_rule_group, get_field_value, severity_to_score,
)

NOW = datetime(2026, 1, 1)

CTX = {
    "vendor": {"id": 10, "name": "Acme Roofing", "w9_on_file": True, "license_number": ""},
    "org": {"id": 1, "region": "CA"},
    "policies": [
        {"id": 101, "coverage_type": "GL", "limits": {"general": 2000000}, "expiration_date": "12/31/2026"},
        {"id": 102, "coverage_type": "AUTO", "limits": {"general": 500000}, "expiration_date": "01/15/2026"},
    ],
}

def _failing(severity, weight=1):
    return {"failing": True, "severity": severity, "weight": weight}

def test_get_field_value_walks_dotted_paths():
    assert get_field_value({"limits": {"general": 5}}, "limits.general") == 5
    assert get_field_value({"limits": None}, "limits.general") is None
    assert get_field_value({}, "a.b.c") is None
    assert get_field_value({"a": 1}, "") is None
    assert get_field_value({"a": 1}, None) is None

def test_severity_to_score():
    assert severity_to_score("critical") == 100
    assert severity_to_score("low") == 30
    assert severity_to_score("urgent") == 40
    assert severity_to_score(None) == 40

def test_evaluate_rule_targets_vendor_org_and_policy():
    vendor_rule = {"id": 1, "field": "w9_on_file", "target": "vendor", "operator": "eq", "value": True}
    org_rule = {"id": 2, "field": "region", "target": "org", "operator": "eq", "value": "CA"}
    policy_rule = {"id": 3, "field": "limits.general", "operator": "gte", "value": 1000000}

    assert evaluate_rule(vendor_rule, CTX)["matched"]
    assert evaluate_rule(org_rule, CTX)["matched"]
    assert evaluate_rule(policy_rule, CTX, CTX["policies"][0])["matched"]
    assert not evaluate_rule(policy_rule, CTX, CTX["policies"][1])["matched"]

def test_unknown_target_reads_policy():
    rule = {"field": "coverage_type", "target": "broker", "operator": "eq", "value": "GL"}
    assert evaluate_rule(rule, CTX, CTX["policies"][0])["matched"]

def test_verdict_shape_and_defaults():
    v = evaluate_rule({"id": 7, "field": "license_number", "target": "vendor", "operator": "present",
                       "aiHint": "Ask the vendor for their state license"}, CTX)
    assert v["rule_id"] == 7
    assert v["severity"] == "medium"
    assert v["weight"] == 1.0
    assert v["matched"] is False and v["failing"] is True
    assert v["missing"] is True
    assert v["ai_hint"] == "Ask the vendor for their state license"

def test_missing_flag_only_for_presence_operators():
    v = evaluate_rule({"field": "nope", "target": "vendor", "operator": "eq", "value": "x"}, CTX)
    assert v["failing"] and not v["missing"]
    v = evaluate_rule({"field": "nope", "target": "vendor", "operator": "missing"}, CTX)
    assert v["matched"] and v["missing"]

def test_matched_and_failing_are_complements():
    for op in ("eq", "ne", "gt", "missing", "bogus"):
        v = evaluate_rule({"field": "coverage_type", "operator": op, "value": "GL"}, CTX, CTX["policies"][0])
        assert v["failing"] is (not v["matched"])

def test_malformed_rule_does_not_raise():
    v = evaluate_rule(None, CTX)
    assert v["rule_id"] is None
    assert v["operator"] is None
    v = evaluate_rule({"field": "coverage_type", "weight": "heavy", "severity": None}, None)
    assert v["weight"] == 1.0 and v["severity"] == "medium"

@pytest.mark.parametrize("severity,expected", [("critical", 85), ("high", 88), ("medium", 92), ("low", 96)])
def test_group_score_single_failure(severity, expected):
    assert compute_group_score({}, [_failing(severity)]) == expected

def test_group_score_sums_penalties():
    assert compute_group_score({}, [_failing("low"), _failing("low")]) == 91

def test_group_score_scaled_by_group_weight():
    assert compute_group_score({"weight": 2}, [_failing("critical")]) == 70

def test_group_score_rule_weight_and_floor():
    assert compute_group_score({}, [_failing("critical", weight=2)]) == 70
    assert compute_group_score({}, [_failing("critical")] * 10) == 0

def test_group_score_clean_or_empty():
    assert compute_group_score({}, []) == 100
    assert compute_group_score({}, None) == 100
    assert compute_group_score({}, [{"failing": False, "severity": "critical"}]) == 100

def test_any_policy_group_passes_when_one_policy_passes():
    group = {"id": "g1", "scope": "anyPolicy", "logic": "ALL", "rules": [
        {"id": 1, "field": "coverage_type", "operator": "eq", "value": "GL", "severity": "high"},
        {"id": 2, "field": "limits.general", "operator": "gte", "value": 1000000, "severity": "critical"},
    ]}
    gr = evaluate_rule_group(group, CTX, NOW)
    assert gr["passed"] is True
    assert gr["policies_evaluated"] == 2
    assert [p["passed"] for p in gr["policy_results"]] == [True, False]
    assert {v["policy_id"] for v in gr["failing_rules"]} == {102}
    assert len(gr["failing_rules"]) == 2
    # high + critical on the AUTO policy: 100 - (12 + 15)
    assert gr["score"] == 73

def test_all_policies_group_fails_when_one_policy_fails():
    group = {"scope": "allPolicies", "rules": [
        {"field": "limits.general", "operator": "gte", "value": 1000000},
    ]}
    gr = evaluate_rule_group(group, CTX, NOW)
    assert gr["passed"] is False
    assert gr["logic"] == "ALL"

def test_any_logic_within_a_policy():
    group = {"scope": "allPolicies", "logic": "ANY", "rules": [
        {"field": "coverage_type", "operator": "in", "value": ["GL", "AUTO"]},
        {"field": "limits.general", "operator": "gte", "value": 1000000},
    ]}
    gr = evaluate_rule_group(group, CTX, NOW)
    assert gr["passed"] is True
    # failing rules still cost points even though the group passed
    assert gr["score"] == 92

def test_before_days_rule_uses_injected_clock():
    group = {"scope": "anyPolicy", "rules": [
        {"field": "expiration_date", "operator": "beforeDays", "value": 30, "severity": "high"},
    ]}
    gr = evaluate_rule_group(group, CTX, NOW)
    assert [p["passed"] for p in gr["policy_results"]] == [False, True]

def test_per_vendor_group_ignores_policies():
    group = {"id": "vendor-docs", "scope": "perVendor", "rules": [
        {"field": "w9_on_file", "target": "vendor", "operator": "eq", "value": True},
        {"field": "license_number", "target": "vendor", "operator": "present", "severity": "high"},
    ]}
    gr = evaluate_rule_group(group, CTX, NOW)
    assert gr["policies_evaluated"] == 0
    assert "policy_results" not in gr
    assert gr["passed"] is False
    assert len(gr["failing_rules"]) == 1
    assert len(gr["missing_data"]) == 1
    assert len(gr["verdicts"]) == 2
    assert gr["score"] == 88

def test_policy_group_with_no_policies():
    group = {"scope": "anyPolicy", "rules": [{"field": "coverage_type", "operator": "eq", "value": "GL"}]}
    gr = evaluate_rule_group(group, {"vendor": {}, "policies": []}, NOW)
    assert gr["passed"] is False
    assert gr["policies_evaluated"] == 0
    assert gr["score"] == 100

    gr = evaluate_rule_group({"scope": "allPolicies", "rules": group["rules"]}, {}, NOW)
    assert gr["passed"] is True

def test_empty_group_defaults():
    gr = evaluate_rule_group({}, CTX, NOW)
    assert gr["scope"] == "anyPolicy"
    assert gr["logic"] == "ALL"
    assert gr["weight"] == 1.0
    assert gr["score"] == 100

def test_oversized_weights_fall_back_to_one():
    v = evaluate_rule({"field": "coverage_type", "operator": "eq", "value": "WC", "weight": 10 ** 400}, {}, {})
    assert v["weight"] == 1.0
    assert compute_group_score({"weight": 10 ** 400}, [_failing("critical", weight=10 ** 400)]) == 85
