# vendorcheck/services/compliance.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from ..rules.engine import evaluate_compliance_rules
from ..store import repository
from ..utils.logging import logger


class VendorNotFound(LookupError):
    pass


def split_verdicts(engine_result: Dict[str, Any]) -> Tuple[List[dict], List[dict], List[dict]]:
    """(failing, passing, missing) verdicts across every group of an engine run."""
    failing: List[dict] = []
    passing: List[dict] = []
    missing: List[dict] = []
    for gr in engine_result["group_results"]:
        failing.extend(gr["failing_rules"])
        missing.extend(gr["missing_data"])
        if "policy_results" in gr:
            for pr in gr["policy_results"]:
                passing.extend({**v, "policy_id": pr["policy_id"]} for v in pr["rules"] if v["matched"])
        else:
            passing.extend(v for v in gr.get("verdicts", []) if v["matched"])
    return failing, passing, missing

RULE_ALERT_TYPE = "rule_fail_doc"
RULE_ALERT_CATEGORY = "rule"
RULE_ALERT_SEVERITY = "high"

def rule_alert_message(verdict: Dict[str, Any]) -> str:
    if verdict.get("label"):
        return verdict["label"]
    return f"Rule failed on {verdict.get('field')} ({verdict.get('operator')} {verdict.get('expected')})"

def emit_rule_alerts(db: Session, org_id: int, vendor_id: int, failing: List[dict]) -> int:
    for v in failing:
        repository.upsert_rule_alert(
            db, org_id, vendor_id,
            type=RULE_ALERT_TYPE,
            rule_id=v.get("rule_id") if isinstance(v.get("rule_id"), int) else None,
            severity=v.get("severity") or RULE_ALERT_SEVERITY,
            category=RULE_ALERT_CATEGORY,
            message=rule_alert_message(v),
            meta={
                "policy_id": v.get("policy_id"),
                "field": v.get("field"),
                "operator": v.get("operator"),
                "expected": v.get("expected"),
                "actual": v.get("actual"),
            },
        )
    return len(failing)

def compliance_status(failing: List[dict], passing: List[dict]) -> str:
    if failing:
        return "fail"
    if passing:
        return "pass"
    return "unknown"

def refresh_vendor_compliance(db: Session, org_id: int, vendor_id: int, now: datetime | None = None) -> Dict[str, Any]:
    """
    Run the rule engine for one vendor and upsert its vendor_compliance_cache row.
    The cached score feeds vendor intelligence and the renewal forecast.
    """
    ctx = repository.fetch_evaluation_context(db, org_id, vendor_id).unwrap()
    if ctx is None:
        raise VendorNotFound(f"vendor {vendor_id} not found in org {org_id}")
    groups = repository.fetch_active_rule_groups(db, org_id).unwrap()

    result = evaluate_compliance_rules(groups, ctx, now)
    failing, passing, missing = split_verdicts(result)
    status = compliance_status(failing, passing)
    summary = (
        f"Rules evaluated: {len(passing)} passing, {len(failing)} failing, "
        f"{len(missing)} missing. Status: {status}."
    )

    emit_rule_alerts(db, org_id, vendor_id, failing)
    repository.upsert_compliance_cache(
        db, org_id, vendor_id,
        score=result["global_score"],
        failing=failing,
        passing=passing,
        missing=missing,
        status=status,
        summary=summary,
        last_checked_at=datetime.now(timezone.utc),
    )
    db.commit()

    logger.info("compliance refreshed for vendor %s (org %s): score=%s status=%s",
                vendor_id, org_id, result["global_score"], status)

    return {
        "org_id": org_id,
        "vendor_id": vendor_id,
        "score": result["global_score"],
        "status": status,
        "summary": summary,
        "failing_groups": [g["group_id"] for g in result["failing_groups"]],
    }
