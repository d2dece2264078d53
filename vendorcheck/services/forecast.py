# vendorcheck/services/forecast.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ..config import settings
from ..store import repository
from ..utils.dates import as_naive_utc, parse_any_date, whole_days_between
from ..utils.logging import logger
from .scoring import NEUTRAL_HISTORY, compute_renewal_risk_score, risk_bucket

# -----------------------------
# Vendor renewal history
# -----------------------------
def _outcome(row: Dict[str, Any]) -> str | None:
    # "expired" when the reminder went out after the policy lapsed
    meta = row.get("meta") or {}
    exp = parse_any_date(meta.get("expDate")) if isinstance(meta, dict) else None
    created = parse_any_date(row.get("created_at"))
    if exp is None or created is None:
        return None
    exp, created = as_naive_utc(exp), as_naive_utc(created)
    if exp is None or created is None:
        return None
    return "expired" if created > exp else "on_time"

def summarize_history(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """rows: renewal_email_queue entries, newest first."""
    outcomes = [_outcome(r) for r in rows]
    return {
        "late_renewals": outcomes.count("expired"),
        "on_time_renewals": outcomes.count("on_time"),
        "last_outcome": outcomes[0] if outcomes else None,
    }

def load_vendor_history(db: Session, org_id: int, vendor_id: int) -> Dict[str, Any]:
    result = repository.fetch_renewal_email_history(db, org_id, vendor_id, limit=settings.HISTORY_LOOKBACK_ROWS)
    if not result.is_ok:
        logger.warning("history read failed for vendor %s (org %s): %s", vendor_id, org_id, result.error)
    return result.map(summarize_history).unwrap_or(dict(NEUTRAL_HISTORY))

# -----------------------------
# Org forecast
# -----------------------------
def days_left_until(expiration: Any, now: datetime) -> int | None:
    exp = parse_any_date(expiration)
    if exp is None:
        return None
    return whole_days_between(now, exp)

def build_renewal_forecast_for_org(db: Session, org_id: int, now: datetime | None = None) -> List[Dict[str, Any]]:
    """
    One row per active renewal schedule entry with its risk score + bucket.
    Schedule/alert/compliance read failures propagate; history falls back to neutral.
    """
    rows = repository.fetch_active_renewal_schedule(db, org_id).unwrap()
    if not rows:
        return []

    now = now or datetime.now()
    vendor_ids = list(dict.fromkeys(r["vendor_id"] for r in rows))

    alerts_map = repository.fetch_open_alert_counts(db, org_id, vendor_ids).unwrap()
    comp_map = repository.fetch_compliance_counts(db, org_id, vendor_ids).unwrap()
    history_map = {vid: load_vendor_history(db, org_id, vid) for vid in vendor_ids}

    forecast: List[Dict[str, Any]] = []
    for row in rows:
        vid = row["vendor_id"]
        comp = comp_map.get(vid) or {"failing": 0, "missing": 0}
        factors = {
            "days_left": days_left_until(row["expiration_date"], now),
            # last_stage 0 scores like an unset stage; the row still reports 0
            "stage": row["last_stage"] or None,
            "alerts_count": alerts_map.get(vid, 0),
            "failing_rules_count": comp["failing"],
            "missing_rules_count": comp["missing"],
            "history": history_map[vid],
        }
        score = compute_renewal_risk_score(factors)

        forecast.append({
            "org_id": row["org_id"],
            "vendor_id": vid,
            "vendor_name": row["vendor_name"],
            "policy_id": row["policy_id"],
            "coverage_type": row["coverage_type"],
            "expiration_date": row["expiration_date"],
            **factors,
            "stage": row["last_stage"],
            "risk_score": score,
            "risk_bucket": risk_bucket(score),
        })

    logger.info("renewal forecast for org %s: %d rows across %d vendors", org_id, len(forecast), len(vendor_ids))
    return forecast
