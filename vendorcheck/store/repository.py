# vendorcheck/store/repository.py
"""
Relational reads/writes behind the scoring services.

Every read is wrapped by captures_data_errors and returns Ok(value) or
Err(DataError); the caller picks unwrap() or unwrap_or(default).
"""
from __future__ import annotations
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..models import (
    Alert, Organization, Policy, PolicyRenewalSchedule, RenewalEmail, Rule, RuleGroup,
    Vendor, VendorComplianceCache, VendorDocument,
)
from ..utils.result import captures_data_errors

# ----------------------------
# Row → engine record
# ----------------------------
def vendor_record(v: Vendor) -> Dict[str, Any]:
    return {**(v.attributes or {}), "id": v.id, "org_id": v.org_id, "name": v.name}

def org_record(o: Organization) -> Dict[str, Any]:
    return {**(o.settings or {}), "id": o.id, "name": o.name}

def policy_record(p: Policy) -> Dict[str, Any]:
    # limits/endorsements stay addressable both nested ("limits.general") and flat ("general")
    return {
        **(p.endorsements or {}),
        **(p.limits or {}),
        "id": p.id,
        "vendor_id": p.vendor_id,
        "coverage_type": p.coverage_type,
        "policy_number": p.policy_number,
        "carrier": p.carrier,
        "expiration_date": p.expiration_date,
        "limits": p.limits or {},
        "endorsements": p.endorsements or {},
    }

def rule_record(r: Rule) -> Dict[str, Any]:
    return {
        "id": r.id,
        "label": r.label,
        "field": r.field,
        "target": r.target,
        "operator": r.operator,
        "value": r.value,
        "severity": r.severity,
        "weight": r.weight,
        "ai_hint": r.ai_hint,
    }

# ----------------------------
# Compliance inputs
# ----------------------------
@captures_data_errors
def fetch_evaluation_context(db: Session, org_id: int, vendor_id: int) -> Optional[Dict[str, Any]]:
    vendor = db.execute(
        select(Vendor).where(Vendor.id == vendor_id, Vendor.org_id == org_id)
    ).scalar_one_or_none()
    if vendor is None:
        return None
    org = db.get(Organization, org_id)
    policies = db.execute(
        select(Policy).where(Policy.org_id == org_id, Policy.vendor_id == vendor_id).order_by(Policy.id)
    ).scalars().all()
    return {
        "vendor": vendor_record(vendor),
        "org": org_record(org) if org else {},
        "policies": [policy_record(p) for p in policies],
    }

@captures_data_errors
def fetch_active_rule_groups(db: Session, org_id: int) -> List[Dict[str, Any]]:
    groups = db.execute(
        select(RuleGroup).where(RuleGroup.org_id == org_id, RuleGroup.active.is_(True)).order_by(RuleGroup.id)
    ).scalars().all()
    if not groups:
        return []

    rules_by_group: Dict[int, List[Dict[str, Any]]] = defaultdict(list)
    rules = db.execute(
        select(Rule).where(Rule.group_id.in_([g.id for g in groups]), Rule.active.is_(True)).order_by(Rule.id)
    ).scalars().all()
    for r in rules:
        rules_by_group[r.group_id].append(rule_record(r))

    return [{
        "id": g.id,
        "label": g.label,
        "logic": g.logic,
        "scope": g.scope,
        "weight": g.weight,
        "rules": rules_by_group.get(g.id, []),
    } for g in groups]

# ----------------------------
# Compliance cache
# ----------------------------
@captures_data_errors
def fetch_cached_compliance(db: Session, org_id: int, vendor_id: int) -> Optional[Dict[str, Any]]:
    row = db.execute(
        select(VendorComplianceCache).where(
            VendorComplianceCache.org_id == org_id, VendorComplianceCache.vendor_id == vendor_id
        ).limit(1)
    ).scalar_one_or_none()
    if row is None:
        return None
    return {
        "score": row.score,
        "failing": row.failing or [],
        "missing": row.missing or [],
        "status": row.status,
        "last_checked_at": row.last_checked_at,
    }

@captures_data_errors
def fetch_compliance_counts(db: Session, org_id: int, vendor_ids: Iterable[int]) -> Dict[int, Dict[str, int]]:
    rows = db.execute(
        select(VendorComplianceCache).where(
            VendorComplianceCache.org_id == org_id, VendorComplianceCache.vendor_id.in_(list(vendor_ids))
        )
    ).scalars().all()
    return {r.vendor_id: {"failing": len(r.failing or []), "missing": len(r.missing or [])} for r in rows}

def upsert_compliance_cache(db: Session, org_id: int, vendor_id: int, **fields) -> VendorComplianceCache:
    row = db.execute(
        select(VendorComplianceCache).where(
            VendorComplianceCache.org_id == org_id, VendorComplianceCache.vendor_id == vendor_id
        )
    ).scalar_one_or_none()
    if row is None:
        row = VendorComplianceCache(org_id=org_id, vendor_id=vendor_id)
        db.add(row)
    for k, v in fields.items():
        setattr(row, k, v)
    return row

# ----------------------------
# Alerts / documents
# ----------------------------
@captures_data_errors
def fetch_open_alerts(db: Session, org_id: int, vendor_id: int) -> List[Dict[str, Any]]:
    rows = db.execute(
        select(Alert.severity, Alert.category, Alert.type).where(
            Alert.org_id == org_id, Alert.vendor_id == vendor_id, Alert.resolved_at.is_(None)
        )
    ).all()
    return [{"severity": r.severity, "category": r.category, "type": r.type} for r in rows]

@captures_data_errors
def fetch_open_alert_counts(db: Session, org_id: int, vendor_ids: Iterable[int]) -> Dict[int, int]:
    rows = db.execute(
        select(Alert.vendor_id, func.count(Alert.id)).where(
            Alert.org_id == org_id, Alert.vendor_id.in_(list(vendor_ids)), Alert.resolved_at.is_(None)
        ).group_by(Alert.vendor_id)
    ).all()
    return {vid: int(n or 0) for vid, n in rows}

def upsert_rule_alert(db: Session, org_id: int, vendor_id: int, *, type: str, rule_id: Optional[int],
                      severity: str, category: str, message: str, meta: Dict[str, Any]) -> Alert:
    # one open alert per (vendor, type, rule); a repeat failure refreshes it
    row = db.execute(
        select(Alert).where(
            Alert.org_id == org_id,
            Alert.vendor_id == vendor_id,
            Alert.type == type,
            Alert.rule_id.is_(None) if rule_id is None else Alert.rule_id == rule_id,
            Alert.resolved_at.is_(None),
        ).limit(1)
    ).scalar_one_or_none()
    if row is None:
        row = Alert(org_id=org_id, vendor_id=vendor_id, type=type, rule_id=rule_id)
        db.add(row)
        db.flush()
    row.severity = severity
    row.category = category
    row.message = message
    row.meta = meta
    row.created_at = func.now()
    return row

@captures_data_errors
def fetch_document_types(db: Session, org_id: int, vendor_id: int) -> List[Optional[str]]:
    return list(db.execute(
        select(VendorDocument.document_type).where(
            VendorDocument.org_id == org_id, VendorDocument.vendor_id == vendor_id
        )
    ).scalars().all())

# ----------------------------
# Renewals
# ----------------------------
@captures_data_errors
def fetch_active_renewal_schedule(db: Session, org_id: int) -> List[Dict[str, Any]]:
    rows = db.execute(
        select(
            PolicyRenewalSchedule.org_id,
            PolicyRenewalSchedule.vendor_id,
            PolicyRenewalSchedule.policy_id,
            PolicyRenewalSchedule.last_stage,
            Vendor.name.label("vendor_name"),
            Policy.coverage_type,
            Policy.expiration_date,
        )
        .join(Vendor, Vendor.id == PolicyRenewalSchedule.vendor_id)
        .join(Policy, Policy.id == PolicyRenewalSchedule.policy_id)
        .where(PolicyRenewalSchedule.org_id == org_id, PolicyRenewalSchedule.status == "active")
        .order_by(PolicyRenewalSchedule.id)
    ).all()
    return [dict(r._mapping) for r in rows]

@captures_data_errors
def fetch_renewal_email_history(db: Session, org_id: int, vendor_id: int, limit: int = 50) -> List[Dict[str, Any]]:
    """Newest first."""
    rows = db.execute(
        select(RenewalEmail.meta, RenewalEmail.status, RenewalEmail.created_at)
        .where(RenewalEmail.org_id == org_id, RenewalEmail.vendor_id == vendor_id)
        .order_by(RenewalEmail.created_at.desc(), RenewalEmail.id.desc())
        .limit(limit)
    ).all()
    return [{"meta": r.meta, "status": r.status, "created_at": r.created_at} for r in rows]
