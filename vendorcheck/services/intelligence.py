# vendorcheck/services/intelligence.py
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..store import repository
from ..utils.numbers import clamp, clamp_score, is_number

# -----------------------------
# Tunables
# -----------------------------
ALERT_PENALTIES = {"critical": 12, "high": 8, "medium": 4}
ALERT_PENALTY_OTHER = 1

# missing document category → points off the document score
DOC_PENALTIES = {
    "w9": 10,
    "license": 8,
    "contract": 6,
    "endorsement": 4,
    "entity_cert": 3,
}
ENTITY_CERT_TYPES = frozenset({"entity_certificate", "entity", "good_standing"})

FUSION_WEIGHTS = {"rule": 0.6, "alert": 0.25, "doc": 0.15}

# fused score >= threshold → tier, checked top-down
TIERS = [
    (85, "Elite Safe"),
    (70, "Preferred"),
    (55, "Watch"),
    (35, "High Risk"),
]
LOWEST_TIER = "Severe"

# -----------------------------
# Component scores
# -----------------------------
def tier_for(score: int) -> str:
    for threshold, tier in TIERS:
        if score >= threshold:
            return tier
    return LOWEST_TIER

def rule_score_from_cache(cached: Optional[Dict[str, Any]], default: int = 70) -> int:
    raw = (cached or {}).get("score")
    if not is_number(raw):
        return default
    return clamp_score(raw)

def _severity(alert: Dict[str, Any]) -> str:
    return (alert.get("severity") or "").lower()

def compute_alert_score(alerts: Iterable[Dict[str, Any]]) -> int:
    penalty = sum(ALERT_PENALTIES.get(_severity(a), ALERT_PENALTY_OTHER) for a in alerts or [])
    return clamp_score(100 - penalty)

def summarize_alerts(alerts: List[Dict[str, Any]]) -> Dict[str, Any]:
    by_severity = {"critical": 0, "high": 0, "medium": 0, "low": 0}
    by_category: Dict[str, int] = {}
    for a in alerts:
        sev = _severity(a)
        by_severity[sev if sev in ALERT_PENALTIES else "low"] += 1
        cat = (a.get("category") or "other").lower()
        by_category[cat] = by_category.get(cat, 0) + 1
    return {"counts_by_severity": by_severity, "counts_by_category": by_category, "total": len(alerts)}

def summarize_documents(document_types: Iterable[Optional[str]]) -> Dict[str, Any]:
    doc_types = {t.lower() for t in document_types or [] if t}
    return {
        "doc_types": sorted(doc_types),
        "has_w9": "w9" in doc_types,
        "has_license": "license" in doc_types,
        "has_contract": "contract" in doc_types,
        "has_endorsement": "endorsement" in doc_types,
        "has_binder": "binder" in doc_types,  # reported only, not scored
        "has_entity_cert": bool(doc_types & ENTITY_CERT_TYPES),
    }

def compute_doc_score(documents: Dict[str, Any]) -> int:
    present = {
        "w9": documents["has_w9"],
        "license": documents["has_license"],
        "contract": documents["has_contract"],
        "endorsement": documents["has_endorsement"],
        "entity_cert": documents["has_entity_cert"],
    }
    penalty = sum(points for key, points in DOC_PENALTIES.items() if not present[key])
    return clamp_score(100 - penalty)

def fuse_scores(rule_score: int, alert_score: int, doc_score: int) -> int:
    fused = (
        FUSION_WEIGHTS["rule"] * rule_score
        + FUSION_WEIGHTS["alert"] * alert_score
        + FUSION_WEIGHTS["doc"] * doc_score
    )
    return clamp_score(clamp(fused, 0, 100))

# -----------------------------
# Main entry
# -----------------------------
def build_vendor_intelligence(
    org_id: int,
    vendor_id: int,
    cached: Optional[Dict[str, Any]],
    alerts: List[Dict[str, Any]],
    document_types: Iterable[Optional[str]],
    default_rule_score: int = 70,
) -> Dict[str, Any]:
    """Pure fusion over already-loaded inputs."""
    rule_score = rule_score_from_cache(cached, default_rule_score)
    alert_score = compute_alert_score(alerts)
    documents = summarize_documents(document_types)
    doc_score = compute_doc_score(documents)
    fused_score = fuse_scores(rule_score, alert_score, doc_score)

    return {
        "org_id": org_id,
        "vendor_id": vendor_id,
        "scores": {
            "rule_score": rule_score,
            "alert_score": alert_score,
            "doc_score": doc_score,
            "fused_score": fused_score,
        },
        "tier": tier_for(fused_score),
        "alerts": summarize_alerts(alerts),
        "documents": documents,
    }

def compute_vendor_intelligence(db: Session, org_id: int, vendor_id: int) -> Dict[str, Any]:
    """
    Rule compliance (cached engine score) + open alerts + document coverage
    fused into one trust score and tier. Read failures raise DataError.
    """
    cached = repository.fetch_cached_compliance(db, org_id, vendor_id).unwrap()
    alerts = repository.fetch_open_alerts(db, org_id, vendor_id).unwrap()
    document_types = repository.fetch_document_types(db, org_id, vendor_id).unwrap()
    return build_vendor_intelligence(
        org_id, vendor_id, cached, alerts, document_types, default_rule_score=settings.DEFAULT_RULE_SCORE
    )
