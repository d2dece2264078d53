from __future__ import annotations
from datetime import datetime
from typing import Optional, List, Any
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String, Integer, DateTime, JSON, UniqueConstraint, func, Float, Boolean, ForeignKey, Text, Index, true
)
from .database import Base

# ----------------------------
# Organizations & vendors
# ----------------------------
class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    settings: Mapped[Optional[dict]] = mapped_column(JSON)   # org-level rule fields
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class Vendor(Base):
    __tablename__ = "vendors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    attributes: Mapped[Optional[dict]] = mapped_column(JSON)  # vendor-level rule fields
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

# ----------------------------
# Policies (one row per COI coverage)
# ----------------------------
class Policy(Base):
    __tablename__ = "policies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), index=True, nullable=False)
    vendor_id: Mapped[int] = mapped_column(ForeignKey("vendors.id"), index=True, nullable=False)
    coverage_type: Mapped[Optional[str]] = mapped_column(String(64))
    policy_number: Mapped[Optional[str]] = mapped_column(String(128))
    carrier: Mapped[Optional[str]] = mapped_column(String(256))
    expiration_date: Mapped[Optional[str]] = mapped_column(String(16))  # MM/DD/YYYY as printed on the COI
    limits: Mapped[Optional[dict]] = mapped_column(JSON)                # {"general": 1000000, ...}
    endorsements: Mapped[Optional[dict]] = mapped_column(JSON)          # {"additional_insured": true, ...}
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

# ----------------------------
# Rule groups / rules
# ----------------------------
class RuleGroup(Base):
    __tablename__ = "rule_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), index=True, nullable=False)
    label: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    logic: Mapped[str] = mapped_column(String(8), nullable=False, default="ALL", server_default="ALL")          # ALL|ANY
    scope: Mapped[str] = mapped_column(String(16), nullable=False, default="anyPolicy", server_default="anyPolicy")   # anyPolicy|allPolicies|perVendor
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0, server_default="1")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

class Rule(Base):
    __tablename__ = "rules_v3"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("rule_groups.id", ondelete="CASCADE"), index=True, nullable=False)
    label: Mapped[Optional[str]] = mapped_column(String(256))
    field: Mapped[str] = mapped_column(String(256), nullable=False)     # dotted path
    target: Mapped[str] = mapped_column(String(16), nullable=False, default="policy", server_default="policy")
    operator: Mapped[str] = mapped_column(String(16), nullable=False, default="eq", server_default="eq")
    value: Mapped[Optional[Any]] = mapped_column(JSON)
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="medium", server_default="medium")
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0, server_default="1")
    ai_hint: Mapped[Optional[str]] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

# ----------------------------
# Compliance cache (latest engine run per vendor)
# ----------------------------
class VendorComplianceCache(Base):
    __tablename__ = "vendor_compliance_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vendor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    score: Mapped[Optional[float]] = mapped_column(Float)
    failing: Mapped[Optional[List[dict]]] = mapped_column(JSON)
    passing: Mapped[Optional[List[dict]]] = mapped_column(JSON)
    missing: Mapped[Optional[List[dict]]] = mapped_column(JSON)
    status: Mapped[Optional[str]] = mapped_column(String(16))    # pass|fail|unknown
    summary: Mapped[Optional[str]] = mapped_column(Text)
    last_checked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("org_id", "vendor_id", name="uq_compliance_org_vendor"),
    )

# ----------------------------
# Alerts
# ----------------------------
class Alert(Base):
    __tablename__ = "alerts_v2"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vendor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    type: Mapped[Optional[str]] = mapped_column(String(64))
    severity: Mapped[Optional[str]] = mapped_column(String(16))   # critical|high|medium|low
    category: Mapped[Optional[str]] = mapped_column(String(64))
    message: Mapped[Optional[str]] = mapped_column(Text)
    rule_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)   # set for rule_fail_doc alerts
    meta: Mapped[Optional[dict]] = mapped_column("metadata", JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

# ----------------------------
# Vendor documents (W-9, license, contract, ...)
# ----------------------------
class VendorDocument(Base):
    __tablename__ = "vendor_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vendor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    document_type: Mapped[Optional[str]] = mapped_column(String(64))
    file_url: Mapped[Optional[str]] = mapped_column(String(1024))
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

# ----------------------------
# Renewal workflow
# ----------------------------
class PolicyRenewalSchedule(Base):
    __tablename__ = "policy_renewal_schedule"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vendor_id: Mapped[int] = mapped_column(ForeignKey("vendors.id"), nullable=False)
    policy_id: Mapped[int] = mapped_column(ForeignKey("policies.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active", server_default="active")
    last_stage: Mapped[Optional[int]] = mapped_column(Integer)   # 90|30|7|3|1|0 days-before milestone
    next_run_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

class RenewalEmail(Base):
    __tablename__ = "renewal_email_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    org_id: Mapped[int] = mapped_column(Integer, nullable=False)
    vendor_id: Mapped[int] = mapped_column(Integer, nullable=False)
    policy_id: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[Optional[str]] = mapped_column(String(16))
    meta: Mapped[Optional[dict]] = mapped_column(JSON)            # {"expDate": "...", "stage": 7, ...}
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

Index("ix_renewal_email_org_vendor_created", RenewalEmail.org_id, RenewalEmail.vendor_id, RenewalEmail.created_at)
