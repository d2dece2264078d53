
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, Dict, List, Literal

# Request bodies are permissive: the engine defaults anything malformed itself.
class RuleIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[Any] = None
    label: Optional[str] = None
    field: Optional[str] = None
    target: Optional[str] = "policy"
    operator: Optional[str] = None
    value: Any = None
    severity: Optional[str] = None
    weight: Optional[float] = None
    ai_hint: Optional[str] = Field(default=None, alias="aiHint")

class RuleGroupIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[Any] = None
    label: Optional[str] = None
    logic: Optional[str] = None
    scope: Optional[str] = None
    weight: Optional[float] = None
    rules: List[RuleIn] = Field(default_factory=list)

class EvaluationContextIn(BaseModel):
    vendor: Dict[str, Any] = Field(default_factory=dict)
    org: Dict[str, Any] = Field(default_factory=dict)
    policies: List[Dict[str, Any]] = Field(default_factory=list)

class EvaluateInput(BaseModel):
    rule_groups: List[RuleGroupIn] = Field(default_factory=list)
    context: EvaluationContextIn = Field(default_factory=EvaluationContextIn)

class EngineResultOut(BaseModel):
    global_score: int
    group_results: List[Dict[str, Any]]
    failing_groups: List[Dict[str, Any]]

class HistoryIn(BaseModel):
    late_renewals: int = 0
    on_time_renewals: int = 0
    last_outcome: Optional[Literal["expired", "on_time"]] = None

class RiskFactorsIn(BaseModel):
    days_left: Optional[int] = None
    stage: Optional[int] = None
    alerts_count: int = 0
    failing_rules_count: int = 0
    missing_rules_count: int = 0
    history: Optional[HistoryIn] = None

class RiskScoreOut(BaseModel):
    risk_score: int
    risk_bucket: str

class ComplianceRefreshOut(BaseModel):
    org_id: int
    vendor_id: int
    score: int
    status: str
    summary: str
    failing_groups: List[Any]

class IntelligenceScores(BaseModel):
    rule_score: int
    alert_score: int
    doc_score: int
    fused_score: int

class VendorIntelligenceOut(BaseModel):
    org_id: int
    vendor_id: int
    scores: IntelligenceScores
    tier: str
    alerts: Dict[str, Any]
    documents: Dict[str, Any]

class ForecastRow(BaseModel):
    org_id: int
    vendor_id: int
    vendor_name: Optional[str] = None
    policy_id: int
    coverage_type: Optional[str] = None
    expiration_date: Optional[str] = None
    days_left: Optional[int] = None
    stage: Optional[int] = None
    alerts_count: int
    failing_rules_count: int
    missing_rules_count: int
    history: Optional[HistoryIn] = None
    risk_score: int
    risk_bucket: str
