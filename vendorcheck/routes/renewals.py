from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import ForecastRow, RiskFactorsIn, RiskScoreOut
from ..services.forecast import build_renewal_forecast_for_org
from ..services.scoring import compute_renewal_risk_score, risk_bucket
from ..utils.logging import logger
from ..utils.result import DataError

router = APIRouter(prefix="/v1", tags=["renewals"])

@router.post("/risk/score", response_model=RiskScoreOut)
def score_renewal(payload: RiskFactorsIn):
    score = compute_renewal_risk_score(payload.model_dump())
    return RiskScoreOut(risk_score=score, risk_bucket=risk_bucket(score))

@router.get("/orgs/{org_id}/renewals/forecast", response_model=List[ForecastRow])
def renewal_forecast(org_id: int,
                     bucket: str | None = Query(None),
                     db: Session = Depends(get_db)):
    try:
        rows = build_renewal_forecast_for_org(db, org_id)
    except DataError as e:
        logger.warning("renewal forecast failed for org %s: %s", org_id, e)
        raise HTTPException(status_code=503, detail="Renewal data unavailable")
    if bucket:
        rows = [r for r in rows if r["risk_bucket"] == bucket]
    return rows
