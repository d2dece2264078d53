from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..rules.engine import evaluate_compliance_rules
from ..schemas import ComplianceRefreshOut, EngineResultOut, EvaluateInput
from ..services.compliance import VendorNotFound, refresh_vendor_compliance
from ..utils.logging import logger
from ..utils.result import DataError

router = APIRouter(prefix="/v1", tags=["compliance"])

@router.post("/compliance/evaluate", response_model=EngineResultOut)
def evaluate(payload: EvaluateInput):
    body = payload.model_dump()
    return evaluate_compliance_rules(body["rule_groups"], body["context"])

@router.post("/orgs/{org_id}/vendors/{vendor_id}/compliance/refresh")
def refresh(org_id: int, vendor_id: int, background: bool = False, db: Session = Depends(get_db)):
    if background:
        # imported lazily so the API process does not need a broker connection at import time
        from ..celery_worker import refresh_vendor_compliance_async
        refresh_vendor_compliance_async.delay(org_id, vendor_id)
        return {"ok": True, "queued": True}
    try:
        result = refresh_vendor_compliance(db, org_id, vendor_id)
    except VendorNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DataError as e:
        logger.warning("compliance refresh failed for vendor %s: %s", vendor_id, e)
        raise HTTPException(status_code=503, detail="Compliance data unavailable")
    return ComplianceRefreshOut(**result)
