from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import VendorIntelligenceOut
from ..services.intelligence import compute_vendor_intelligence
from ..utils.logging import logger
from ..utils.result import DataError

router = APIRouter(prefix="/v1/orgs/{org_id}/vendors", tags=["vendors"])

@router.get("/{vendor_id}/intelligence", response_model=VendorIntelligenceOut)
def vendor_intelligence(org_id: int, vendor_id: int, db: Session = Depends(get_db)):
    try:
        return compute_vendor_intelligence(db, org_id, vendor_id)
    except DataError as e:
        logger.warning("intelligence read failed for vendor %s: %s", vendor_id, e)
        raise HTTPException(status_code=503, detail="Vendor data unavailable")
