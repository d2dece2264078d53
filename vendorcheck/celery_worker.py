from celery import Celery
from sqlalchemy.exc import SQLAlchemyError

from vendorcheck.config import settings
from vendorcheck.database import get_sessionmaker
from vendorcheck.services.compliance import VendorNotFound, refresh_vendor_compliance
from vendorcheck.services.forecast import build_renewal_forecast_for_org
from vendorcheck.utils.logging import logger
from vendorcheck.utils.result import DataError

REDIS_URL = settings.REDIS_URL

celery = Celery("vendorcheck", broker=REDIS_URL, backend=REDIS_URL)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
)

@celery.task(name="ping")
def ping():
    logger.info("ping received")
    return "pong"

@celery.task(name="refresh_vendor_compliance_async",
             autoretry_for=(DataError, SQLAlchemyError), retry_backoff=True, max_retries=5)
def refresh_vendor_compliance_async(org_id: int, vendor_id: int):
    SessionLocal = get_sessionmaker()
    with SessionLocal() as db:
        try:
            result = refresh_vendor_compliance(db, org_id, vendor_id)
        except VendorNotFound:
            logger.warning("skip compliance refresh: vendor %s not in org %s", vendor_id, org_id)
            return {"ok": False, "vendor_id": vendor_id, "error": "vendor_not_found"}
        except Exception:
            db.rollback()
            logger.exception("compliance refresh failed for vendor %s (org %s)", vendor_id, org_id)
            raise
    return {"ok": True, **result}

@celery.task(name="build_forecast_async",
             autoretry_for=(DataError, SQLAlchemyError), retry_backoff=True, max_retries=5)
def build_forecast_async(org_id: int):
    SessionLocal = get_sessionmaker()
    with SessionLocal() as db:
        rows = build_renewal_forecast_for_org(db, org_id)
    return {"ok": True, "org_id": org_id, "rows": rows}
