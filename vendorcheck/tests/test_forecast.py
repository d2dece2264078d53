# tests/test_forecast.py
from datetime import datetime

import pytest

from vendorcheck.models import (
    Alert, Policy, PolicyRenewalSchedule, RenewalEmail, Vendor, VendorComplianceCache,
)
from vendorcheck.services.forecast import (
    build_renewal_forecast_for_org, days_left_until, load_vendor_history, summarize_history,
)
from vendorcheck.utils.result import DataError

NOW = datetime(2026, 3, 1, 12, 0)

def _seed_forecast(db):
    db.add_all([
        Policy(id=100, org_id=1, vendor_id=10, coverage_type="GL", expiration_date="03/08/2026",
               limits={"general": 1000000}),
        Policy(id=101, org_id=1, vendor_id=10, coverage_type="AUTO", expiration_date="12/31/2026"),
        PolicyRenewalSchedule(org_id=1, vendor_id=10, policy_id=100, status="active", last_stage=7),
        PolicyRenewalSchedule(org_id=1, vendor_id=10, policy_id=101, status="paused", last_stage=90),
        Alert(org_id=1, vendor_id=10, severity="high", category="coverage"),
        Alert(org_id=1, vendor_id=10, severity="critical", category="coverage", resolved_at=datetime(2026, 2, 1)),
        VendorComplianceCache(org_id=1, vendor_id=10, score=74,
                              failing=[{"rule_id": 1}, {"rule_id": 2}], missing=[{"rule_id": 3}], passing=[]),
        RenewalEmail(org_id=1, vendor_id=10, policy_id=100, status="sent",
                     meta={"expDate": "03/08/2026", "stage": 7}, created_at=datetime(2026, 2, 20)),
        RenewalEmail(org_id=1, vendor_id=10, policy_id=100, status="sent",
                     meta={"expDate": "03/08/2025", "stage": 0}, created_at=datetime(2025, 3, 15)),
    ])
    db.commit()

def test_summarize_history_newest_first():
    rows = [
        {"meta": {"expDate": "2026-03-08"}, "created_at": datetime(2026, 3, 10)},
        {"meta": {"expDate": "03/08/2025"}, "created_at": datetime(2025, 2, 1)},
        {"meta": {"expDate": "03/08/2024"}, "created_at": datetime(2024, 1, 1)},
        {"meta": None, "created_at": datetime(2023, 1, 1)},
    ]
    assert summarize_history(rows) == {"late_renewals": 1, "on_time_renewals": 2, "last_outcome": "expired"}

def test_summarize_history_empty():
    assert summarize_history([]) == {"late_renewals": 0, "on_time_renewals": 0, "last_outcome": None}

def test_days_left_until():
    assert days_left_until("03/08/2026", NOW) == 6
    assert days_left_until("02/28/2026", NOW) == -2
    assert days_left_until("next spring", NOW) is None
    assert days_left_until(None, NOW) is None

def test_forecast_row_for_active_schedule(db, org_vendor):
    _seed_forecast(db)
    rows = build_renewal_forecast_for_org(db, 1, now=NOW)
    assert len(rows) == 1

    row = rows[0]
    assert row["vendor_name"] == "Acme Roofing"
    assert row["policy_id"] == 100
    assert row["coverage_type"] == "GL"
    assert row["days_left"] == 6
    assert row["stage"] == 7
    assert row["alerts_count"] == 1
    assert row["failing_rules_count"] == 2
    assert row["missing_rules_count"] == 1
    assert row["history"] == {"late_renewals": 1, "on_time_renewals": 1, "last_outcome": "on_time"}
    # 45 (<=7 days) + 5 (stage 7) + 5 (alert) + 8 (failing) + 3 (missing) - 5 (last on time)
    assert row["risk_score"] == 61
    assert row["risk_bucket"] == "at_risk"

def test_forecast_without_cache_or_history(db, org_vendor):
    db.add_all([
        Policy(id=200, org_id=1, vendor_id=10, coverage_type="WC", expiration_date="garbage"),
        PolicyRenewalSchedule(org_id=1, vendor_id=10, policy_id=200, status="active", last_stage=0),
    ])
    db.commit()
    row = build_renewal_forecast_for_org(db, 1, now=NOW)[0]
    assert row["days_left"] is None
    assert row["stage"] == 0
    assert row["failing_rules_count"] == 0
    assert row["history"]["last_outcome"] is None
    # 20 (unknown expiration); last_stage 0 adds nothing
    assert row["risk_score"] == 20
    assert row["risk_bucket"] == "likely_on_time"

def test_forecast_stage_zero_far_out(db, org_vendor):
    db.add_all([
        Policy(id=300, org_id=1, vendor_id=10, coverage_type="GL", expiration_date="12/31/2027"),
        PolicyRenewalSchedule(org_id=1, vendor_id=10, policy_id=300, status="active", last_stage=0),
    ])
    db.commit()
    row = build_renewal_forecast_for_org(db, 1, now=NOW)[0]
    assert row["stage"] == 0
    assert row["risk_score"] == 5
    assert row["risk_bucket"] == "very_likely_on_time"

def test_forecast_empty_org(db, org_vendor):
    assert build_renewal_forecast_for_org(db, 1, now=NOW) == []
    assert build_renewal_forecast_for_org(db, 999, now=NOW) == []

def test_forecast_propagates_schedule_read_failure(broken_db):
    with pytest.raises(DataError):
        build_renewal_forecast_for_org(broken_db, 1, now=NOW)

def test_history_read_failure_falls_back_to_neutral(broken_db):
    assert load_vendor_history(broken_db, 1, 10) == {
        "late_renewals": 0, "on_time_renewals": 0, "last_outcome": None,
    }

def test_history_is_scoped_to_vendor(db, org_vendor):
    db.add(Vendor(id=11, org_id=1, name="Bright Electric"))
    db.add(RenewalEmail(org_id=1, vendor_id=11, meta={"expDate": "01/01/2026"}, created_at=datetime(2026, 2, 1)))
    db.commit()
    assert load_vendor_history(db, 1, 10)["late_renewals"] == 0
    assert load_vendor_history(db, 1, 11)["late_renewals"] == 1

def test_unusable_history_dates_are_skipped():
    rows = [
        {"meta": {"expDate": "01/01/99999999999"}, "created_at": NOW},
        {"meta": {"expDate": "2026-03-08"}, "created_at": "0001-01-01T00:00:00+05:00"},
        {"meta": {"expDate": "someday"}, "created_at": NOW},
        {"meta": "not a dict", "created_at": NOW},
    ]
    assert summarize_history(rows) == {"late_renewals": 0, "on_time_renewals": 0, "last_outcome": None}

def test_out_of_range_expiration_has_no_days_left():
    assert days_left_until("01/01/99999999999", NOW) is None

def test_forecast_survives_bad_history_rows(db, org_vendor):
    _seed_forecast(db)
    db.add(RenewalEmail(org_id=1, vendor_id=10, status="sent",
                        meta={"expDate": "01/01/99999999999"}, created_at=datetime(2026, 2, 25)))
    db.commit()
    row = build_renewal_forecast_for_org(db, 1, now=NOW)[0]
    # newest row has no usable outcome
    assert row["history"] == {"late_renewals": 1, "on_time_renewals": 1, "last_outcome": None}
    assert row["risk_score"] == 66
