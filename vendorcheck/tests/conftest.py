# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vendorcheck.database import Base
from vendorcheck.models import Organization, Vendor

@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    with SessionLocal() as session:
        yield session
    engine.dispose()

@pytest.fixture
def org_vendor(db):
    org = Organization(id=1, name="Harbor Property Group", settings={"region": "CA"})
    vendor = Vendor(id=10, org_id=1, name="Acme Roofing", attributes={"w9_on_file": True, "trade": "roofing"})
    db.add_all([org, vendor])
    db.commit()
    return org, vendor

class BrokenSession:
    """Stands in for a session whose database has gone away."""

    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def get(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

@pytest.fixture
def broken_db():
    return BrokenSession()
