"""
Tests for catalog seeding and the health endpoints.
"""

from decimal import Decimal

from app.models import Department, Service
from app.seed import DEPARTMENTS, SERVICES, seed_catalog


def test_seed_loads_reference_catalog(db_session):
    added = seed_catalog(db_session)

    assert added == {"departments": len(DEPARTMENTS), "services": len(SERVICES)}
    income = db_session.query(Service).filter(Service.name == "Income Certificate").one()
    assert income.fee == Decimal("50.00")
    assert income.required_documents == ["Aadhaar Card", "Income Proof", "Passport Photo"]
    assert income.processing_time_days == 10


def test_seed_is_idempotent(db_session):
    seed_catalog(db_session)
    assert seed_catalog(db_session) == {"departments": 0, "services": 0}
    assert db_session.query(Department).count() == len(DEPARTMENTS)


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy", "database": "ok"}
