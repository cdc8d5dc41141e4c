"""
Reference departments and services loaded into a fresh database.

Seeding is idempotent: rows are matched by name and only missing ones are
inserted.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models import Department, Service

logger = logging.getLogger(__name__)

DEPARTMENTS = [
    ("Revenue Department", "Handles land records, certificates, and revenue-related services"),
    ("Panchayat Department", "Manages village panchayat services and rural development"),
    ("Transport Department", "Handles vehicle registration, licenses, and transport permits"),
    ("Health Department", "Manages health services and certificates"),
]

SERVICES = [
    {
        "department": "Revenue Department",
        "name": "Residence Certificate",
        "description": "Certificate of residence for Goa citizens",
        "fee": Decimal("50.00"),
        "required_documents": ["Aadhaar Card", "Address Proof", "Passport Photo"],
        "processing_time_days": 7,
    },
    {
        "department": "Revenue Department",
        "name": "Income Certificate",
        "description": "Certificate of annual income for various purposes",
        "fee": Decimal("50.00"),
        "required_documents": ["Aadhaar Card", "Income Proof", "Passport Photo"],
        "processing_time_days": 10,
    },
    {
        "department": "Health Department",
        "name": "Birth Certificate",
        "description": "Official birth registration certificate",
        "fee": Decimal("25.00"),
        "required_documents": ["Hospital Birth Record", "Parents Aadhaar", "Passport Photo"],
        "processing_time_days": 15,
    },
    {
        "department": "Health Department",
        "name": "Death Certificate",
        "description": "Official death registration certificate",
        "fee": Decimal("25.00"),
        "required_documents": ["Hospital Death Record", "Deceased Aadhaar", "Applicant ID Proof"],
        "processing_time_days": 15,
    },
    {
        "department": "Panchayat Department",
        "name": "Caste Certificate",
        "description": "Certificate of caste for reservation purposes",
        "fee": Decimal("50.00"),
        "required_documents": ["Aadhaar Card", "School/College Certificate", "Passport Photo"],
        "processing_time_days": 14,
    },
]


def seed_catalog(db: Session) -> dict:
    """Insert missing reference rows; returns how many of each were added."""
    departments = {d.name: d for d in db.query(Department).all()}
    added_departments = 0
    for name, description in DEPARTMENTS:
        if name not in departments:
            department = Department(name=name, description=description)
            db.add(department)
            departments[name] = department
            added_departments += 1
    db.flush()

    added_services = 0
    for entry in SERVICES:
        department = departments[entry["department"]]
        exists = (
            db.query(Service.id)
            .filter(Service.department_id == department.id, Service.name == entry["name"])
            .first()
        )
        if exists:
            continue
        fields = {k: v for k, v in entry.items() if k != "department"}
        db.add(Service(department_id=department.id, **fields))
        added_services += 1

    db.commit()
    logger.info(f"Seeded {added_departments} departments and {added_services} services")
    return {"departments": added_departments, "services": added_services}
