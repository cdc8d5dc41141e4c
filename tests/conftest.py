"""
Citizen Services Portal - Test Configuration and Fixtures
"""
import os
from decimal import Decimal
from typing import Dict, Generator, Iterable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

from main import app
from app.auth.schemas import UserCreate
from app.database import Base, get_db
from app.models import AppRole, Department, Service, UserRoleAssignment
from app.services.account_service import AccountService
from app.storage import LocalBucket, get_bucket

PASSWORD = "correct-horse-battery"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh schema and session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def bucket(tmp_path) -> LocalBucket:
    return LocalBucket(str(tmp_path), public_base_url="http://testserver")


@pytest.fixture
def client(db_session: Session, bucket: LocalBucket) -> Generator[TestClient, None, None]:
    """Test client with database and storage overrides"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_bucket] = lambda: bucket

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def create_account(db: Session, email: str, roles: Iterable[AppRole] = (), full_name: str = None):
    """Register an account (citizen role) and add any extra role rows directly."""
    user = AccountService(db).register(UserCreate(email=email, password=PASSWORD, full_name=full_name))
    for role in roles:
        if role != AppRole.CITIZEN:
            db.add(UserRoleAssignment(user_id=user.id, role=role))
    db.commit()
    return user


def strip_citizen(db: Session, user_id: str) -> None:
    db.query(UserRoleAssignment).filter(
        UserRoleAssignment.user_id == user_id,
        UserRoleAssignment.role == AppRole.CITIZEN,
    ).delete()
    db.commit()


def login(client: TestClient, email: str, password: str = PASSWORD) -> Dict[str, str]:
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def citizen(client, db_session):
    user = create_account(db_session, "citizen@example.com", full_name="Asha Naik")
    return {"id": user.id, "email": user.email, "headers": login(client, user.email)}


@pytest.fixture
def other_citizen(client, db_session):
    user = create_account(db_session, "neighbour@example.com", full_name="Ravi Kamat")
    return {"id": user.id, "email": user.email, "headers": login(client, user.email)}


@pytest.fixture
def officer(client, db_session):
    user = create_account(db_session, "officer@example.com", roles=[AppRole.OFFICER])
    strip_citizen(db_session, user.id)
    return {"id": user.id, "email": user.email, "headers": login(client, user.email)}


@pytest.fixture
def admin(client, db_session):
    user = create_account(db_session, "admin@example.com", roles=[AppRole.ADMIN])
    strip_citizen(db_session, user.id)
    return {"id": user.id, "email": user.email, "headers": login(client, user.email)}


@pytest.fixture
def department(db_session) -> Department:
    department = Department(name="Revenue Department", description="Certificates")
    db_session.add(department)
    db_session.commit()
    return department


@pytest.fixture
def service(db_session, department) -> Service:
    service = Service(
        department_id=department.id,
        name="Residence Certificate",
        fee=Decimal("50.00"),
        required_documents=["Aadhaar Card", "Address Proof"],
        processing_time_days=7,
    )
    db_session.add(service)
    db_session.commit()
    return service


@pytest.fixture
def inactive_service(db_session, department) -> Service:
    service = Service(
        department_id=department.id,
        name="Retired Permit",
        fee=Decimal("10.00"),
        required_documents=["Aadhaar Card"],
        is_active=False,
    )
    db_session.add(service)
    db_session.commit()
    return service


def pdf(name: str) -> tuple:
    return ("files", (name, b"%PDF-1.4 test document", "application/pdf"))


def submit(client, headers, service_id, documents, idempotency_key=None):
    """POST /applications with one PDF per document label."""
    files = [pdf(f"{label.lower().replace(' ', '_')}.pdf") for label in documents]
    request_headers = dict(headers)
    if idempotency_key:
        request_headers["Idempotency-Key"] = idempotency_key
    return client.post(
        "/applications",
        data={"service_id": service_id, "doc_types": list(documents)},
        files=files,
        headers=request_headers,
    )
