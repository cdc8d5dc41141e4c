"""
Unit tests for the row-level and storage policies.
"""

from decimal import Decimal

import pytest

from app.exceptions import PolicyViolation
from app.models import (
    Application, ApplicationStatus, AppRole, Department, Document, Payment, PaymentStatus,
    Profile, Service, UserRoleAssignment,
)
from app.policies import (
    AccessContext, Operation, PolicyRegistry, Rule, can_access_object, object_owner, policies,
)
from conftest import create_account


def context_for(user, *roles):
    return AccessContext(user_id=user.id, email=user.email, roles=frozenset(roles or {AppRole.CITIZEN}))


@pytest.fixture
def people(db_session):
    alice = create_account(db_session, "alice@example.com")
    bob = create_account(db_session, "bob@example.com")
    officer = create_account(db_session, "officer@example.com", roles=[AppRole.OFFICER])
    return alice, bob, officer


@pytest.fixture
def applications(db_session, service, people):
    alice, bob, _ = people
    rows = [
        Application(citizen_id=alice.id, service_id=service.id, status=ApplicationStatus.PENDING),
        Application(citizen_id=alice.id, service_id=service.id, status=ApplicationStatus.APPROVED),
        Application(citizen_id=bob.id, service_id=service.id, status=ApplicationStatus.PENDING),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


# ── Registry mechanics ───────────────────────────────────────────────

def test_no_rule_denies(db_session):
    registry = PolicyRegistry()
    ctx = AccessContext(user_id="u-1", roles=frozenset({AppRole.ADMIN}))
    db_session.add(Department(name="Health Department"))
    db_session.commit()

    assert registry.scope(db_session, ctx, Department).all() == []
    assert not registry.can_insert(db_session, ctx, Department(name="x"))


def test_rules_are_or_ed(db_session):
    db_session.add_all([Department(name="A"), Department(name="B"), Department(name="C")])
    db_session.commit()
    registry = PolicyRegistry([
        Rule("a", Department, frozenset({Operation.SELECT}), using=lambda ctx: Department.name == "A"),
        Rule("b", Department, frozenset({Operation.SELECT}), using=lambda ctx: Department.name == "B"),
    ])

    names = {d.name for d in registry.scope(db_session, AccessContext.anonymous(), Department).all()}
    assert names == {"A", "B"}


# ── Applications ─────────────────────────────────────────────────────

def test_citizen_sees_only_own_applications(db_session, people, applications):
    alice, bob, _ = people
    visible = policies.scope(db_session, context_for(alice), Application).all()
    assert {a.citizen_id for a in visible} == {alice.id}
    assert len(visible) == 2


def test_officer_sees_all_applications(db_session, people, applications):
    _, _, officer = people
    visible = policies.scope(db_session, context_for(officer, AppRole.OFFICER), Application).all()
    assert len(visible) == 3


def test_citizen_cannot_update_applications(db_session, people, applications):
    alice, _, _ = people
    with pytest.raises(PolicyViolation):
        policies.authorize_row(db_session, context_for(alice), applications[0], Operation.UPDATE)


def test_nobody_deletes_applications(db_session, people, applications):
    _, _, officer = people
    ctx = context_for(officer, AppRole.OFFICER, AppRole.ADMIN)
    assert policies.scope(db_session, ctx, Application, Operation.DELETE).count() == 0


def test_citizen_cannot_create_application_for_someone_else(db_session, service, people):
    alice, bob, _ = people
    application = Application(citizen_id=bob.id, service_id=service.id)
    with pytest.raises(PolicyViolation) as e:
        policies.authorize_insert(db_session, context_for(alice), application)
    assert e.value.status_code == 403
    assert e.value.table == "applications"


# ── Documents & payments ─────────────────────────────────────────────

def test_document_insert_requires_owning_the_application(db_session, people, applications):
    alice, bob, _ = people
    bobs_application = applications[2]
    document = Document(
        application_id=bobs_application.id, file_name="x.pdf", file_url="u", storage_path="p", doc_type="Aadhaar Card",
    )

    assert not policies.can_insert(db_session, context_for(alice), document)
    assert policies.can_insert(db_session, context_for(bob), document)


def test_payments_follow_parent_application(db_session, people, applications):
    alice, bob, officer = people
    for application in applications:
        db_session.add(Payment(
            application_id=application.id, amount=Decimal("50.00"), status=PaymentStatus.COMPLETED,
        ))
    db_session.commit()

    assert policies.scope(db_session, context_for(alice), Payment).count() == 2
    assert policies.scope(db_session, context_for(bob), Payment).count() == 1
    assert policies.scope(db_session, context_for(officer, AppRole.OFFICER), Payment).count() == 3


# ── Catalog ──────────────────────────────────────────────────────────

def test_inactive_services_hidden_from_public(db_session, service, inactive_service):
    anonymous = policies.scope(db_session, AccessContext.anonymous(), Service).all()
    assert [s.id for s in anonymous] == [service.id]

    admin = AccessContext(user_id="a-1", roles=frozenset({AppRole.ADMIN}))
    assert policies.scope(db_session, admin, Service).count() == 2


def test_only_admin_creates_departments(db_session):
    officer = AccessContext(user_id="o-1", roles=frozenset({AppRole.OFFICER}))
    admin = AccessContext(user_id="a-1", roles=frozenset({AppRole.ADMIN}))
    assert not policies.can_insert(db_session, officer, Department(name="Transport Department"))
    assert policies.can_insert(db_session, admin, Department(name="Transport Department"))


# ── Profiles & roles ─────────────────────────────────────────────────

def test_profiles_and_roles_are_private(db_session, people):
    alice, bob, _ = people
    ctx = context_for(alice)
    assert [p.id for p in policies.scope(db_session, ctx, Profile).all()] == [alice.id]
    assert {r.user_id for r in policies.scope(db_session, ctx, UserRoleAssignment).all()} == {alice.id}


def test_citizen_cannot_grant_roles(db_session, people):
    alice, _, _ = people
    grant = UserRoleAssignment(user_id=alice.id, role=AppRole.ADMIN)
    assert not policies.can_insert(db_session, context_for(alice), grant)


# ── Storage objects ──────────────────────────────────────────────────

def test_object_owner_is_first_segment():
    assert object_owner("u-1/app-9/aadhaar.pdf") == "u-1"
    assert object_owner("/u-1/x.pdf") == "u-1"


def test_storage_policy():
    bucket = "application-documents"
    owner = AccessContext(user_id="u-1", roles=frozenset({AppRole.CITIZEN}))
    stranger = AccessContext(user_id="u-2", roles=frozenset({AppRole.CITIZEN}))
    officer = AccessContext(user_id="o-1", roles=frozenset({AppRole.OFFICER}))
    path = "u-1/app-9/aadhaar.pdf"

    assert can_access_object(owner, bucket, path, Operation.INSERT)
    assert can_access_object(owner, bucket, path, Operation.SELECT)
    assert not can_access_object(stranger, bucket, path, Operation.SELECT)
    assert not can_access_object(stranger, bucket, path, Operation.INSERT)
    assert can_access_object(officer, bucket, path, Operation.SELECT)
    assert not can_access_object(officer, bucket, path, Operation.INSERT)
    assert not can_access_object(owner, "other-bucket", path, Operation.SELECT)
    assert not can_access_object(AccessContext.anonymous(), bucket, path, Operation.SELECT)
