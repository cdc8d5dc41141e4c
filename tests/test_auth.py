"""
Tests for signup, sign-in, sessions and auth-state notifications.
"""

from main import app
from app.auth.session import AuthEvent, AuthStateNotifier
from app.models import AppRole, Profile, User, UserRoleAssignment
from app.policies import AccessContext
from conftest import PASSWORD, login


def register(client, email="new@example.com", **extra):
    payload = {"email": email, "password": PASSWORD}
    payload.update(extra)
    return client.post("/auth/register", json=payload)


# ── Signup ───────────────────────────────────────────────────────────

def test_signup_creates_profile_and_exactly_one_citizen_role(client, db_session):
    response = register(client, full_name="Asha Naik", phone="9876543210")

    assert response.status_code == 201
    body = response.json()
    assert body["roles"] == ["citizen"]
    assert body["full_name"] == "Asha Naik"

    roles = db_session.query(UserRoleAssignment).filter(UserRoleAssignment.user_id == body["id"]).all()
    assert [AppRole(r.role) for r in roles] == [AppRole.CITIZEN]
    profile = db_session.query(Profile).filter(Profile.id == body["id"]).one()
    assert profile.email == "new@example.com"
    assert profile.phone == "9876543210"


def test_signup_defaults_full_name(client):
    response = register(client)
    assert response.json()["full_name"] == "User"


def test_duplicate_email_rejected_without_side_effects(client, db_session):
    register(client, email="dup@example.com")
    response = register(client, email="DUP@example.com")

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert db_session.query(User).count() == 1
    assert db_session.query(UserRoleAssignment).count() == 1


def test_short_password_is_a_shape_error(client):
    response = client.post("/auth/register", json={"email": "x@example.com", "password": "short"})
    assert response.status_code == 422


# ── Sign-in / sign-out ───────────────────────────────────────────────

def test_login_with_wrong_password(client):
    register(client)
    response = client.post("/auth/login", data={"username": "new@example.com", "password": "wrong-password"})

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_me_and_roles(client, citizen):
    me = client.get("/auth/me", headers=citizen["headers"])
    assert me.status_code == 200
    assert me.json()["email"] == citizen["email"]

    roles = client.get("/auth/roles", headers=citizen["headers"])
    assert roles.json() == {"user_id": citizen["id"], "roles": ["citizen"]}


def test_missing_token_is_rejected(client):
    assert client.get("/auth/me").status_code in (401, 403)


def test_garbage_token_is_unauthorized(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_logout_revokes_the_session(client, citizen):
    assert client.post("/auth/logout", headers=citizen["headers"]).status_code == 200
    assert client.get("/auth/me", headers=citizen["headers"]).status_code == 401


def test_inactive_account_cannot_sign_in(client, db_session):
    register(client, email="gone@example.com")
    user = db_session.query(User).filter(User.email == "gone@example.com").one()
    user.is_active = False
    db_session.commit()

    response = client.post("/auth/login", data={"username": "gone@example.com", "password": PASSWORD})
    assert response.status_code == 400


# ── Notifications ────────────────────────────────────────────────────

def test_notifier_fans_out_and_unsubscribes():
    notifier = AuthStateNotifier()
    seen = []
    unsubscribe = notifier.subscribe(lambda event, ctx: seen.append((event, ctx.user_id)))
    ctx = AccessContext(user_id="u-1")

    notifier.notify(AuthEvent.SIGNED_IN, ctx)
    unsubscribe()
    notifier.notify(AuthEvent.SIGNED_OUT, ctx)

    assert seen == [(AuthEvent.SIGNED_IN, "u-1")]


def test_failing_listener_does_not_break_others():
    notifier = AuthStateNotifier()
    seen = []

    def broken(event, ctx):
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(lambda event, ctx: seen.append(event))
    notifier.notify(AuthEvent.USER_UPDATED, AccessContext(user_id="u-1"))

    assert seen == [AuthEvent.USER_UPDATED]


def test_sign_in_and_out_are_published(client, db_session):
    events = []
    unsubscribe = app.state.auth_notifier.subscribe(lambda event, ctx: events.append((event, ctx.user_id)))
    try:
        body = register(client).json()
        headers = login(client, "new@example.com")
        client.post("/auth/logout", headers=headers)
    finally:
        unsubscribe()

    assert events == [(AuthEvent.SIGNED_IN, body["id"]), (AuthEvent.SIGNED_OUT, body["id"])]
