"""
Sessions, per-request access context and auth-state notifications.
"""

import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, FrozenSet, List, Optional, Tuple

from fastapi import Request
from sqlalchemy.orm import Session

from app.auth.utils import create_access_token
from app.config import ACCESS_TOKEN_EXPIRE_MINUTES
from app.models import AppRole, User, UserRoleAssignment, UserSession
from app.policies import AccessContext

logger = logging.getLogger(__name__)


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"


AuthListener = Callable[[AuthEvent, AccessContext], None]


class AuthStateNotifier:
    """Fan-out of auth-state changes to subscribed callbacks."""

    def __init__(self):
        self._listeners: List[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, event: AuthEvent, ctx: AccessContext) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, ctx)
            except Exception:
                logger.exception(f"Auth listener failed for {event.value}")


def log_auth_event(event: AuthEvent, ctx: AccessContext) -> None:
    roles = ", ".join(sorted(r.value for r in ctx.roles)) or "none"
    logger.info(f"{event.value}: user {ctx.user_id} (roles: {roles})")


def get_auth_notifier(request: Request) -> AuthStateNotifier:
    return request.app.state.auth_notifier


# =====================================================
# ROLE LOOKUP
# =====================================================

def load_roles(db: Session, user_id: str) -> FrozenSet[AppRole]:
    """Read the caller's role set straight from the role table.

    This bypasses the policy registry: the policies themselves are keyed
    off the result.
    """
    rows = db.query(UserRoleAssignment.role).filter(UserRoleAssignment.user_id == user_id).all()
    return frozenset(AppRole(role) for (role,) in rows)


def load_access_context(db: Session, user: User) -> AccessContext:
    return AccessContext(user_id=user.id, email=user.email, roles=load_roles(db, user.id))


# =====================================================
# SESSIONS
# =====================================================

def open_session(db: Session, user: User, user_agent: Optional[str] = None) -> Tuple[str, datetime]:
    """Persist a session row and return a bearer token bound to it."""
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expires_at = datetime.now(timezone.utc) + expires_delta
    session = UserSession(user_id=user.id, expires_at=expires_at, user_agent=user_agent)
    db.add(session)
    db.flush()

    token = create_access_token(
        data={"sub": user.id, "sid": session.id, "email": user.email},
        expires_delta=expires_delta,
    )
    return token, expires_at


def find_active_session(db: Session, session_id: str, user_id: str) -> Optional[UserSession]:
    session = (
        db.query(UserSession)
        .filter(UserSession.id == session_id, UserSession.user_id == user_id)
        .first()
    )
    if session is None:
        return None
    expires_at = session.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= datetime.now(timezone.utc):
        return None
    return session


def close_session(db: Session, session_id: str) -> None:
    db.query(UserSession).filter(UserSession.id == session_id).delete()
