from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from app.database import get_db
from app.models import AppRole, User
from app.applications.schemas import ApplicationStats
from app.auth.dependencies import require_admin
from app.auth.session import AuthEvent, AuthStateNotifier, get_auth_notifier, load_access_context
from app.policies import AccessContext
from app.services.account_service import AccountService
from app.services.stats_service import StatsService

router = APIRouter(prefix="/admin", tags=["Admin Tools"])


class AdminUserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    phone: Optional[str] = None
    roles: List[AppRole]
    created_at: Optional[datetime] = None


class RoleGrant(BaseModel):
    role: AppRole


class RoleGrantResponse(BaseModel):
    user_id: str
    role: AppRole
    roles: List[AppRole]


@router.get("/stats", response_model=ApplicationStats)
def get_stats(
    ctx: AccessContext = Depends(require_admin()),
    db: Session = Depends(get_db)
):
    return StatsService(db).get_application_stats(ctx)

@router.get("/users", response_model=List[AdminUserResponse])
def get_all_users(
    ctx: AccessContext = Depends(require_admin()),
    db: Session = Depends(get_db)
):
    return AccountService(db).list_users(ctx)

@router.post("/users/{user_id}/roles", response_model=RoleGrantResponse)
def grant_role(
    user_id: str,
    grant: RoleGrant,
    ctx: AccessContext = Depends(require_admin()),
    db: Session = Depends(get_db),
    notifier: AuthStateNotifier = Depends(get_auth_notifier)
):
    """Grant an additional role; roles are never revoked through the API."""
    AccountService(db).grant_role(ctx, user_id, grant.role)

    user = db.query(User).filter(User.id == user_id).first()
    grantee = load_access_context(db, user)
    notifier.notify(AuthEvent.USER_UPDATED, grantee)

    return RoleGrantResponse(
        user_id=user_id,
        role=grant.role,
        roles=sorted(grantee.roles, key=lambda r: r.value),
    )
