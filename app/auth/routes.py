import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from app.database import get_db
from app.models import User
from app.auth.schemas import UserCreate, Token, UserResponse, RolesResponse, TokenData
from app.auth.dependencies import get_current_user, get_token_data, get_access_context
from app.auth.session import (
    AuthEvent, AuthStateNotifier, close_session, get_auth_notifier, load_access_context, open_session,
)
from app.policies import AccessContext
from app.services.account_service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _user_response(user: User, ctx: AccessContext) -> UserResponse:
    profile = user.profile
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=profile.full_name if profile else "User",
        phone=profile.phone if profile else None,
        roles=sorted(ctx.roles, key=lambda r: r.value),
        created_at=user.created_at,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register_user(user_data: UserCreate, db: Session = Depends(get_db)):
    user = AccountService(db).register(user_data)
    return _user_response(user, load_access_context(db, user))


@router.post("/login", response_model=Token)
def login_user(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    notifier: AuthStateNotifier = Depends(get_auth_notifier)
):
    service = AccountService(db)
    user = service.authenticate(form_data.username, form_data.password)

    if not user:
        logger.warning(f"Failed login attempt for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Account is not active"
        )

    service.touch_last_login(user)
    access_token, expires_at = open_session(db, user, request.headers.get("user-agent"))
    db.commit()

    notifier.notify(AuthEvent.SIGNED_IN, load_access_context(db, user))
    return {"access_token": access_token, "token_type": "bearer", "expires_at": expires_at}


@router.post("/logout")
def logout_user(
    token_data: TokenData = Depends(get_token_data),
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
    notifier: AuthStateNotifier = Depends(get_auth_notifier)
):
    close_session(db, token_data.session_id)
    db.commit()
    notifier.notify(AuthEvent.SIGNED_OUT, ctx)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: User = Depends(get_current_user),
    ctx: AccessContext = Depends(get_access_context)
):
    return _user_response(current_user, ctx)


@router.get("/roles", response_model=RolesResponse)
def get_current_user_roles(ctx: AccessContext = Depends(get_access_context)):
    return RolesResponse(user_id=ctx.user_id, roles=sorted(ctx.roles, key=lambda r: r.value))
