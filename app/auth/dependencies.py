from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.database import get_db
from app.models import User, AppRole
from app.auth.schemas import TokenData
from app.auth.session import find_active_session, load_access_context
from app.auth.utils import verify_token
from app.policies import AccessContext

bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _authenticate(token: str, db: Session) -> TokenData:
    credentials_exception = _credentials_exception()
    token_data = verify_token(token, credentials_exception)
    if find_active_session(db, token_data.session_id, token_data.user_id) is None:
        raise credentials_exception
    return token_data


def _load_user(token_data: TokenData, db: Session) -> User:
    user = db.query(User).filter(User.id == token_data.user_id).first()
    if user is None:
        raise _credentials_exception()
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active"
        )
    return user


def get_token_data(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> TokenData:
    return _authenticate(credentials.credentials, db)


def get_current_user(
    token_data: TokenData = Depends(get_token_data),
    db: Session = Depends(get_db)
) -> User:
    return _load_user(token_data, db)


def get_access_context(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> AccessContext:
    return load_access_context(db, current_user)


def get_optional_access_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer_scheme),
    db: Session = Depends(get_db)
) -> AccessContext:
    if credentials is None:
        return AccessContext.anonymous()
    token_data = _authenticate(credentials.credentials, db)
    return load_access_context(db, _load_user(token_data, db))


def require_role(allowed_roles: list[AppRole]):
    def role_checker(ctx: AccessContext = Depends(get_access_context)) -> AccessContext:
        if not ctx.roles.intersection(allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return ctx
    return role_checker


# Convenience wrappers
def require_admin():
    return require_role([AppRole.ADMIN])


def require_officer_or_admin():
    return require_role([AppRole.OFFICER, AppRole.ADMIN])


def require_citizen():
    return require_role([AppRole.CITIZEN])
