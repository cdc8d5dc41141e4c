import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.schemas import UserCreate
from app.auth.utils import get_password_hash, verify_password
from app.exceptions import NotFoundError, ValidationError
from app.models import AppRole, Profile, User, UserRoleAssignment
from app.policies import AccessContext, Operation, policies

logger = logging.getLogger(__name__)

DEFAULT_FULL_NAME = "User"


class AccountService:
    def __init__(self, db: Session):
        self.db = db

    def register(self, user_data: UserCreate) -> User:
        """Create identity, profile and the default citizen role in one transaction."""
        email = user_data.email.lower()
        if self.db.query(User).filter(User.email == email).first():
            raise ValidationError("Email already registered")

        user = User(email=email, password_hash=get_password_hash(user_data.password))
        self.db.add(user)
        self.db.flush()

        self.db.add(Profile(
            id=user.id,
            email=email,
            full_name=user_data.full_name or DEFAULT_FULL_NAME,
            phone=user_data.phone,
        ))
        self.db.add(UserRoleAssignment(user_id=user.id, role=AppRole.CITIZEN))

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("Email already registered")

        self.db.refresh(user)
        logger.info(f"Registered citizen account {user.id}")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user or not verify_password(password, user.password_hash):
            return None
        return user

    def touch_last_login(self, user: User) -> None:
        user.last_login = datetime.now(timezone.utc)

    def grant_role(self, ctx: AccessContext, user_id: str, role: AppRole) -> UserRoleAssignment:
        """Grant *role* to *user_id*; granting an already-held role is a no-op."""
        if self.db.query(User.id).filter(User.id == user_id).first() is None:
            raise NotFoundError("User", user_id)

        assignment = UserRoleAssignment(user_id=user_id, role=role)
        policies.authorize_insert(self.db, ctx, assignment)

        existing = (
            self.db.query(UserRoleAssignment)
            .filter(UserRoleAssignment.user_id == user_id, UserRoleAssignment.role == role)
            .first()
        )
        if existing:
            return existing

        self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"User {ctx.user_id} granted role {role.value} to {user_id}")
        return assignment

    def list_users(self, ctx: AccessContext) -> List[Dict]:
        """Profiles visible to the caller, each with the roles the caller can see."""
        profiles = (
            policies.scope(self.db, ctx, Profile, Operation.SELECT)
            .order_by(Profile.created_at)
            .all()
        )

        role_rows = policies.scope(self.db, ctx, UserRoleAssignment, Operation.SELECT).all()
        roles_by_user: Dict[str, List[AppRole]] = {}
        for row in role_rows:
            roles_by_user.setdefault(row.user_id, []).append(AppRole(row.role))

        return [
            {
                "id": profile.id,
                "email": profile.email,
                "full_name": profile.full_name,
                "phone": profile.phone,
                "roles": sorted(roles_by_user.get(profile.id, []), key=lambda r: r.value),
                "created_at": profile.created_at,
            }
            for profile in profiles
        ]
