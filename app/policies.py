"""
Row-level authorization policies: the enforcement boundary for every table.

Each ``Rule`` is permissive: it grants a set of operations on one model,
either through a row filter (``using``, applied to select/update/delete
queries) or an insert check (``check``, evaluated against the candidate
row). Rules for the same model and operation are OR-ed together and a
model/operation with no rule is denied outright.

Route-level role checks are a convenience; data access always goes through
a ``PolicyRegistry`` so that a missing route check cannot leak rows.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, List, Optional

from sqlalchemy import exists, false, or_, true
from sqlalchemy.orm import Query, Session

from app.config import DOCUMENTS_BUCKET
from app.exceptions import PolicyViolation
from app.models import (
    AadhaarDetails, Address, Application, AppRole, Department, Document, Payment,
    Profile, Service, UserRoleAssignment,
)

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


ALL_OPERATIONS = frozenset(Operation)


@dataclass(frozen=True)
class AccessContext:
    """The caller's identity and role set for one request."""
    user_id: Optional[str]
    email: Optional[str] = None
    roles: FrozenSet[AppRole] = frozenset()

    @classmethod
    def anonymous(cls) -> "AccessContext":
        return cls(user_id=None)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def has_role(self, role: AppRole) -> bool:
        return role in self.roles

    @property
    def is_staff(self) -> bool:
        return self.has_role(AppRole.OFFICER) or self.has_role(AppRole.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.has_role(AppRole.ADMIN)


RowFilter = Callable[[AccessContext], Any]
InsertCheck = Callable[[Session, AccessContext, Any], bool]


@dataclass(frozen=True)
class Rule:
    name: str
    model: type
    operations: FrozenSet[Operation]
    using: Optional[RowFilter] = None
    check: Optional[InsertCheck] = None


class PolicyRegistry:
    """Holds the rules and applies them to queries and candidate rows."""

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: List[Rule] = list(rules)

    def add(self, rule: Rule) -> None:
        self._rules.append(rule)

    def rules_for(self, model: type, operation: Operation) -> List[Rule]:
        return [r for r in self._rules if r.model is model and operation in r.operations]

    def row_filter(self, ctx: AccessContext, model: type, operation: Operation = Operation.SELECT):
        clauses = [r.using(ctx) for r in self.rules_for(model, operation) if r.using is not None]
        if not clauses:
            return false()
        return or_(*clauses)

    def scope(self, db: Session, ctx: AccessContext, model: type,
              operation: Operation = Operation.SELECT) -> Query:
        """Return a query over *model* restricted to rows *ctx* may touch."""
        return db.query(model).filter(self.row_filter(ctx, model, operation))

    def can_insert(self, db: Session, ctx: AccessContext, obj: Any) -> bool:
        rules = self.rules_for(type(obj), Operation.INSERT)
        return any(r.check(db, ctx, obj) for r in rules if r.check is not None)

    def authorize_insert(self, db: Session, ctx: AccessContext, obj: Any) -> None:
        if not self.can_insert(db, ctx, obj):
            table = type(obj).__tablename__
            logger.warning(f"Policy denied insert on {table} for user {ctx.user_id}")
            raise PolicyViolation(table, Operation.INSERT.value)

    def authorize_row(self, db: Session, ctx: AccessContext, obj: Any, operation: Operation) -> None:
        """Require that an existing row is visible under *operation*'s filter."""
        model = type(obj)
        visible = (
            db.query(model.id)
            .filter(model.id == obj.id, self.row_filter(ctx, model, operation))
            .first()
        )
        if visible is None:
            logger.warning(f"Policy denied {operation.value} on {model.__tablename__} row {obj.id} for user {ctx.user_id}")
            raise PolicyViolation(model.__tablename__, operation.value)


# =====================================================
# PREDICATE HELPERS
# =====================================================

def _staff(ctx: AccessContext):
    return true() if ctx.is_staff else false()


def _admin(ctx: AccessContext):
    return true() if ctx.is_admin else false()


def _admin_check(db: Session, ctx: AccessContext, obj: Any) -> bool:
    return ctx.is_admin


def _owns_application(db: Session, ctx: AccessContext, application_id: str) -> bool:
    if not ctx.is_authenticated:
        return False
    row = (
        db.query(Application.id)
        .filter(Application.id == application_id, Application.citizen_id == ctx.user_id)
        .first()
    )
    return row is not None


def _parent_application_owned(model):
    def using(ctx: AccessContext):
        return exists().where(
            Application.id == model.application_id,
            Application.citizen_id == ctx.user_id,
        )
    return using


# =====================================================
# DEFAULT RULES
# =====================================================

def build_default_registry() -> PolicyRegistry:
    rules = [
        # profiles
        Rule(
            "Users can manage their own profile", Profile,
            frozenset({Operation.SELECT, Operation.INSERT, Operation.UPDATE}),
            using=lambda ctx: Profile.id == ctx.user_id,
            check=lambda db, ctx, obj: ctx.is_authenticated and obj.id == ctx.user_id,
        ),
        Rule("Admins can view all profiles", Profile, frozenset({Operation.SELECT}), using=_admin),

        # user_roles
        Rule(
            "Users can view their own roles", UserRoleAssignment, frozenset({Operation.SELECT}),
            using=lambda ctx: UserRoleAssignment.user_id == ctx.user_id,
        ),
        Rule(
            "Admins can view and grant roles", UserRoleAssignment,
            frozenset({Operation.SELECT, Operation.INSERT}),
            using=_admin, check=_admin_check,
        ),

        # aadhaar_details
        Rule(
            "Citizens can manage their own aadhaar", AadhaarDetails,
            frozenset({Operation.SELECT, Operation.INSERT}),
            using=lambda ctx: AadhaarDetails.citizen_id == ctx.user_id,
            check=lambda db, ctx, obj: ctx.is_authenticated and obj.citizen_id == ctx.user_id,
        ),
        Rule(
            "Officers can view all aadhaar", AadhaarDetails, frozenset({Operation.SELECT}),
            using=_staff,
        ),

        # addresses
        Rule(
            "Citizens can manage their own addresses", Address, ALL_OPERATIONS,
            using=lambda ctx: Address.citizen_id == ctx.user_id,
            check=lambda db, ctx, obj: ctx.is_authenticated and obj.citizen_id == ctx.user_id,
        ),

        # departments
        Rule("Anyone can view departments", Department, frozenset({Operation.SELECT}), using=lambda ctx: true()),
        Rule("Admins can manage departments", Department, ALL_OPERATIONS, using=_admin, check=_admin_check),

        # services
        Rule(
            "Anyone can view active services", Service, frozenset({Operation.SELECT}),
            using=lambda ctx: or_(Service.is_active.is_(True), _admin(ctx)),
        ),
        Rule("Admins can manage services", Service, ALL_OPERATIONS, using=_admin, check=_admin_check),

        # applications
        Rule(
            "Citizens can view their own applications", Application, frozenset({Operation.SELECT}),
            using=lambda ctx: Application.citizen_id == ctx.user_id,
        ),
        Rule(
            "Citizens can create applications", Application, frozenset({Operation.INSERT}),
            check=lambda db, ctx, obj: ctx.is_authenticated and obj.citizen_id == ctx.user_id,
        ),
        Rule(
            "Officers can view and update applications", Application,
            frozenset({Operation.SELECT, Operation.UPDATE}),
            using=_staff,
        ),

        # documents
        Rule(
            "Citizens can view and attach documents for their applications", Document,
            frozenset({Operation.SELECT, Operation.INSERT}),
            using=_parent_application_owned(Document),
            check=lambda db, ctx, obj: _owns_application(db, ctx, obj.application_id),
        ),
        Rule("Officers can view all documents", Document, frozenset({Operation.SELECT}), using=_staff),

        # payments
        Rule(
            "Citizens can view and create payments for their applications", Payment,
            frozenset({Operation.SELECT, Operation.INSERT}),
            using=_parent_application_owned(Payment),
            check=lambda db, ctx, obj: _owns_application(db, ctx, obj.application_id),
        ),
        Rule("Officers can view all payments", Payment, frozenset({Operation.SELECT}), using=_staff),
    ]
    return PolicyRegistry(rules)


policies = build_default_registry()


# =====================================================
# STORAGE OBJECT POLICY
# =====================================================

def object_owner(path: str) -> str:
    """First path segment of an object key, i.e. the uploader's user id."""
    return path.lstrip("/").split("/", 1)[0]


def can_access_object(ctx: AccessContext, bucket: str, path: str, operation: Operation) -> bool:
    if bucket != DOCUMENTS_BUCKET or not ctx.is_authenticated:
        return False
    owns = object_owner(path) == ctx.user_id
    if operation == Operation.INSERT:
        return owns
    if operation == Operation.SELECT:
        return owns or ctx.is_staff
    return False


def authorize_object(ctx: AccessContext, bucket: str, path: str, operation: Operation) -> None:
    if not can_access_object(ctx, bucket, path, operation):
        logger.warning(f"Storage policy denied {operation.value} on {bucket}/{path} for user {ctx.user_id}")
        raise PolicyViolation("storage.objects", operation.value)
