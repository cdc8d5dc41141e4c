"""
Role-based landing and route guarding for the portal UI.

Nothing here is a security boundary: it only decides where a caller should
be sent. Data access is enforced by app.policies.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Pattern

from app.exceptions import RoleNotHeldError
from app.models import AppRole
from app.policies import AccessContext

ROOT_ROUTE = "/"
AUTH_ROUTE = "/auth"
SELECT_ROLE_ROUTE = "/select-role"

DASHBOARD_ROUTES = {
    AppRole.CITIZEN: "/citizen",
    AppRole.OFFICER: "/officer",
    AppRole.ADMIN: "/admin",
}


@dataclass
class RoleDestination:
    path: str
    roles: List[AppRole] = field(default_factory=list)
    requires_selection: bool = False
    error: Optional[str] = None


def _sorted_roles(roles: Iterable[AppRole]) -> List[AppRole]:
    return sorted({AppRole(r) for r in roles}, key=lambda r: r.value)


def dashboard_for(role: AppRole) -> str:
    return DASHBOARD_ROUTES[AppRole(role)]


def resolve_destination(roles: Iterable[AppRole]) -> RoleDestination:
    """Where a freshly signed-in user with *roles* should land."""
    held = _sorted_roles(roles)
    if not held:
        return RoleDestination(path=AUTH_ROUTE, error="No roles assigned to this account")
    if len(held) == 1:
        return RoleDestination(path=dashboard_for(held[0]), roles=held)
    return RoleDestination(path=SELECT_ROLE_ROUTE, roles=held, requires_selection=True)


def choose_role(roles: Iterable[AppRole], chosen: AppRole) -> str:
    """Dashboard for the role picked on the selector; the pick is not persisted."""
    chosen = AppRole(chosen)
    if chosen not in set(_sorted_roles(roles)):
        raise RoleNotHeldError(chosen.value)
    return dashboard_for(chosen)


# =====================================================
# ROUTE GUARD
# =====================================================

@dataclass(frozen=True)
class RouteSpec:
    pattern: Pattern
    required_role: Optional[AppRole] = None
    public: bool = False


ROUTE_TABLE = [
    RouteSpec(re.compile(r"^/$")),
    RouteSpec(re.compile(r"^/auth$"), public=True),
    RouteSpec(re.compile(r"^/citizen$"), required_role=AppRole.CITIZEN),
    RouteSpec(re.compile(r"^/officer$"), required_role=AppRole.OFFICER),
    RouteSpec(re.compile(r"^/admin$"), required_role=AppRole.ADMIN),
    RouteSpec(re.compile(r"^/apply/[^/]+$"), required_role=AppRole.CITIZEN),
    RouteSpec(re.compile(r"^/select-role$")),
]


@dataclass
class GuardDecision:
    allowed: bool
    redirect: Optional[str] = None
    not_found: bool = False


def match_route(path: str) -> Optional[RouteSpec]:
    normalized = path.rstrip("/") or ROOT_ROUTE
    for spec in ROUTE_TABLE:
        if spec.pattern.match(normalized):
            return spec
    return None


def guard_route(path: str, ctx: AccessContext) -> GuardDecision:
    spec = match_route(path)
    if spec is None:
        return GuardDecision(allowed=False, not_found=True)
    if spec.public:
        return GuardDecision(allowed=True)
    if not ctx.is_authenticated:
        return GuardDecision(allowed=False, redirect=AUTH_ROUTE)
    if spec.pattern.match(ROOT_ROUTE):
        return GuardDecision(allowed=False, redirect=resolve_destination(ctx.roles).path)
    if spec.required_role is not None and not ctx.has_role(spec.required_role):
        return GuardDecision(allowed=False, redirect=ROOT_ROUTE)
    return GuardDecision(allowed=True)
