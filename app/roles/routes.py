from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.auth.dependencies import get_access_context, get_optional_access_context
from app.models import AppRole
from app.policies import AccessContext
from app.roles.routing import choose_role, guard_route, resolve_destination

router = APIRouter(prefix="/session", tags=["Session Routing"])


class DestinationResponse(BaseModel):
    path: str
    roles: List[AppRole]
    requires_selection: bool
    error: Optional[str] = None


class RoleSelection(BaseModel):
    role: AppRole


class SelectionResponse(BaseModel):
    role: AppRole
    path: str


class GuardResponse(BaseModel):
    path: str
    allowed: bool
    redirect: Optional[str] = None
    not_found: bool = False


@router.get("/destination", response_model=DestinationResponse)
def get_destination(ctx: AccessContext = Depends(get_optional_access_context)):
    """Landing page for the caller; anonymous callers are sent to /auth."""
    destination = resolve_destination(ctx.roles)
    return DestinationResponse(
        path=destination.path,
        roles=destination.roles,
        requires_selection=destination.requires_selection,
        error=destination.error if ctx.is_authenticated else None,
    )


@router.post("/select-role", response_model=SelectionResponse)
def select_role(selection: RoleSelection, ctx: AccessContext = Depends(get_access_context)):
    return SelectionResponse(role=selection.role, path=choose_role(ctx.roles, selection.role))


@router.get("/guard", response_model=GuardResponse)
def check_route(
    path: str = Query(..., min_length=1),
    ctx: AccessContext = Depends(get_optional_access_context)
):
    decision = guard_route(path, ctx)
    return GuardResponse(
        path=path,
        allowed=decision.allowed,
        redirect=decision.redirect,
        not_found=decision.not_found,
    )
