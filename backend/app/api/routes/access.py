"""Access endpoints - tenant context, memberships and permission checks."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.app.access.gate import PermissionGate
from backend.app.access.permissions import ActionKey, AppKey, get_role_capability_summary
from backend.app.api.auth import (
    HeaderSessionProvider,
    get_guarded_principal,
    get_membership_repository,
    get_permission_gate,
    get_session_provider,
    require_permission,
    touch_last_active,
)
from backend.app.api.envelope import success_response
from backend.app.config import Settings, get_settings
from backend.app.db.context import BusinessContext, Principal
from backend.app.db.repositories import MembershipRepository
from backend.app.errors import UnauthorizedError
from backend.app.models.access import (
    AccessCheckRequest,
    AccessCheckResponse,
    AccessContextResponse,
    MembershipSummary,
)
from backend.app.models.envelope import ApiSuccessResponse

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/context", response_model=ApiSuccessResponse[AccessContextResponse])
async def get_access_context(
    principal: Annotated[Principal, Depends(get_guarded_principal)],
    ctx: Annotated[
        BusinessContext, Depends(require_permission(AppKey.TEAMS_USERS, ActionKey.VIEW))
    ],
) -> JSONResponse:
    """Resolve the caller's business context.

    Args:
        principal: Authenticated principal
        ctx: Resolved context (``businessId`` query parameter selects the business)

    Returns:
        Context with the role's capability summary
    """
    body = AccessContextResponse(
        business_id=ctx.business_id,
        role=ctx.role,
        user_id=ctx.user_id,
        demo=principal.demo,
        capabilities=get_role_capability_summary(ctx.role),
    )
    return success_response(body)


@router.get("/memberships", response_model=ApiSuccessResponse[list[MembershipSummary]])
async def list_memberships(
    provider: Annotated[HeaderSessionProvider, Depends(get_session_provider)],
    memberships: Annotated[MembershipRepository, Depends(get_membership_repository)],
) -> JSONResponse:
    """List the caller's ACTIVE memberships, oldest first.

    Demo sessions have no memberships.
    """
    principal = await provider.current_principal()
    if principal is None:
        raise UnauthorizedError()

    if principal.demo:
        return success_response([])

    records = await memberships.list_active_memberships(principal.user_id)
    return success_response(
        [
            MembershipSummary(
                business_id=r.business_id,
                business_name=r.business_name,
                role=r.role,
                created_at=r.created_at,
                last_active_at=r.last_active_at,
            )
            for r in records
        ]
    )


@router.post("/check", response_model=ApiSuccessResponse[AccessCheckResponse])
async def check_access(
    request: AccessCheckRequest,
    principal: Annotated[Principal, Depends(get_guarded_principal)],
    gate: Annotated[PermissionGate, Depends(get_permission_gate)],
    memberships: Annotated[MembershipRepository, Depends(get_membership_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JSONResponse:
    """Check one (app, action) for the caller.

    Denials come back as the gate's 403 envelope.
    """
    ctx = await gate.require(request.app, request.action, request.business_id)
    await touch_last_active(memberships, ctx, principal, settings)

    return success_response(
        AccessCheckResponse(
            allowed=True,
            app=request.app,
            action=request.action,
            business_id=ctx.business_id,
            role=ctx.role,
        )
    )
