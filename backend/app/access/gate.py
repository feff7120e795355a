"""Permission gate: tenant resolution followed by a matrix check."""

from collections.abc import Callable

from backend.app.access.permissions import ActionKey, AppKey, can_user
from backend.app.access.tenant import TenantResolver
from backend.app.db.context import BusinessContext, TeamRole
from backend.app.errors import ForbiddenError, ForbiddenReason
from backend.app.utils.logging import api_logger
from backend.app.utils.metrics import access_metrics

PermissionCheck = Callable[[TeamRole, AppKey, ActionKey], bool]


class PermissionGate:
    """The single call a handler makes before any business-scoped work."""

    def __init__(self, resolver: TenantResolver, check: PermissionCheck = can_user) -> None:
        self._resolver = resolver
        self._check = check

    async def require(
        self,
        app: AppKey,
        action: ActionKey,
        requested_business_id: str | None = None,
    ) -> BusinessContext:
        """Resolve the tenant, then require ``action`` on ``app`` for its role.

        Resolver errors propagate untouched; the matrix is only consulted once
        a context exists.

        Raises:
            ForbiddenError: Role not permitted (reason ``role_not_permitted``)
        """
        ctx = await self._resolver.resolve(requested_business_id)

        allowed = self._check(ctx.role, app, action)
        access_metrics.record_permission_check(app.value, action.value, allowed)

        if not allowed:
            api_logger.info(
                "permission.denied",
                {
                    "app": app.value,
                    "action": action.value,
                    "role": ctx.role.value,
                    "business_id": ctx.business_id,
                },
            )
            raise ForbiddenError(
                ForbiddenReason.role_not_permitted,
                "Your role does not allow this action.",
            )

        return ctx
