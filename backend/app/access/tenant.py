"""Tenant resolution: principal + memberships -> one business context.

The resolver is read-only. Session state is injected through a
``SessionProvider`` so tests can substitute fakes.

Active business precedence, applied to ACTIVE memberships ordered by
``created_at`` (``business_id`` breaks ties):

1. an explicitly requested business, if the caller is an ACTIVE member;
2. otherwise the oldest OWNER membership;
3. otherwise the oldest membership.

Demo sessions are pinned to the configured demo business with the STAFF role.
"""

from typing import Protocol

from backend.app.db.context import BusinessContext, Principal, TeamRole
from backend.app.db.repositories import MembershipRecord, MembershipRepository
from backend.app.errors import (
    ApiError,
    DatastoreUnavailableError,
    ForbiddenError,
    ForbiddenReason,
    TenantSafetyError,
    UnauthorizedError,
)
from backend.app.utils.logging import api_logger
from backend.app.utils.metrics import access_metrics


class SessionProvider(Protocol):
    """Source of the authenticated principal for the current request."""

    async def current_principal(self) -> Principal | None:
        """Return the authenticated principal, or None if unauthenticated."""
        ...


def select_membership(
    memberships: list[MembershipRecord], requested_business_id: str | None
) -> MembershipRecord | None:
    """Pick the active membership per the documented precedence.

    Args:
        memberships: ACTIVE memberships, oldest first
        requested_business_id: Explicit selector, already trimmed

    Returns:
        Selected membership, or None if the requested business is not allowed
    """
    if requested_business_id:
        for membership in memberships:
            if membership.business_id == requested_business_id:
                return membership
        return None

    for membership in memberships:
        if membership.role is TeamRole.OWNER:
            return membership

    return memberships[0] if memberships else None


class TenantResolver:
    """Resolves ``BusinessContext`` for the current request."""

    def __init__(
        self,
        session_provider: SessionProvider,
        memberships: MembershipRepository,
        demo_business_id: str | None = None,
    ) -> None:
        self._session_provider = session_provider
        self._memberships = memberships
        self._demo_business_id = (demo_business_id or "").strip() or None

    async def resolve(self, requested_business_id: str | None = None) -> BusinessContext:
        """Resolve the caller's business context.

        Args:
            requested_business_id: Optional business selector from the request.
                Only honoured if it matches an ACTIVE membership.

        Returns:
            BusinessContext with business_id, role and user_id

        Raises:
            UnauthorizedError: No authenticated principal
            DatastoreUnavailableError: Membership lookup failed
            TenantSafetyError: Demo session outside the demo business
            ForbiddenError: No ACTIVE membership, or requested business not allowed
        """
        try:
            return await self._resolve(requested_business_id)
        except ApiError as e:
            access_metrics.inc_tenant_failure(e.code.value)
            raise

    async def _resolve(self, requested_business_id: str | None) -> BusinessContext:
        principal = await self._session_provider.current_principal()
        if principal is None:
            raise UnauthorizedError()

        requested = (requested_business_id or "").strip() or None

        if principal.demo:
            # Demo sessions have no memberships; they browse the demo business as staff
            return BusinessContext(
                business_id=self._pin_to_demo_business(requested),
                role=TeamRole.STAFF,
                user_id=principal.user_id,
            )

        try:
            memberships = await self._memberships.list_active_memberships(principal.user_id)
        except DatastoreUnavailableError:
            api_logger.error("tenant.membership_lookup_failed", {"user_id": principal.user_id})
            raise

        if not memberships:
            raise ForbiddenError(
                ForbiddenReason.no_active_membership,
                "No active business membership found for this account.",
            )

        selected = select_membership(memberships, requested)
        if selected is None:
            raise ForbiddenError(ForbiddenReason.business_access_denied, "Business access denied.")

        return BusinessContext(
            business_id=selected.business_id,
            role=selected.role,
            user_id=principal.user_id,
        )

    def _pin_to_demo_business(self, requested: str | None) -> str:
        if self._demo_business_id is None:
            raise TenantSafetyError("Demo mode is active but no demo business is configured.")
        if requested is not None and requested != self._demo_business_id:
            api_logger.warning("tenant.demo_cross_tenant_blocked", {"requested": requested})
            raise TenantSafetyError()
        return self._demo_business_id
