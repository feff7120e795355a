"""Request authentication and access dependencies.

Every business-scoped route runs, in order: authentication (401), premium
guard (403 ``PREMIUM_REQUIRED``), rate limit (429), then the permission gate.
The bearer token is the principal's user id; the ``obd_demo`` cookie starts
a demo session when no bearer token is sent.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Annotated

import redis
from fastapi import Cookie, Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.access.gate import PermissionGate
from backend.app.access.permissions import ActionKey, AppKey
from backend.app.access.tenant import TenantResolver
from backend.app.config import Settings, get_settings
from backend.app.db.context import BusinessContext, Principal
from backend.app.db.engine import get_session
from backend.app.db.inmemory import InMemoryRateLimiter
from backend.app.db.repositories import MembershipRepository, PrincipalRepository, RateLimiter
from backend.app.db.sql_repositories import SqlMembershipRepository, SqlPrincipalRepository
from backend.app.errors import (
    DatastoreUnavailableError,
    PremiumRequiredError,
    RateLimitedError,
    UnauthorizedError,
)
from backend.app.ratelimit import RedisRateLimiter, client_ip, make_rate_limit_key
from backend.app.utils.logging import api_logger

DEMO_COOKIE = "obd_demo"
DEMO_USER_ID = "demo"


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from ``Bearer <token>``; None if absent or malformed."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def demo_principal() -> Principal:
    """The principal used for demo sessions."""
    return Principal(
        user_id=DEMO_USER_ID,
        email="demo@ocalabusinessdirectory.com",
        is_premium=True,
        demo=True,
    )


class HeaderSessionProvider:
    """SessionProvider backed by request headers.

    The principal is looked up once per request and cached.
    """

    def __init__(
        self,
        principals: PrincipalRepository,
        authorization: str | None,
        demo_cookie: str | None = None,
    ) -> None:
        self._principals = principals
        self._authorization = authorization
        self._demo_cookie = demo_cookie
        self._loaded = False
        self._principal: Principal | None = None

    async def current_principal(self) -> Principal | None:
        if not self._loaded:
            self._principal = await self._load()
            self._loaded = True
        return self._principal

    async def _load(self) -> Principal | None:
        user_id = parse_bearer(self._authorization)
        if user_id is not None:
            return await self._principals.get_principal(user_id)

        if self._demo_cookie == "1":
            return demo_principal()

        return None


async def get_principal_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PrincipalRepository:
    return SqlPrincipalRepository(session)


async def get_membership_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> MembershipRepository:
    return SqlMembershipRepository(session)


async def get_session_provider(
    principals: Annotated[PrincipalRepository, Depends(get_principal_repository)],
    authorization: Annotated[str | None, Header()] = None,
    obd_demo: Annotated[str | None, Cookie()] = None,
) -> HeaderSessionProvider:
    return HeaderSessionProvider(principals, authorization, obd_demo)


async def get_tenant_resolver(
    provider: Annotated[HeaderSessionProvider, Depends(get_session_provider)],
    memberships: Annotated[MembershipRepository, Depends(get_membership_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TenantResolver:
    return TenantResolver(provider, memberships, settings.demo_business_id)


async def get_permission_gate(
    resolver: Annotated[TenantResolver, Depends(get_tenant_resolver)],
) -> PermissionGate:
    return PermissionGate(resolver)


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter: Redis when configured, in-memory otherwise."""
    global _rate_limiter
    if _rate_limiter is None:
        settings = get_settings()
        if settings.redis_url:
            _rate_limiter = RedisRateLimiter(
                redis.from_url(settings.redis_url),  # type: ignore[no-untyped-call]
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )
        else:
            _rate_limiter = InMemoryRateLimiter(
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )
    return _rate_limiter


def ensure_premium(principal: Principal) -> None:
    """Raise PremiumRequiredError unless the principal is premium or an admin."""
    if not (principal.is_premium or principal.is_admin):
        raise PremiumRequiredError()


def enforce_rate_limit(
    limiter: RateLimiter,
    request: Request,
    principal: Principal | None,
    now: datetime | None = None,
) -> None:
    """Raise RateLimitedError when the caller's window is exhausted.

    A Redis outage lets the request through; rate limiting is not an access
    decision.
    """
    key = make_rate_limit_key(principal, client_ip(request))
    try:
        retry_after = limiter.check_quota(key, now or datetime.now(timezone.utc))
    except redis.RedisError as e:
        api_logger.warning("ratelimit.unavailable", {"error": type(e).__name__})
        return

    if retry_after is not None:
        api_logger.info("ratelimit.exceeded", {"key": key, "retry_after": retry_after.seconds})
        raise RateLimitedError(retry_after.seconds)


async def get_guarded_principal(
    request: Request,
    provider: Annotated[HeaderSessionProvider, Depends(get_session_provider)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> Principal:
    """Authentication, premium guard and rate limit, in that order."""
    principal = await provider.current_principal()
    if principal is None:
        raise UnauthorizedError()

    ensure_premium(principal)
    enforce_rate_limit(limiter, request, principal)
    return principal


async def touch_last_active(
    memberships: MembershipRepository,
    ctx: BusinessContext,
    principal: Principal,
    settings: Settings,
    now: datetime | None = None,
) -> None:
    """Best-effort activity stamp; never affects the access decision."""
    if principal.demo:
        return

    at = now or datetime.now(timezone.utc)
    stale_before = at - timedelta(seconds=settings.last_active_touch_window_seconds)
    try:
        await memberships.touch_last_active(
            ctx.business_id, ctx.user_id, at, stale_before=stale_before
        )
    except DatastoreUnavailableError:
        api_logger.warning(
            "tenant.touch_last_active_failed",
            {"business_id": ctx.business_id, "user_id": ctx.user_id},
        )


def require_permission(
    app: AppKey, action: ActionKey
) -> Callable[..., Awaitable[BusinessContext]]:
    """Dependency factory guarding a route with ``action`` on ``app``.

    The business is selected by the optional ``businessId`` query parameter.

    Example:
        @router.get("/crm/contacts")
        async def list_contacts(
            ctx: Annotated[BusinessContext, Depends(require_permission(AppKey.OBD_CRM, ActionKey.VIEW))],
        ): ...
    """

    async def dependency(
        principal: Annotated[Principal, Depends(get_guarded_principal)],
        gate: Annotated[PermissionGate, Depends(get_permission_gate)],
        memberships: Annotated[MembershipRepository, Depends(get_membership_repository)],
        settings: Annotated[Settings, Depends(get_settings)],
        business_id: Annotated[str | None, Query(alias="businessId")] = None,
    ) -> BusinessContext:
        ctx = await gate.require(app, action, business_id)
        await touch_last_active(memberships, ctx, principal, settings)
        return ctx

    return dependency
