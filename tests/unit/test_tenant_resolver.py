"""Unit tests for tenant resolution."""

from datetime import datetime, timedelta, timezone

import pytest
from prometheus_client import REGISTRY

from backend.app.access.tenant import TenantResolver, select_membership
from backend.app.db.context import MembershipStatus, Principal, TeamRole
from backend.app.db.inmemory import InMemoryMembershipRepository
from backend.app.db.repositories import MembershipRecord
from backend.app.errors import (
    DatastoreUnavailableError,
    ErrorCode,
    ForbiddenError,
    ForbiddenReason,
    TenantSafetyError,
    UnauthorizedError,
)

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeSession:
    """SessionProvider returning a fixed principal."""

    def __init__(self, principal: Principal | None) -> None:
        self.principal = principal

    async def current_principal(self) -> Principal | None:
        return self.principal


class BrokenMembershipRepository:
    """Membership repository whose datastore is down."""

    async def list_active_memberships(self, user_id: str) -> list[MembershipRecord]:
        raise DatastoreUnavailableError()

    async def touch_last_active(self, business_id: str, user_id: str, at: datetime, *, stale_before: datetime | None = None) -> None:
        raise DatastoreUnavailableError()


def _failures(code: ErrorCode) -> float:
    return REGISTRY.get_sample_value("tenant_resolution_failures_total", {"code": code.value}) or 0.0


@pytest.fixture
def repo() -> InMemoryMembershipRepository:
    return InMemoryMembershipRepository()


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id="alice", email="alice@example.com", is_premium=True)


@pytest.mark.asyncio
async def test_resolves_single_membership(
    repo: InMemoryMembershipRepository, alice: Principal
) -> None:
    """A user with one ACTIVE membership resolves to it."""
    repo.add_membership("alice", "biz-1", TeamRole.STAFF, created_at=T0)

    ctx = await TenantResolver(FakeSession(alice), repo).resolve()

    assert ctx.business_id == "biz-1"
    assert ctx.role is TeamRole.STAFF
    assert ctx.user_id == "alice"


@pytest.mark.asyncio
async def test_no_principal_is_unauthorized(repo: InMemoryMembershipRepository) -> None:
    """Unauthenticated requests fail with 401 before any lookup."""
    before = _failures(ErrorCode.UNAUTHORIZED)

    with pytest.raises(UnauthorizedError) as exc_info:
        await TenantResolver(FakeSession(None), repo).resolve()

    assert exc_info.value.status_code == 401
    assert _failures(ErrorCode.UNAUTHORIZED) == before + 1


@pytest.mark.asyncio
async def test_no_active_membership_is_forbidden(
    repo: InMemoryMembershipRepository, alice: Principal
) -> None:
    """INVITED and SUSPENDED memberships do not count."""
    repo.add_membership("alice", "biz-1", TeamRole.OWNER, status=MembershipStatus.INVITED)
    repo.add_membership("alice", "biz-2", TeamRole.ADMIN, status=MembershipStatus.SUSPENDED)

    with pytest.raises(ForbiddenError) as exc_info:
        await TenantResolver(FakeSession(alice), repo).resolve()

    assert exc_info.value.reason is ForbiddenReason.no_active_membership
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_datastore_outage_is_not_forbidden(alice: Principal) -> None:
    """An unreachable datastore surfaces as DB_UNAVAILABLE (503), never 403."""
    with pytest.raises(DatastoreUnavailableError) as exc_info:
        await TenantResolver(FakeSession(alice), BrokenMembershipRepository()).resolve()

    assert exc_info.value.code is ErrorCode.DB_UNAVAILABLE
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_requested_business_must_be_a_membership(
    repo: InMemoryMembershipRepository, alice: Principal
) -> None:
    """A business id outside the caller's memberships is refused."""
    repo.add_membership("alice", "biz-1", TeamRole.OWNER, created_at=T0)

    with pytest.raises(ForbiddenError) as exc_info:
        await TenantResolver(FakeSession(alice), repo).resolve("biz-other")

    assert exc_info.value.reason is ForbiddenReason.business_access_denied


@pytest.mark.asyncio
async def test_requested_business_is_trimmed(
    repo: InMemoryMembershipRepository, alice: Principal
) -> None:
    repo.add_membership("alice", "biz-1", TeamRole.OWNER, created_at=T0)
    repo.add_membership("alice", "biz-2", TeamRole.STAFF, created_at=T0 + timedelta(days=1))

    ctx = await TenantResolver(FakeSession(alice), repo).resolve("  biz-2 ")

    assert ctx.business_id == "biz-2"
    assert ctx.role is TeamRole.STAFF


@pytest.mark.asyncio
async def test_blank_requested_business_means_none(
    repo: InMemoryMembershipRepository, alice: Principal
) -> None:
    repo.add_membership("alice", "biz-1", TeamRole.STAFF, created_at=T0)

    ctx = await TenantResolver(FakeSession(alice), repo).resolve("   ")

    assert ctx.business_id == "biz-1"


@pytest.mark.asyncio
async def test_requested_inactive_business_is_denied(
    repo: InMemoryMembershipRepository, alice: Principal
) -> None:
    """A SUSPENDED membership cannot be selected explicitly."""
    repo.add_membership("alice", "biz-1", TeamRole.STAFF, created_at=T0)
    repo.add_membership("alice", "biz-2", TeamRole.OWNER, status=MembershipStatus.SUSPENDED)

    with pytest.raises(ForbiddenError) as exc_info:
        await TenantResolver(FakeSession(alice), repo).resolve("biz-2")

    assert exc_info.value.reason is ForbiddenReason.business_access_denied


class TestActiveBusinessPrecedence:
    """Default selection when no business is requested."""

    @pytest.mark.asyncio
    async def test_prefers_oldest_owner_membership(
        self, repo: InMemoryMembershipRepository, alice: Principal
    ) -> None:
        repo.add_membership("alice", "biz-staff", TeamRole.STAFF, created_at=T0)
        repo.add_membership("alice", "biz-owner-new", TeamRole.OWNER, created_at=T0 + timedelta(days=2))
        repo.add_membership("alice", "biz-owner-old", TeamRole.OWNER, created_at=T0 + timedelta(days=1))

        ctx = await TenantResolver(FakeSession(alice), repo).resolve()

        assert ctx.business_id == "biz-owner-old"
        assert ctx.role is TeamRole.OWNER

    @pytest.mark.asyncio
    async def test_falls_back_to_oldest_membership(
        self, repo: InMemoryMembershipRepository, alice: Principal
    ) -> None:
        repo.add_membership("alice", "biz-b", TeamRole.STAFF, created_at=T0 + timedelta(days=1))
        repo.add_membership("alice", "biz-a", TeamRole.ADMIN, created_at=T0 + timedelta(days=3))
        repo.add_membership("alice", "biz-c", TeamRole.STAFF, created_at=T0)

        ctx = await TenantResolver(FakeSession(alice), repo).resolve()

        assert ctx.business_id == "biz-c"

    @pytest.mark.asyncio
    async def test_ties_break_on_business_id(
        self, repo: InMemoryMembershipRepository, alice: Principal
    ) -> None:
        repo.add_membership("alice", "biz-z", TeamRole.STAFF, created_at=T0)
        repo.add_membership("alice", "biz-m", TeamRole.STAFF, created_at=T0)

        ctx = await TenantResolver(FakeSession(alice), repo).resolve()

        assert ctx.business_id == "biz-m"

    def test_select_membership_empty(self) -> None:
        assert select_membership([], None) is None


class TestDemoSessions:
    """Demo principals are pinned to the configured demo business."""

    @pytest.fixture
    def demo(self) -> Principal:
        return Principal(user_id="demo", email="demo@example.com", is_premium=True, demo=True)

    @pytest.mark.asyncio
    async def test_resolves_to_demo_business_as_staff(
        self, repo: InMemoryMembershipRepository, demo: Principal
    ) -> None:
        ctx = await TenantResolver(FakeSession(demo), repo, demo_business_id="biz-demo").resolve()

        assert ctx.business_id == "biz-demo"
        assert ctx.role is TeamRole.STAFF

    @pytest.mark.asyncio
    async def test_demo_business_may_be_requested(
        self, repo: InMemoryMembershipRepository, demo: Principal
    ) -> None:
        ctx = await TenantResolver(FakeSession(demo), repo, demo_business_id="biz-demo").resolve(
            "biz-demo"
        )

        assert ctx.business_id == "biz-demo"

    @pytest.mark.asyncio
    async def test_other_business_is_blocked(
        self, repo: InMemoryMembershipRepository, demo: Principal
    ) -> None:
        repo.add_membership("demo", "biz-real", TeamRole.OWNER, created_at=T0)

        with pytest.raises(TenantSafetyError) as exc_info:
            await TenantResolver(FakeSession(demo), repo, demo_business_id="biz-demo").resolve(
                "biz-real"
            )

        assert exc_info.value.code is ErrorCode.TENANT_SAFETY_BLOCKED

    @pytest.mark.asyncio
    async def test_unconfigured_demo_business_is_blocked(
        self, repo: InMemoryMembershipRepository, demo: Principal
    ) -> None:
        with pytest.raises(TenantSafetyError):
            await TenantResolver(FakeSession(demo), repo, demo_business_id="  ").resolve()
