"""Integration tests for the SQL repositories on SQLite."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.access.tenant import TenantResolver
from backend.app.db.context import MembershipStatus, Principal, PrincipalRole, TeamRole
from backend.app.db.models import Business, BusinessUser, PrincipalRow
from backend.app.db.sql_repositories import SqlMembershipRepository, SqlPrincipalRepository
from backend.app.errors import DatastoreUnavailableError

T0 = datetime(2026, 1, 15, 12, 0, 0)


async def _seed(session: AsyncSession) -> None:
    session.add_all(
        [
            PrincipalRow(user_id="alice", email="alice@example.com", is_premium=True),
            PrincipalRow(user_id="root", email="root@example.com", role=PrincipalRole.ADMIN),
            Business(business_id="biz-1", name="Ocala Bakery"),
            Business(business_id="biz-2", name="Ocala Florist"),
            Business(business_id="biz-3", name="Ocala Garage"),
        ]
    )
    await session.flush()
    session.add_all(
        [
            BusinessUser(
                business_id="biz-1", user_id="alice", role=TeamRole.STAFF, created_at=T0
            ),
            BusinessUser(
                business_id="biz-2",
                user_id="alice",
                role=TeamRole.OWNER,
                created_at=T0 + timedelta(days=1),
            ),
            BusinessUser(
                business_id="biz-3",
                user_id="alice",
                role=TeamRole.OWNER,
                status=MembershipStatus.SUSPENDED,
                created_at=T0 - timedelta(days=1),
            ),
        ]
    )
    await session.commit()


class FakeSession:
    def __init__(self, principal: Principal | None) -> None:
        self.principal = principal

    async def current_principal(self) -> Principal | None:
        return self.principal


@pytest.mark.asyncio
async def test_lists_active_memberships_oldest_first(sqlite_session: AsyncSession) -> None:
    await _seed(sqlite_session)

    records = await SqlMembershipRepository(sqlite_session).list_active_memberships("alice")

    assert [r.business_id for r in records] == ["biz-1", "biz-2"]
    assert [r.role for r in records] == [TeamRole.STAFF, TeamRole.OWNER]
    assert records[0].business_name == "Ocala Bakery"
    assert all(r.status is MembershipStatus.ACTIVE for r in records)


@pytest.mark.asyncio
async def test_unknown_user_has_no_memberships(sqlite_session: AsyncSession) -> None:
    await _seed(sqlite_session)

    assert await SqlMembershipRepository(sqlite_session).list_active_memberships("nobody") == []


@pytest.mark.asyncio
async def test_resolver_over_sql(sqlite_session: AsyncSession) -> None:
    """Suspended OWNER rows are ignored; the ACTIVE OWNER row wins."""
    await _seed(sqlite_session)
    alice = Principal(user_id="alice", email="alice@example.com", is_premium=True)

    ctx = await TenantResolver(FakeSession(alice), SqlMembershipRepository(sqlite_session)).resolve()

    assert ctx.business_id == "biz-2"
    assert ctx.role is TeamRole.OWNER


@pytest.mark.asyncio
async def test_touch_last_active_respects_stale_before(sqlite_session: AsyncSession) -> None:
    await _seed(sqlite_session)
    repo = SqlMembershipRepository(sqlite_session)

    await repo.touch_last_active("biz-1", "alice", T0)
    await repo.touch_last_active("biz-1", "alice", T0 + timedelta(minutes=1), stale_before=T0 - timedelta(minutes=4))

    row = await sqlite_session.scalar(
        select(BusinessUser).where(BusinessUser.business_id == "biz-1")
    )
    assert row is not None
    await sqlite_session.refresh(row)
    assert row.last_active_at is not None
    assert row.last_active_at.replace(tzinfo=None) == T0

    await repo.touch_last_active("biz-1", "alice", T0 + timedelta(minutes=6), stale_before=T0 + timedelta(minutes=1))
    await sqlite_session.refresh(row)
    assert row.last_active_at is not None
    assert row.last_active_at.replace(tzinfo=None) == T0 + timedelta(minutes=6)


@pytest.mark.asyncio
async def test_principal_lookup(sqlite_session: AsyncSession) -> None:
    await _seed(sqlite_session)
    repo = SqlPrincipalRepository(sqlite_session)

    alice = await repo.get_principal("alice")
    root = await repo.get_principal("root")

    assert alice == Principal(user_id="alice", email="alice@example.com", is_premium=True)
    assert root is not None and root.is_admin
    assert await repo.get_principal("nobody") is None


@pytest.mark.asyncio
async def test_connection_failure_is_datastore_unavailable() -> None:
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = OperationalError("SELECT 1", {}, ConnectionRefusedError())

    with pytest.raises(DatastoreUnavailableError):
        await SqlMembershipRepository(session).list_active_memberships("alice")

    with pytest.raises(DatastoreUnavailableError):
        await SqlPrincipalRepository(session).get_principal("alice")


@pytest.mark.asyncio
async def test_touch_failure_rolls_back() -> None:
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = OperationalError("UPDATE", {}, ConnectionRefusedError())

    with pytest.raises(DatastoreUnavailableError):
        await SqlMembershipRepository(session).touch_last_active("biz-1", "alice", datetime.now(timezone.utc))

    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_touch_failure_survives_failed_rollback() -> None:
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = OperationalError("UPDATE", {}, ConnectionRefusedError())
    session.rollback.side_effect = OperationalError("ROLLBACK", {}, ConnectionRefusedError())

    with pytest.raises(DatastoreUnavailableError):
        await SqlMembershipRepository(session).touch_last_active("biz-1", "alice", datetime.now(timezone.utc))

    session.rollback.assert_awaited_once()
