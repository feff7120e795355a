"""SQL implementations of repository interfaces."""

import logging
from contextlib import suppress
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import Principal
from backend.app.db.models import BusinessUser, PrincipalRow
from backend.app.db.queries import select_active_memberships, to_membership_record
from backend.app.db.repositories import MembershipRecord
from backend.app.errors import DatastoreUnavailableError

logger = logging.getLogger(__name__)

# Connection failures surface either wrapped by SQLAlchemy or raw from the driver
DATASTORE_ERRORS: tuple[type[BaseException], ...] = (SQLAlchemyError, OSError)


class SqlMembershipRepository:
    """SQL implementation of MembershipRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_active_memberships(self, user_id: str) -> list[MembershipRecord]:
        """List ACTIVE memberships for a user."""
        try:
            result = await self._session.execute(select_active_memberships(user_id))
            rows = result.all()
        except DATASTORE_ERRORS as e:
            logger.error(
                "Membership lookup failed",
                extra={"structured": {"user_id": user_id, "error": type(e).__name__}},
            )
            raise DatastoreUnavailableError() from e

        return [to_membership_record(membership, name) for membership, name in rows]

    async def touch_last_active(
        self,
        business_id: str,
        user_id: str,
        at: datetime,
        *,
        stale_before: datetime | None = None,
    ) -> None:
        """Record activity timestamp."""
        stmt = (
            update(BusinessUser)
            .where(BusinessUser.business_id == business_id)
            .where(BusinessUser.user_id == user_id)
            .values(last_active_at=at)
        )
        if stale_before is not None:
            stmt = stmt.where(
                or_(
                    BusinessUser.last_active_at.is_(None),
                    BusinessUser.last_active_at < stale_before,
                )
            )

        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except DATASTORE_ERRORS as e:
            with suppress(*DATASTORE_ERRORS):
                await self._session.rollback()
            raise DatastoreUnavailableError() from e


class SqlPrincipalRepository:
    """SQL implementation of PrincipalRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_principal(self, user_id: str) -> Principal | None:
        """Get principal by ID."""
        try:
            result = await self._session.execute(
                select(PrincipalRow).where(PrincipalRow.user_id == user_id)
            )
            row = result.scalar_one_or_none()
        except DATASTORE_ERRORS as e:
            raise DatastoreUnavailableError() from e

        if row is None:
            return None

        return Principal(
            user_id=row.user_id,
            email=row.email,
            role=row.role,
            is_premium=row.is_premium,
        )
