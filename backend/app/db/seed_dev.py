"""Dev seeding helper: one premium owner, their business, and the demo business."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from backend.app.config import get_settings
from backend.app.db.context import MembershipStatus, TeamRole
from backend.app.db.engine import get_async_engine
from backend.app.db.models import Business, BusinessUser, PrincipalRow

# Use as "Authorization: Bearer dev-owner"
DEV_USER_ID = "dev-owner"
DEV_USER_EMAIL = "dev@example.com"
DEV_BUSINESS_ID = "dev-business"


async def _ensure_business(session: AsyncSession, business_id: str, name: str) -> None:
    if await session.get(Business, business_id) is None:
        print(f"Creating business {business_id}...")
        session.add(Business(business_id=business_id, name=name))


async def seed_dev_data(engine: AsyncEngine | None = None, demo_business_id: str | None = None) -> None:
    """Seed a dev principal that owns a dev business.

    Idempotent. Also creates the demo business when one is configured, so
    demo sessions resolve to a real row.

    Args:
        engine: Engine to seed (default: the app engine)
        demo_business_id: Demo business to create (default: from settings)
    """
    if demo_business_id is None:
        demo_business_id = get_settings().demo_business_id

    async with AsyncSession(engine or get_async_engine()) as session:
        principal = await session.get(PrincipalRow, DEV_USER_ID)
        if principal is None:
            print(f"Creating dev principal {DEV_USER_ID}...")
            session.add(PrincipalRow(user_id=DEV_USER_ID, email=DEV_USER_EMAIL, is_premium=True))
        else:
            print(f"Dev principal already exists: {principal.email}")

        await _ensure_business(session, DEV_BUSINESS_ID, "Dev Business")
        if demo_business_id:
            await _ensure_business(session, demo_business_id, "Demo Business")

        # Parents must exist before the membership row
        await session.flush()

        result = await session.execute(
            select(BusinessUser)
            .where(BusinessUser.business_id == DEV_BUSINESS_ID)
            .where(BusinessUser.user_id == DEV_USER_ID)
        )
        if result.scalar_one_or_none() is None:
            session.add(
                BusinessUser(
                    business_id=DEV_BUSINESS_ID,
                    user_id=DEV_USER_ID,
                    role=TeamRole.OWNER,
                    status=MembershipStatus.ACTIVE,
                )
            )

        await session.commit()
        print("Dev seeding complete")


if __name__ == "__main__":
    asyncio.run(seed_dev_data())
