"""Tenancy-safe query helpers.

Membership join models are enumerated explicitly; each one maps to a typed
select builder. Nothing here discovers models or accessors at runtime.
"""

from collections.abc import Callable
from enum import Enum

from sqlalchemy import Select, select

from backend.app.db.context import MembershipStatus
from backend.app.db.models import Business, BusinessUser
from backend.app.db.repositories import MembershipRecord

MembershipSelect = Select[tuple[BusinessUser, str]]


def select_memberships(user_id: str) -> MembershipSelect:
    """Select every membership row for a user, regardless of status.

    Args:
        user_id: Principal ID

    Returns:
        Select of (membership, business name) ordered oldest first
    """
    return (
        select(BusinessUser, Business.name)
        .join(Business, Business.business_id == BusinessUser.business_id)
        .where(BusinessUser.user_id == user_id)
        .order_by(BusinessUser.created_at.asc(), BusinessUser.business_id.asc())
    )


def select_active_memberships(user_id: str) -> MembershipSelect:
    """Select ACTIVE memberships for a user, oldest first."""
    return select_memberships(user_id).where(BusinessUser.status == MembershipStatus.ACTIVE)


def to_membership_record(row: BusinessUser, business_name: str | None) -> MembershipRecord:
    """Convert an ORM row to a repository record."""
    return MembershipRecord(
        business_id=row.business_id,
        user_id=row.user_id,
        role=row.role,
        status=row.status,
        created_at=row.created_at,
        last_active_at=row.last_active_at,
        business_name=business_name,
    )


class JoinModel(str, Enum):
    """Tables that link a principal to a business."""

    business_user = "business_user"


MEMBERSHIP_QUERIES: dict[JoinModel, Callable[[str], MembershipSelect]] = {
    JoinModel.business_user: select_memberships,
}
