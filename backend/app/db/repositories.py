"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from backend.app.db.context import MembershipStatus, Principal, TeamRole


@dataclass(frozen=True)
class MembershipRecord:
    """Membership data record."""

    business_id: str
    user_id: str
    role: TeamRole
    status: MembershipStatus
    created_at: datetime
    last_active_at: datetime | None = None
    business_name: str | None = None


class MembershipRepository(Protocol):
    """Repository for membership lookups.

    Implementations raise ``DatastoreUnavailableError`` when the backing store
    cannot be reached, so callers never mistake an outage for "no access".
    """

    async def list_active_memberships(self, user_id: str) -> list[MembershipRecord]:
        """List ACTIVE memberships for a user.

        Args:
            user_id: Principal ID

        Returns:
            Memberships ordered by created_at ascending (business_id breaks ties)
        """
        ...

    async def touch_last_active(
        self,
        business_id: str,
        user_id: str,
        at: datetime,
        *,
        stale_before: datetime | None = None,
    ) -> None:
        """Record that the user acted within the business.

        Args:
            business_id: Business ID
            user_id: Principal ID
            at: Activity timestamp
            stale_before: Only update if the stored timestamp is missing or older
        """
        ...


class PrincipalRepository(Protocol):
    """Repository for principal lookups."""

    async def get_principal(self, user_id: str) -> Principal | None:
        """Get principal by ID.

        Args:
            user_id: Principal ID

        Returns:
            Principal or None if not found
        """
        ...


@dataclass
class RetryAfter:
    """Rate limit retry-after information."""

    seconds: int


class RateLimiter(Protocol):
    """Rate limiter interface."""

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available.

        Args:
            key: Rate limit key
            now: Current timestamp

        Returns:
            RetryAfter if over quota, None if allowed
        """
        ...
