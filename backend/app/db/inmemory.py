"""In-memory implementations of repository interfaces."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from backend.app.db.context import MembershipStatus, Principal, TeamRole
from backend.app.db.repositories import MembershipRecord, RetryAfter


class InMemoryMembershipRepository:
    """In-memory implementation of MembershipRepository."""

    def __init__(self) -> None:
        self._memberships: dict[tuple[str, str], MembershipRecord] = {}

    def add_membership(
        self,
        user_id: str,
        business_id: str,
        role: TeamRole,
        *,
        status: MembershipStatus = MembershipStatus.ACTIVE,
        created_at: datetime | None = None,
        business_name: str | None = None,
    ) -> MembershipRecord:
        """Insert or replace a membership (test and dev seeding helper)."""
        record = MembershipRecord(
            business_id=business_id,
            user_id=user_id,
            role=role,
            status=status,
            created_at=created_at or datetime.now(timezone.utc),
            business_name=business_name,
        )
        self._memberships[(business_id, user_id)] = record
        return record

    def get_membership(self, business_id: str, user_id: str) -> MembershipRecord | None:
        return self._memberships.get((business_id, user_id))

    async def list_active_memberships(self, user_id: str) -> list[MembershipRecord]:
        """List ACTIVE memberships for a user."""
        results = [
            record
            for record in self._memberships.values()
            if record.user_id == user_id and record.status is MembershipStatus.ACTIVE
        ]
        results.sort(key=lambda r: (r.created_at, r.business_id))
        return results

    async def touch_last_active(
        self,
        business_id: str,
        user_id: str,
        at: datetime,
        *,
        stale_before: datetime | None = None,
    ) -> None:
        """Record activity timestamp."""
        record = self._memberships.get((business_id, user_id))
        if record is None:
            return

        if stale_before is not None and record.last_active_at is not None:
            if record.last_active_at >= stale_before:
                return

        self._memberships[(business_id, user_id)] = replace(record, last_active_at=at)


class InMemoryPrincipalRepository:
    """In-memory implementation of PrincipalRepository."""

    def __init__(self) -> None:
        self._principals: dict[str, Principal] = {}

    def add_principal(self, principal: Principal) -> Principal:
        self._principals[principal.user_id] = principal
        return principal

    async def get_principal(self, user_id: str) -> Principal | None:
        """Get principal by ID."""
        return self._principals.get(user_id)


class InMemoryRateLimiter:
    """In-memory implementation of RateLimiter using fixed window."""

    def __init__(self, max_requests: int, window_seconds: int = 60) -> None:
        """Initialize rate limiter.

        Args:
            max_requests: Maximum requests per window
            window_seconds: Window size in seconds (default 60)
        """
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._windows: dict[str, tuple[datetime, int]] = {}

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available."""
        window = self._windows.get(key)

        if window is None:
            self._windows[key] = (now, 1)
            return None

        window_start, count = window
        window_end = window_start + timedelta(seconds=self._window_seconds)

        # Window expired - start a new one
        if now >= window_end:
            self._windows[key] = (now, 1)
            return None

        if count >= self._max_requests:
            seconds_remaining = int((window_end - now).total_seconds())
            return RetryAfter(seconds=max(1, seconds_remaining))

        self._windows[key] = (window_start, count + 1)
        return None
