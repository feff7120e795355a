"""Request identity and tenancy context."""

from dataclasses import dataclass
from enum import Enum


class TeamRole(str, Enum):
    """Role a principal holds within one business."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class MembershipStatus(str, Enum):
    """Lifecycle status of a membership."""

    ACTIVE = "ACTIVE"
    INVITED = "INVITED"
    SUSPENDED = "SUSPENDED"


class PrincipalRole(str, Enum):
    """Global (cross-business) trust level of a principal."""

    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Principal:
    """Authenticated identity as issued by the session provider."""

    user_id: str
    email: str
    role: PrincipalRole = PrincipalRole.USER
    is_premium: bool = False
    demo: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role is PrincipalRole.ADMIN


@dataclass(frozen=True)
class BusinessContext:
    """Resolved tenant context for a single request.

    Every business-scoped read or write must be filtered by ``business_id``.
    """

    business_id: str
    role: TeamRole
    user_id: str
