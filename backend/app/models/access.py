"""Access API wire models (camelCase on the wire)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.app.access.permissions import ActionKey, AppKey, RoleCapabilitySummary
from backend.app.db.context import TeamRole


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccessContextResponse(_WireModel):
    """Resolved tenant context for the caller."""

    business_id: str
    role: TeamRole
    user_id: str
    demo: bool = False
    capabilities: RoleCapabilitySummary


class MembershipSummary(_WireModel):
    """One ACTIVE membership of the caller."""

    business_id: str
    business_name: str | None = None
    role: TeamRole
    created_at: datetime
    last_active_at: datetime | None = None


class AccessCheckRequest(_WireModel):
    """Body for POST /access/check."""

    app: AppKey
    action: ActionKey
    business_id: str | None = Field(None, max_length=64)


class AccessCheckResponse(_WireModel):
    """Granted check; denials are returned as error envelopes."""

    allowed: bool
    app: AppKey
    action: ActionKey
    business_id: str
    role: TeamRole
