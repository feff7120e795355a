"""Permission matrix: (app, action) -> roles allowed.

Explicit and deny-by-default. An (app, action) pair without an entry, or a
role not listed for a pair, is refused. There are no wildcard rules; changes
ship with a deployment.
"""

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from backend.app.db.context import TeamRole


class AppKey(str, Enum):
    """Tools in the suite that are subject to permission checks."""

    BRAND_PROFILE = "BRAND_PROFILE"
    AI_CONTENT_WRITER = "AI_CONTENT_WRITER"
    AI_FAQ_GENERATOR = "AI_FAQ_GENERATOR"
    AI_HELP_DESK = "AI_HELP_DESK"
    REPUTATION_DASHBOARD = "REPUTATION_DASHBOARD"
    REVIEW_RESPONDER = "REVIEW_RESPONDER"
    SOCIAL_AUTO_POSTER = "SOCIAL_AUTO_POSTER"
    BUSINESS_DESCRIPTION_WRITER = "BUSINESS_DESCRIPTION_WRITER"
    OBD_CRM = "OBD_CRM"
    OBD_SCHEDULER = "OBD_SCHEDULER"
    LOCAL_KEYWORD_RESEARCH = "LOCAL_KEYWORD_RESEARCH"
    LOCAL_SEO_PAGE_BUILDER = "LOCAL_SEO_PAGE_BUILDER"
    BUSINESS_SCHEMA_GENERATOR = "BUSINESS_SCHEMA_GENERATOR"
    SEO_AUDIT_ROADMAP = "SEO_AUDIT_ROADMAP"
    TEAMS_USERS = "TEAMS_USERS"


class ActionKey(str, Enum):
    """Operations within a tool."""

    VIEW = "VIEW"
    GENERATE_DRAFT = "GENERATE_DRAFT"
    EDIT_DRAFT = "EDIT_DRAFT"
    APPLY = "APPLY"
    EXPORT = "EXPORT"
    DELETE = "DELETE"
    MANAGE_SETTINGS = "MANAGE_SETTINGS"
    MANAGE_TEAM = "MANAGE_TEAM"
    MANAGE_BILLING = "MANAGE_BILLING"


ALL: frozenset[TeamRole] = frozenset({TeamRole.OWNER, TeamRole.ADMIN, TeamRole.STAFF})
OWNER_ADMIN: frozenset[TeamRole] = frozenset({TeamRole.OWNER, TeamRole.ADMIN})
NONE: frozenset[TeamRole] = frozenset()

A = ActionKey

PERMISSIONS: dict[AppKey, dict[ActionKey, frozenset[TeamRole]]] = {
    # Business identity; treated like settings
    AppKey.BRAND_PROFILE: {
        A.VIEW: ALL,
        A.EDIT_DRAFT: OWNER_ADMIN,
        A.MANAGE_SETTINGS: OWNER_ADMIN,
        A.EXPORT: OWNER_ADMIN,
        A.APPLY: NONE,
        A.DELETE: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.AI_CONTENT_WRITER: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: ALL,
        A.EXPORT: ALL,
        A.APPLY: OWNER_ADMIN,
        A.DELETE: NONE,
        A.MANAGE_SETTINGS: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.AI_FAQ_GENERATOR: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: ALL,
        A.EXPORT: ALL,
        A.APPLY: OWNER_ADMIN,
        A.DELETE: NONE,
        A.MANAGE_SETTINGS: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    # Business-level knowledge base: staff may view and export only
    AppKey.AI_HELP_DESK: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: OWNER_ADMIN,
        A.EDIT_DRAFT: OWNER_ADMIN,
        A.EXPORT: ALL,
        A.APPLY: OWNER_ADMIN,
        A.DELETE: OWNER_ADMIN,
        A.MANAGE_SETTINGS: OWNER_ADMIN,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.REPUTATION_DASHBOARD: {
        A.VIEW: ALL,
        A.EXPORT: ALL,
        A.DELETE: OWNER_ADMIN,
        A.GENERATE_DRAFT: NONE,
        A.EDIT_DRAFT: NONE,
        A.APPLY: NONE,
        A.MANAGE_SETTINGS: OWNER_ADMIN,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.REVIEW_RESPONDER: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: ALL,
        A.EXPORT: ALL,
        A.APPLY: NONE,
        A.DELETE: NONE,
        A.MANAGE_SETTINGS: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.SOCIAL_AUTO_POSTER: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: ALL,
        A.EXPORT: ALL,
        A.APPLY: ALL,
        A.DELETE: ALL,
        A.MANAGE_SETTINGS: ALL,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.BUSINESS_DESCRIPTION_WRITER: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: ALL,
        A.EXPORT: ALL,
        A.APPLY: NONE,
        A.DELETE: ALL,
        A.MANAGE_SETTINGS: ALL,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    # CRM and scheduler hold business records: mutations are owner/admin
    AppKey.OBD_CRM: {
        A.VIEW: ALL,
        A.EDIT_DRAFT: OWNER_ADMIN,
        A.DELETE: OWNER_ADMIN,
        A.EXPORT: OWNER_ADMIN,
        A.MANAGE_SETTINGS: OWNER_ADMIN,
        A.GENERATE_DRAFT: NONE,
        A.APPLY: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.OBD_SCHEDULER: {
        A.VIEW: ALL,
        A.EDIT_DRAFT: OWNER_ADMIN,
        A.DELETE: OWNER_ADMIN,
        A.EXPORT: OWNER_ADMIN,
        A.MANAGE_SETTINGS: OWNER_ADMIN,
        A.GENERATE_DRAFT: NONE,
        A.APPLY: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.LOCAL_KEYWORD_RESEARCH: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: ALL,
        A.EXPORT: OWNER_ADMIN,
        A.APPLY: NONE,
        A.DELETE: NONE,
        A.MANAGE_SETTINGS: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.LOCAL_SEO_PAGE_BUILDER: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: ALL,
        A.EXPORT: ALL,
        # Applying touches the live site
        A.APPLY: OWNER_ADMIN,
        A.DELETE: NONE,
        A.MANAGE_SETTINGS: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.BUSINESS_SCHEMA_GENERATOR: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EDIT_DRAFT: OWNER_ADMIN,
        A.APPLY: OWNER_ADMIN,
        A.EXPORT: ALL,
        A.DELETE: NONE,
        A.MANAGE_SETTINGS: OWNER_ADMIN,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.SEO_AUDIT_ROADMAP: {
        A.VIEW: ALL,
        A.GENERATE_DRAFT: ALL,
        A.EXPORT: ALL,
        A.EDIT_DRAFT: NONE,
        A.APPLY: NONE,
        A.DELETE: NONE,
        A.MANAGE_SETTINGS: NONE,
        A.MANAGE_TEAM: NONE,
        A.MANAGE_BILLING: NONE,
    },
    AppKey.TEAMS_USERS: {
        A.VIEW: ALL,
        A.MANAGE_TEAM: OWNER_ADMIN,
        A.MANAGE_SETTINGS: OWNER_ADMIN,
        A.EXPORT: OWNER_ADMIN,
        A.DELETE: OWNER_ADMIN,
        A.GENERATE_DRAFT: NONE,
        A.EDIT_DRAFT: NONE,
        A.APPLY: NONE,
        A.MANAGE_BILLING: NONE,
    },
}

del A


def can_user(role: TeamRole, app: AppKey, action: ActionKey) -> bool:
    """Return whether ``role`` may perform ``action`` on ``app``.

    Pure and total: unknown pairs and unlisted roles return False.
    """
    allowed = PERMISSIONS.get(app, {}).get(action)
    if not allowed:
        return False
    return role in allowed


def iter_rules() -> Iterator[tuple[AppKey, ActionKey, frozenset[TeamRole]]]:
    """Yield every explicit (app, action, roles) entry."""
    for app, actions in PERMISSIONS.items():
        for action, roles in actions.items():
            yield app, action, roles


class RoleCapabilitySummary(BaseModel):
    """Read-only capability overview for display.

    Not per-app: a capability counts as available if the role holds the action
    in at least one app.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    view: bool
    create_drafts: bool
    edit_drafts: bool
    apply: bool
    export: bool
    manage_team: bool
    manage_settings: bool


def _has_any_permission(role: TeamRole, action: ActionKey) -> bool:
    return any(can_user(role, app, action) for app in AppKey)


def get_role_capability_summary(role: TeamRole) -> RoleCapabilitySummary:
    """Summarize what ``role`` can do anywhere in the suite."""
    return RoleCapabilitySummary(
        view=_has_any_permission(role, ActionKey.VIEW),
        create_drafts=_has_any_permission(role, ActionKey.GENERATE_DRAFT),
        edit_drafts=_has_any_permission(role, ActionKey.EDIT_DRAFT),
        apply=_has_any_permission(role, ActionKey.APPLY),
        export=_has_any_permission(role, ActionKey.EXPORT),
        manage_team=can_user(role, AppKey.TEAMS_USERS, ActionKey.MANAGE_TEAM),
        manage_settings=_has_any_permission(role, ActionKey.MANAGE_SETTINGS),
    )
