"""Initial access schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates the access tables:
- principal
- business
- business_user (membership join)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

TEAM_ROLES = ("OWNER", "ADMIN", "STAFF")
MEMBERSHIP_STATUSES = ("ACTIVE", "INVITED", "SUSPENDED")
PRINCIPAL_ROLES = ("USER", "ADMIN")


def upgrade() -> None:
    """Create access tables."""
    op.create_table(
        "principal",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column(
            "role",
            sa.Enum(*PRINCIPAL_ROLES, name="principal_role", native_enum=False),
            nullable=False,
            server_default="USER",
        ),
        sa.Column("is_premium", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email", name="uq_principal_email"),
    )

    op.create_table(
        "business",
        sa.Column("business_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "business_user",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("business_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("role", sa.Enum(*TEAM_ROLES, name="team_role", native_enum=False), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*MEMBERSHIP_STATUSES, name="membership_status", native_enum=False),
            nullable=False,
            server_default="ACTIVE",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["business_id"], ["business.business_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["principal.user_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("business_id", "user_id", name="uq_business_user"),
    )
    op.create_index(
        "idx_business_user_user_status", "business_user", ["user_id", "status", "created_at"]
    )


def downgrade() -> None:
    """Drop access tables."""
    op.drop_index("idx_business_user_user_status", table_name="business_user")
    op.drop_table("business_user")
    op.drop_table("business")
    op.drop_table("principal")
