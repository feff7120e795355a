"""SQLAlchemy ORM models for principals, businesses and memberships."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from backend.app.db.context import MembershipStatus, PrincipalRole, TeamRole


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class PrincipalRow(Base):
    """Principal table - authenticated user accounts."""

    __tablename__ = "principal"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    role: Mapped[PrincipalRole] = mapped_column(
        Enum(PrincipalRole, name="principal_role", native_enum=False),
        nullable=False,
        default=PrincipalRole.USER,
    )
    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    memberships: Mapped[list["BusinessUser"]] = relationship(
        "BusinessUser", back_populates="principal"
    )


class Business(Base):
    """Business table - top-level tenancy boundary."""

    __tablename__ = "business"

    business_id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    members: Mapped[list["BusinessUser"]] = relationship(
        "BusinessUser", back_populates="business", cascade="all, delete-orphan"
    )


class BusinessUser(Base):
    """Membership join table - (principal, business, role, status)."""

    __tablename__ = "business_user"
    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_business_user"),
        Index("idx_business_user_user_status", "user_id", "status", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    business_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("business.business_id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("principal.user_id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[TeamRole] = mapped_column(
        Enum(TeamRole, name="team_role", native_enum=False), nullable=False
    )
    status: Mapped[MembershipStatus] = mapped_column(
        Enum(MembershipStatus, name="membership_status", native_enum=False),
        nullable=False,
        default=MembershipStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_active_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    business: Mapped["Business"] = relationship("Business", back_populates="members")
    principal: Mapped["PrincipalRow"] = relationship("PrincipalRow", back_populates="memberships")
