from __future__ import annotations

import enum
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from settings_api.db.base import Base, UUIDPkMixin, TimestampMixin


class UserType(str, enum.Enum):
    """Account type; decides which settings scope a user reads and writes."""

    SUPERADMIN = "superadmin"
    COMPANY = "company"
    MEMBER = "member"


class User(UUIDPkMixin, TimestampMixin, Base):
    """
    Platform user as mirrored from the main application.

    Company users own workspaces; members are created by a company user
    (created_by) and share its settings.
    """
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    type: Mapped[UserType] = mapped_column(
        Enum(UserType, name="user_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserType.COMPANY,
    )
    lang: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="1")
    created_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    current_workspace_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
    )


class Workspace(UUIDPkMixin, TimestampMixin, Base):
    """Tenant sub-unit belonging to a company user."""
    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
