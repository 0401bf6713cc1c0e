from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from settings_api.db.base import Base, UUIDPkMixin, TimestampMixin


class Setting(UUIDPkMixin, TimestampMixin, Base):
    """
    One key/value pair attached to a (user_id, workspace_id) scope.

    workspace_id NULL is the company-wide row of the owner. NULLs never compare
    equal in a unique constraint, so uniqueness is split over two partial indexes.
    """
    __tablename__ = "settings"
    __table_args__ = (
        Index(
            "uq_settings_user_workspace_key",
            "user_id",
            "workspace_id",
            "key",
            unique=True,
            postgresql_where=text("workspace_id IS NOT NULL"),
            sqlite_where=text("workspace_id IS NOT NULL"),
        ),
        Index(
            "uq_settings_user_key_company_wide",
            "user_id",
            "key",
            unique=True,
            postgresql_where=text("workspace_id IS NULL"),
            sqlite_where=text("workspace_id IS NULL"),
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    workspace_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=True
    )
    key: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
