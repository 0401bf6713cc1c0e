from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select

from settings_api.db.models.tenancy import User, UserType
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Read access to users mirrored from the main application."""

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def get_first_of_type(self, user_type: UserType) -> Optional[User]:
        stmt = select(User).where(User.type == user_type).order_by(User.created_at, User.id).limit(1)
        return await self.scalar_one_or_none(stmt)

    async def get_company_owner(self) -> Optional[User]:
        """
        Return the company owner of a self-hosted deployment: the first
        company-type user that was not created by another user.
        """
        stmt = (
            select(User)
            .where(User.type == UserType.COMPANY, User.created_by.is_(None))
            .order_by(User.created_at, User.id)
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)
