from __future__ import annotations

from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import select

from settings_api.db.models.setting import Setting
from .base import BaseRepository


def _scope_filter(user_id: UUID, workspace_id: Optional[UUID]):
    if workspace_id is None:
        return (Setting.user_id == user_id, Setting.workspace_id.is_(None))
    return (Setting.user_id == user_id, Setting.workspace_id == workspace_id)


class SettingRepository(BaseRepository):
    """
    Repository for the settings key/value table.

    A scope is the (user_id, workspace_id) pair; workspace_id None addresses
    the company-wide row and is matched with IS NULL.
    """

    async def get(self, user_id: UUID, workspace_id: Optional[UUID], key: str) -> Optional[Setting]:
        stmt = select(Setting).where(*_scope_filter(user_id, workspace_id), Setting.key == key)
        return await self.scalar_one_or_none(stmt)

    async def get_value(self, user_id: UUID, workspace_id: Optional[UUID], key: str) -> Optional[str]:
        stmt = select(Setting.value).where(*_scope_filter(user_id, workspace_id), Setting.key == key)
        return await self.scalar_one_or_none(stmt)

    async def get_values(
        self,
        user_id: UUID,
        workspace_id: Optional[UUID],
        keys: Optional[Iterable[str]] = None,
    ) -> Dict[str, str]:
        """Return {key: value} for a scope, optionally restricted to keys."""
        stmt = select(Setting.key, Setting.value).where(*_scope_filter(user_id, workspace_id))
        if keys is not None:
            stmt = stmt.where(Setting.key.in_(list(keys)))
        result = await self.execute(stmt)
        return {row.key: row.value for row in result}

    async def upsert(self, user_id: UUID, workspace_id: Optional[UUID], key: str, value: str) -> Setting:
        """
        Update the row for (user_id, workspace_id, key) in place, or create it.

        Does not commit. Flushes so the row is visible to later reads in the
        same transaction.
        """
        setting = await self.get(user_id, workspace_id, key)
        if setting is None:
            setting = Setting(user_id=user_id, workspace_id=workspace_id, key=key, value=value)
            await self.add(setting)
        else:
            setting.value = value
        await self.flush()
        return setting

    async def insert_missing(
        self, user_id: UUID, workspace_id: Optional[UUID], values: Dict[str, str]
    ) -> int:
        """Insert rows for keys the scope does not have yet; returns how many were added."""
        existing = await self.get_values(user_id, workspace_id, values.keys())
        rows = [
            Setting(user_id=user_id, workspace_id=workspace_id, key=k, value=v)
            for k, v in values.items()
            if k not in existing
        ]
        await self.add_all(rows)
        await self.flush()
        return len(rows)
