from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from settings_api.db.models.tenancy import UserType
from settings_api.repositories.settings import SettingRepository
from settings_api.repositories.users import UserRepository
from settings_api.services.setting_keys import (
    INHERITED_FROM_SUPERADMIN,
    KeyLike,
    SettingKey,
    coerce_key,
    default_settings,
    encode_many,
    encode_value,
    get_definition,
    key_values,
)

logger = logging.getLogger(__name__)


class ScopedSettingsStore:
    """
    Key/value settings resolved through workspace -> company-wide -> default.

    A scope is (user_id, workspace_id). workspace_id None is the company-wide
    row. Values are stored and returned as strings; typing happens in
    setting_keys at the boundary.
    """

    def __init__(self, session: AsyncSession, is_saas: bool = True) -> None:
        self.session = session
        self.is_saas = is_saas
        self.repo = SettingRepository(session)
        self.users = UserRepository(session)

    # PUBLIC_INTERFACE
    async def get_setting(
        self,
        key: KeyLike,
        default: Optional[str] = None,
        *,
        user_id: UUID,
        workspace_id: Optional[UUID] = None,
    ) -> Optional[str]:
        """
        Return the stored value of key for the scope.

        Lookup order:
          1. row (user_id, workspace_id, key)
          2. self-hosted only, when a workspace was given: row (user_id, NULL, key)
          3. default, else the registered default in stored form, else None
        """
        setting_key = coerce_key(key)
        value = await self.repo.get_value(user_id, workspace_id, setting_key.value)
        if value is None and workspace_id is not None and not self.is_saas:
            value = await self.repo.get_value(user_id, None, setting_key.value)
        if value is not None:
            return value
        if default is not None:
            return default
        registered = get_definition(setting_key).default
        return None if registered is None else encode_value(setting_key, registered)

    # PUBLIC_INTERFACE
    async def update_setting(
        self,
        key: KeyLike,
        value: Any,
        *,
        user_id: UUID,
        workspace_id: Optional[UUID] = None,
        ignore_workspace: bool = False,
    ) -> str:
        """
        Upsert one key and commit.

        With ignore_workspace the company-wide row (workspace_id NULL) is written.
        Each call is its own transaction. Returns the stored string.
        """
        setting_key = coerce_key(key)
        stored = encode_value(setting_key, value)
        target_ws = None if ignore_workspace else workspace_id
        try:
            await self.repo.upsert(user_id, target_ws, setting_key.value, stored)
            await self.repo.commit()
        except Exception:
            await self.repo.rollback()
            raise
        logger.debug("Updated setting %s for user=%s ws=%s", setting_key.value, user_id, target_ws)
        return stored

    # PUBLIC_INTERFACE
    async def update_settings(
        self,
        values: Dict[KeyLike, Any],
        *,
        user_id: UUID,
        workspace_id: Optional[UUID] = None,
        ignore_workspace: bool = False,
    ) -> Dict[str, str]:
        """
        Upsert several keys in a single transaction.

        All values are encoded before anything is written; on any failure the
        transaction is rolled back and the error propagates, so either every
        key persists or none does.
        """
        encoded = encode_many(values)
        target_ws = None if ignore_workspace else workspace_id
        try:
            for setting_key, stored in encoded.items():
                await self.repo.upsert(user_id, target_ws, setting_key.value, stored)
            await self.repo.commit()
        except Exception:
            await self.repo.rollback()
            raise
        logger.info(
            "Updated %d settings for user=%s ws=%s", len(encoded), user_id, target_ws
        )
        return {k.value: v for k, v in encoded.items()}

    # PUBLIC_INTERFACE
    async def load_settings(
        self,
        user_id: UUID,
        workspace_id: Optional[UUID] = None,
        user_type: UserType = UserType.COMPANY,
        user_lang: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        Return the merged key -> value map shown on the settings pages.

        Superadmins always read their company-wide rows. In self-hosted mode the
        company-wide rows are merged underneath the workspace rows.
        """
        if user_type == UserType.SUPERADMIN:
            workspace_id = None

        merged: Dict[str, str] = {}
        if workspace_id is not None and not self.is_saas:
            merged.update(await self.repo.get_values(user_id, None))
        merged.update(await self.repo.get_values(user_id, workspace_id))

        if not merged.get(SettingKey.DEFAULT_LANGUAGE.value):
            merged[SettingKey.DEFAULT_LANGUAGE.value] = user_lang or "en"
        if not merged.get(SettingKey.LAYOUT_DIRECTION.value):
            merged[SettingKey.LAYOUT_DIRECTION.value] = "left"
        return merged

    async def get_many(self, keys, *, user_id: UUID, workspace_id: Optional[UUID] = None) -> Dict[str, str]:
        """Stored values for the given keys in exactly one scope; missing keys are absent."""
        return await self.repo.get_values(user_id, workspace_id, key_values(keys))

    # PUBLIC_INTERFACE
    async def create_default_settings(
        self,
        user_id: UUID,
        workspace_id: Optional[UUID] = None,
        include_cookie_defaults: bool = False,
    ) -> int:
        """Provision default settings for a scope, leaving existing keys untouched."""
        encoded = {k.value: v for k, v in encode_many(default_settings(include_cookie_defaults)).items()}
        try:
            created = await self.repo.insert_missing(user_id, workspace_id, encoded)
            await self.repo.commit()
        except Exception:
            await self.repo.rollback()
            raise
        logger.info("Provisioned %d default settings for user=%s ws=%s", created, user_id, workspace_id)
        return created

    # PUBLIC_INTERFACE
    async def copy_settings_from_superadmin(
        self,
        company_user_id: UUID,
        workspace_id: Optional[UUID],
        include_cookie_defaults: bool = False,
    ) -> int:
        """
        Seed a new company workspace from the superadmin's system and brand settings.

        Keys the superadmin never saved come from the provisioning defaults.
        Without a superadmin this is create_default_settings.
        """
        superadmin = await self.users.get_first_of_type(UserType.SUPERADMIN)
        if superadmin is None:
            return await self.create_default_settings(company_user_id, workspace_id, include_cookie_defaults)

        values = {k.value: v for k, v in encode_many(default_settings(include_cookie_defaults)).items()}
        inherited = await self.repo.get_values(superadmin.id, None, key_values(INHERITED_FROM_SUPERADMIN))
        values.update(inherited)
        try:
            created = await self.repo.insert_missing(company_user_id, workspace_id, values)
            await self.repo.commit()
        except Exception:
            await self.repo.rollback()
            raise
        logger.info(
            "Copied %d settings from superadmin to user=%s ws=%s", len(inherited), company_user_id, workspace_id
        )
        return created
