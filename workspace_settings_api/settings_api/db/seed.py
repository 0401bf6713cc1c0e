"""
Database seeding for local development.

Seeds:
- A superadmin with company-wide default settings
- A company owner with one workspace (set as current workspace)
- A member created by the company owner
- Workspace settings copied from the superadmin's system and brand settings

Usage:
  python -m settings_api.db.run_migrations upgrade head
  python -m settings_api.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settings_api.core.security import create_access_token
from settings_api.core.settings import get_app_settings
from settings_api.db.models.tenancy import User, UserType, Workspace
from settings_api.db.session import get_session_maker
from settings_api.services.settings_store import ScopedSettingsStore

logger = logging.getLogger(__name__)

SUPERADMIN_EMAIL = "superadmin@example.com"
COMPANY_EMAIL = "company@example.com"
MEMBER_EMAIL = "member@example.com"


async def _get_or_create_user(
    session: AsyncSession,
    email: str,
    name: str,
    user_type: UserType,
    created_by: Optional[User] = None,
) -> User:
    existing = (await session.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if existing:
        return existing
    user = User(
        name=name,
        email=email,
        type=user_type,
        lang="en",
        created_by=created_by.id if created_by else None,
    )
    session.add(user)
    await session.flush()
    return user


async def _ensure_workspace(session: AsyncSession, owner: User, name: str) -> Workspace:
    if owner.current_workspace_id:
        ws = (
            await session.execute(select(Workspace).where(Workspace.id == owner.current_workspace_id))
        ).scalar_one_or_none()
        if ws:
            return ws
    ws = Workspace(name=name, owner_id=owner.id)
    session.add(ws)
    await session.flush()
    owner.current_workspace_id = ws.id
    await session.flush()
    return ws


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed users, a workspace and their default settings. Safe to run repeatedly;
    existing users and setting keys are left as they are.
    """
    app_settings = get_app_settings()
    async with get_session_maker()() as session:
        superadmin = await _get_or_create_user(session, SUPERADMIN_EMAIL, "Super Admin", UserType.SUPERADMIN)
        company = await _get_or_create_user(session, COMPANY_EMAIL, "Company Owner", UserType.COMPANY)
        workspace = await _ensure_workspace(session, company, "Default Workspace")
        member = await _get_or_create_user(session, MEMBER_EMAIL, "Team Member", UserType.MEMBER, created_by=company)
        await session.commit()

        store = ScopedSettingsStore(session, is_saas=app_settings.IS_SAAS)
        await store.create_default_settings(superadmin.id, None, include_cookie_defaults=app_settings.IS_DEMO)
        await store.copy_settings_from_superadmin(
            company.id, workspace.id, include_cookie_defaults=app_settings.IS_DEMO
        )

        for user in (superadmin, company, member):
            logger.info("Seeded %s (%s): token=%s", user.email, UserType(user.type).value, create_access_token(str(user.id)))


if __name__ == "__main__":
    from settings_api.core.logging import configure_logging

    configure_logging(get_app_settings().LOG_LEVEL)
    asyncio.run(seed_all())
