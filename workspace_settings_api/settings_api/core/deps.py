from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from settings_api.core.logging import tenant_id_var, workspace_id_var
from settings_api.core.security import decode_user_id
from settings_api.core.settings import get_app_settings
from settings_api.core.tenancy import TenantContext
from settings_api.db.models.tenancy import UserType
from settings_api.db.session import get_async_session
from settings_api.repositories.users import UserRepository
from settings_api.services.file_storage import FileStorage
from settings_api.services.integrations import IntegrationClient
from settings_api.services.settings_store import ScopedSettingsStore

logger = logging.getLogger(__name__)

# Tokens are issued by the main application; tokenUrl only documents the flow
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# PUBLIC_INTERFACE
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Resolve and return the current user from the Authorization bearer token.

    The token subject ('sub') is the user id.
    """
    try:
        user_id = decode_user_id(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await UserRepository(session).get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


# PUBLIC_INTERFACE
async def get_current_active_user(user=Depends(get_current_user)):
    """Ensure user is active."""
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return user


# PUBLIC_INTERFACE
def require_user_types(*allowed: UserType):
    """Create a dependency that only lets the given account types through."""

    allowed_set = set(allowed)

    async def _dep(user=Depends(get_current_active_user)):
        if UserType(user.type) not in allowed_set:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return _dep


require_settings_admin = require_user_types(UserType.SUPERADMIN, UserType.COMPANY)


# PUBLIC_INTERFACE
async def get_tenant_context(
    user=Depends(require_settings_admin),
    session: AsyncSession = Depends(get_async_session),
) -> TenantContext:
    """
    Build the TenantContext for the acting user and bind it to the log context.

    In self-hosted mode the company owner is looked up once here so that
    company-wide groups can be stored on the owner's row.
    """
    is_saas = get_app_settings().IS_SAAS
    owner_id = None
    if not is_saas:
        owner = await UserRepository(session).get_company_owner()
        owner_id = owner.id if owner else None

    ctx = TenantContext.from_user(user, is_saas=is_saas, company_owner_id=owner_id)
    tenant_id_var.set(str(ctx.user_id))
    workspace_id_var.set(str(ctx.workspace_id) if ctx.workspace_id else None)
    return ctx


# PUBLIC_INTERFACE
async def get_settings_store(session: AsyncSession = Depends(get_async_session)) -> ScopedSettingsStore:
    """Settings store bound to the request session and deployment mode."""
    return ScopedSettingsStore(session, is_saas=get_app_settings().IS_SAAS)


# PUBLIC_INTERFACE
def get_integration_client() -> IntegrationClient:
    settings = get_app_settings()
    return IntegrationClient(timeout=settings.HTTP_TIMEOUT_SECONDS, app_name=settings.APP_NAME)


# PUBLIC_INTERFACE
def get_file_storage() -> FileStorage:
    return FileStorage()
