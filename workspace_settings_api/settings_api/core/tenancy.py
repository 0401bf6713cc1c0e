from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from settings_api.db.models.tenancy import User, UserType


class ScopePolicy(str, enum.Enum):
    """Where a settings group is stored."""

    # (user_id, current workspace); the default for almost every page
    WORKSPACE = "workspace"
    # currency, recaptcha, cookie and seo: company-wide row in self-hosted mode
    COMPANY_WIDE = "company_wide"


@dataclass(frozen=True)
class SettingScope:
    """Concrete storage coordinates for one read or write."""

    user_id: UUID
    workspace_id: Optional[UUID] = None
    ignore_workspace: bool = False

    @property
    def effective_workspace_id(self) -> Optional[UUID]:
        return None if self.ignore_workspace else self.workspace_id


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TenantContext:
    """
    Explicit tenant/scope information for one request.

    Built once from the acting user and deployment mode and passed to every
    settings operation, so the store never reads ambient auth state.

    Attributes:
        user_id: owner of the settings rows (members resolve to their creator)
        workspace_id: current workspace, None for superadmins and members
        is_saas: deployment mode
        user_type: type of the acting user
        company_owner_id: company owner of a self-hosted deployment, if any
        acting_user_id: the authenticated user, before member resolution
        lang: preferred language of the acting user
    """

    user_id: UUID
    workspace_id: Optional[UUID]
    is_saas: bool
    user_type: UserType = UserType.COMPANY
    company_owner_id: Optional[UUID] = None
    acting_user_id: Optional[UUID] = None
    lang: Optional[str] = None

    # PUBLIC_INTERFACE
    @classmethod
    def from_user(
        cls,
        user: User,
        is_saas: bool,
        company_owner_id: Optional[UUID] = None,
    ) -> "TenantContext":
        """
        Resolve the settings owner and workspace for an authenticated user.

        company: own id and current workspace
        superadmin: own id, no workspace
        member: the company user who created them, no workspace
        """
        user_type = UserType(user.type)
        if user_type == UserType.COMPANY:
            owner_id, workspace_id = user.id, user.current_workspace_id
        elif user_type == UserType.SUPERADMIN:
            owner_id, workspace_id = user.id, None
        else:
            owner_id, workspace_id = (user.created_by or user.id), None

        return cls(
            user_id=owner_id,
            workspace_id=workspace_id,
            is_saas=is_saas,
            user_type=user_type,
            company_owner_id=company_owner_id,
            acting_user_id=user.id,
            lang=user.lang,
        )

    # PUBLIC_INTERFACE
    def scope(self, policy: ScopePolicy = ScopePolicy.WORKSPACE) -> SettingScope:
        """Return where settings governed by policy are read from and written to."""
        if policy == ScopePolicy.COMPANY_WIDE and not self.is_saas:
            return SettingScope(
                user_id=self.company_owner_id or self.user_id,
                workspace_id=None,
                ignore_workspace=True,
            )
        return SettingScope(user_id=self.user_id, workspace_id=self.workspace_id, ignore_workspace=False)
