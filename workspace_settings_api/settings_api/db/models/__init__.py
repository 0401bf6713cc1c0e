"""
ORM models for users, workspaces and their scoped settings.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .tenancy import (  # noqa: F401
    User,
    UserType,
    Workspace,
)
from .setting import Setting  # noqa: F401
