"""
Database layer of the settings service: configuration, engine/session
management and the mapped tables (users, workspaces, settings).
"""

from .base import Base
from .config import get_settings, Settings
from .session import (
    dispose_engine,
    get_engine,
    get_async_session,
    get_session_maker,
)

# Registers the tables on Base.metadata
from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "Settings",
    "get_settings",
    "dispose_engine",
    "get_engine",
    "get_async_session",
    "get_session_maker",
    "models",
]
