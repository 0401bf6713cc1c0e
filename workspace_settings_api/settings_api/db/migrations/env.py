from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

# The alembic CLI runs this file without the package on sys.path
PACKAGE_ROOT = Path(__file__).resolve().parents[3]  # .../workspace_settings_api
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

from settings_api.db.base import Base  # noqa: E402
from settings_api.db.config import get_settings  # noqa: E402
import settings_api.db.models  # noqa: E402,F401

db_settings = get_settings()

# Both modes compare types and server defaults so autogenerate notices
# changes to the settings.value column
_CONFIGURE_OPTS = dict(
    target_metadata=Base.metadata,
    compare_type=True,
    compare_server_default=True,
    render_as_batch=db_settings.async_database_url.startswith("sqlite"),
)


def run_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=db_settings.sync_database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_CONFIGURE_OPTS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_CONFIGURE_OPTS)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(db_settings.async_database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
