"""
Alembic runner for the settings schema.

There is no alembic.ini; the script location and database URL are filled in
from this package. Startup calls ``upgrade_head``; operators use the module:

    python -m settings_api.db.run_migrations upgrade head
    python -m settings_api.db.run_migrations downgrade -1
    python -m settings_api.db.run_migrations current
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List

from alembic import command
from alembic.config import Config

from settings_api.db.config import get_settings

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


# PUBLIC_INTERFACE
def build_config() -> Config:
    """Alembic Config pointing at the bundled migrations and the configured database."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # Offline mode only; env.py builds its own async engine when online.
    # ConfigParser treats % as interpolation, and quoted passwords contain it
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url.replace("%", "%%"))
    return cfg


# PUBLIC_INTERFACE
def upgrade_head() -> None:
    """Apply every pending migration, creating the settings table on a fresh database."""
    command.upgrade(build_config(), "head")


_COMMANDS: Dict[str, Callable[[Config, List[str]], None]] = {
    "upgrade": lambda cfg, rest: command.upgrade(cfg, *(rest or ["head"])),
    "downgrade": lambda cfg, rest: command.downgrade(cfg, *(rest or ["-1"])),
    "current": lambda cfg, rest: command.current(cfg),
    "history": lambda cfg, rest: command.history(cfg),
    "heads": lambda cfg, rest: command.heads(cfg),
}


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> int:
    """Dispatch ``<command> [revision]`` to Alembic; returns a process exit code."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] not in _COMMANDS:
        print(f"usage: run_migrations {{{','.join(sorted(_COMMANDS))}}} [revision]", file=sys.stderr)
        return 2

    _COMMANDS[args[0]](build_config(), args[1:])
    return 0


if __name__ == "__main__":
    sys.exit(main())
