from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from settings_api.core.settings import get_app_settings

logger = logging.getLogger(__name__)

# files that keep cache directories under version control
_KEEP_FILES = {".gitignore", ".gitkeep"}


def _cache_root(cache_dir: Optional[str]) -> Path:
    return Path(cache_dir or get_app_settings().CACHE_DIR)


# PUBLIC_INTERFACE
def get_cache_size(cache_dir: Optional[str] = None) -> str:
    """Total size of the cache directory in MB (10^6 bytes), formatted with two decimals."""
    root = _cache_root(cache_dir)
    total = 0
    if root.is_dir():
        total = sum(p.stat().st_size for p in root.rglob("*") if p.is_file())
    return f"{total / 1_000_000:,.2f}"


# PUBLIC_INTERFACE
def clear_cache(cache_dir: Optional[str] = None) -> int:
    """Delete every cached file below the cache directory; returns the number removed."""
    root = _cache_root(cache_dir)
    if not root.is_dir():
        return 0
    removed = 0
    for path in sorted(root.rglob("*"), reverse=True):
        if path.is_file() and path.name not in _KEEP_FILES:
            path.unlink()
            removed += 1
    logger.info("Cleared %d cached files from %s", removed, root)
    return removed
