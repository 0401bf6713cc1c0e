from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from settings_api.core.settings import get_app_settings

logger = logging.getLogger(__name__)


class StoredFileError(Exception):
    """Raised when a stored credentials file is missing or unreadable."""


class FileStorage:
    """
    Local disk storage for uploaded credential files.

    Only the path relative to the storage root is kept in settings, e.g.
    'google_meet/1700000000_3f2a9c1e_google_meet_credentials.json'.
    """

    def __init__(self, root: Optional[str] = None) -> None:
        self.root = Path(root or get_app_settings().STORAGE_ROOT).resolve()

    def _resolve(self, relative_path: str) -> Path:
        path = (self.root / relative_path).resolve()
        if path != self.root and self.root not in path.parents:
            raise StoredFileError(f"Path '{relative_path}' is outside the storage root")
        return path

    # PUBLIC_INTERFACE
    def save(self, folder: str, name_suffix: str, content: bytes) -> str:
        """Write content to <folder>/<timestamp>_<random>_<name_suffix> and return the relative path."""
        target_dir = self._resolve(folder)
        target_dir.mkdir(parents=True, exist_ok=True)
        file_name = f"{int(time.time())}_{uuid4().hex[:8]}_{name_suffix}"
        (target_dir / file_name).write_bytes(content)
        relative = f"{folder}/{file_name}"
        logger.info("Stored upload %s (%d bytes)", relative, len(content))
        return relative

    def exists(self, relative_path: Optional[str]) -> bool:
        if not relative_path:
            return False
        try:
            return self._resolve(relative_path).is_file()
        except StoredFileError:
            return False

    # PUBLIC_INTERFACE
    def delete(self, relative_path: Optional[str]) -> bool:
        """Remove a previously stored file; missing files are ignored."""
        if not self.exists(relative_path):
            return False
        self._resolve(relative_path).unlink()
        return True

    # PUBLIC_INTERFACE
    def read_json(self, relative_path: Optional[str]) -> Dict[str, Any]:
        """Load a stored JSON credentials file."""
        if not self.exists(relative_path):
            raise StoredFileError("Credentials file not found")
        try:
            data = json.loads(self._resolve(relative_path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoredFileError(f"Invalid JSON file: {exc}") from exc
        if not isinstance(data, dict):
            raise StoredFileError("Invalid JSON file: expected an object")
        return data
