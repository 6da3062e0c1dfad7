from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import quote

from .base import KeyValueStore, PersistenceError

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    """Keeps each key in its own ``<key>.json`` file under a directory."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        # Percent-encoding is one-to-one: distinct keys map to distinct files.
        return self._directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Unable to read {path}: {exc}") from exc

    def set(self, key: str, value: str) -> bool:
        path = self.path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            logger.error("Failed to write %s: %s", path, exc)
            return False
        return True
