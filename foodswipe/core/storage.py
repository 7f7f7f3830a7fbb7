"""Named-slot persistence used by the liked store and the swipe counter."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from foodswipe.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class InMemorySlotStore:
    def __init__(self) -> None:
        self._slots: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def write(self, key: str, value: str) -> None:
        self._slots[key] = value


class JsonFileSlotStore:
    """Keeps each slot in ``<directory>/<key>.json``; writes replace the file atomically."""

    def __init__(self, directory) -> None:
        self._directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self._directory.joinpath(f"{key}.json")

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self._directory), prefix=f".{key}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug("Wrote slot %s to %s", key, self._path(key))


def build_slot_store(settings: Optional[Settings] = None):
    """Pick the persistence backend named by ``FOODSWIPE_STORE_BACKEND``."""
    settings = settings or get_settings()
    backend = settings.store_backend
    if backend == "memory":
        return InMemorySlotStore()
    if backend == "postgres":
        from foodswipe.core.db import PostgresSlotStore

        return PostgresSlotStore()
    if backend != "file":
        logger.warning("Unknown store backend %r; falling back to file storage.", backend)
    return JsonFileSlotStore(settings.data_dir)
