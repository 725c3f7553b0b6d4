"""Key-value backends the persistence gateway writes through."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from .config import DATA_DIR, ensure_data_dir
from .errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store, used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileStore:
    """One ``<key>.json`` file per key inside the application data directory."""

    def __init__(self, directory: Optional[Path] = None) -> None:
        self._directory = ensure_data_dir(directory or DATA_DIR)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(key, f"read failed: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(value + "\n", encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageError(key, f"write failed: {exc}") from exc
        logger.debug("Wrote %s (%d bytes)", path, len(value))

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(key, f"remove failed: {exc}") from exc


__all__ = ["JsonFileStore", "KeyValueStore", "MemoryKeyValueStore"]
