from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..core.config import DATA_DIR, DEFAULT_HISTORY_LIMIT

load_dotenv()


@dataclass(frozen=True)
class StorageSettings:
    data_dir: Path
    history_limit: int


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    log_dir: Path


@dataclass(frozen=True)
class AppSettings:
    storage: StorageSettings
    logging: LoggingSettings


def _positive_int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _path_from_env(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    return Path(raw).expanduser() if raw else default


def _level_from_env(name: str, default: str) -> str:
    raw = (os.getenv(name) or default).upper()
    return raw if isinstance(logging.getLevelName(raw), int) else default


@lru_cache(maxsize=1)
def get_settings(data_dir: Optional[Path] = None) -> AppSettings:
    resolved_dir = data_dir or _path_from_env("STUDY_PLANNER_DATA_DIR", DATA_DIR)
    storage = StorageSettings(
        data_dir=resolved_dir,
        history_limit=_positive_int_from_env("STUDY_PLANNER_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
    )
    logging_settings = LoggingSettings(
        level=_level_from_env("STUDY_PLANNER_LOG_LEVEL", "INFO"),
        log_dir=_path_from_env("STUDY_PLANNER_LOG_DIR", resolved_dir / "logs"),
    )
    return AppSettings(storage=storage, logging=logging_settings)
