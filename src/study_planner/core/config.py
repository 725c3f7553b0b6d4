from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from platformdirs import user_data_dir

APP_NAME = "Study Planner"
APP_AUTHOR = "StudyPlanner"
DATA_DIR = Path(user_data_dir(APP_NAME, APP_AUTHOR))

TASKS_KEY = "studyPlannerTasks"
HISTORY_KEY = "studyPlannerHistory"
SETTINGS_KEY = "studyPlannerSettings"
# Older installs kept only the theme, as "dark" or "light".
LEGACY_THEME_KEY = "studyPlannerTheme"

EXPORT_FORMAT_VERSION = "2.1"
DEFAULT_HISTORY_LIMIT = 10

DEFAULT_SETTINGS: Dict[str, Any] = {
    "isDarkMode": False,
    "viewMode": "list",
    "sortBy": "dueDate",
    "sortOrder": "asc",
    "showCompletedTasks": True,
    "filterPriority": "all",
}


def ensure_data_dir(path: Path | None = None) -> Path:
    target = path or DATA_DIR
    target.mkdir(parents=True, exist_ok=True)
    return target
