"""Named operations a UI layer calls against a study session."""

from __future__ import annotations

from .registry import ApiFunction, call_api, get_api_functions, register_api

# Import endpoint modules so decorators run at module import time.
from . import history, tasks  # noqa: F401

__all__ = ["ApiFunction", "call_api", "get_api_functions", "register_api"]
