"""Environment-driven application settings."""

from __future__ import annotations

from .settings import AppSettings, LoggingSettings, StorageSettings, get_settings

__all__ = ["AppSettings", "LoggingSettings", "StorageSettings", "get_settings"]
