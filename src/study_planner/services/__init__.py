"""Application services orchestrating the task store, history and persistence."""

from __future__ import annotations

from .session import Clock, StudySession, local_now

__all__ = ["Clock", "StudySession", "local_now"]
