"""Study planner: deadline-driven study plans, urgency tiers and recoverable task history."""

from __future__ import annotations

from .services import StudySession

__all__ = ["StudySession", "main"]


def main() -> int:
    from .cli import main as cli_main

    return cli_main()
