from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from .bootstrap import configure_logging
from .config import get_settings
from .core import SortKey, SortOrder, StudyPlannerError, StudyTask, TaskQuery, TaskType
from .core.enums import PRIORITY_FILTERS
from .services import StudySession

logger = logging.getLogger(__name__)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="study-planner", description="Plan study tasks against their deadlines.")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding the saved task data.")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Create a task and allocate its study plan.")
    add.add_argument("title")
    add.add_argument("--due", type=_iso_date, required=True, help="Due date, YYYY-MM-DD.")
    add.add_argument("--subject", default="")
    add.add_argument("--type", choices=[item.value for item in TaskType], default=TaskType.ASSIGNMENT.value)
    add.add_argument("--hours", type=float, default=1.0, help="Estimated study hours (steps of 0.5).")
    add.add_argument("--priority", choices=["low", "medium", "high"], default="medium")
    add.add_argument("--description", default="")

    listing = subparsers.add_parser("list", help="List tasks using the saved view settings.")
    listing.add_argument("--search", default="")
    listing.add_argument("--filter", choices=PRIORITY_FILTERS, default=None)
    listing.add_argument("--sort", choices=[item.value for item in SortKey], default=None)
    listing.add_argument("--order", choices=[item.value for item in SortOrder], default=None)
    listing.add_argument("--hide-completed", action="store_true")
    listing.add_argument("--plan", action="store_true", help="Show each task's study plan.")

    done = subparsers.add_parser("done", help="Toggle a task between completed and pending.")
    done.add_argument("task_id")

    progress = subparsers.add_parser("progress", help="Set task progress (0-100).")
    progress.add_argument("task_id")
    progress.add_argument("value", type=int)

    delete = subparsers.add_parser("delete", help="Delete a task.")
    delete.add_argument("task_id")

    replan = subparsers.add_parser("replan", help="Recompute a task's study plan from today.")
    replan.add_argument("task_id")

    plan_day = subparsers.add_parser("plan-day", help="Toggle one study plan day as done.")
    plan_day.add_argument("task_id")
    plan_day.add_argument("day", type=_iso_date)

    subparsers.add_parser("history", help="List saved snapshots, newest first.")

    restore = subparsers.add_parser("restore", help="Restore the task list from a snapshot.")
    restore.add_argument("version", type=int)

    export = subparsers.add_parser("export", help="Write tasks and settings to a JSON file.")
    export.add_argument("path", type=Path, nargs="?", default=Path.cwd())

    import_parser = subparsers.add_parser("import", help="Replace tasks and settings from a JSON file.")
    import_parser.add_argument("path", type=Path)

    subparsers.add_parser("stats", help="Show task statistics.")

    clear = subparsers.add_parser("clear", help="Delete every task (undoable through history).")
    clear.add_argument("--purge", action="store_true", help="Also remove saved history and settings.")

    settings = subparsers.add_parser("settings", help="Show or change view settings.")
    settings.add_argument("--set", dest="changes", action="append", default=[], metavar="KEY=VALUE")

    return parser


def _format_task(session: StudySession, task: StudyTask, *, with_plan: bool = False) -> str:
    mark = "x" if task.completed else " "
    subject = f" ({task.subject})" if task.subject else ""
    line = (
        f"[{mark}] {task.id}  {task.title}{subject}  due {task.due_date.isoformat()}"
        f"  {session.tier_of(task).value}  {task.progress}%  {task.estimated_hours:g}h"
    )
    if not with_plan:
        return line
    days = [
        f"      {entry.date.isoformat()} {entry.hours:g}h{' (weekend)' if entry.is_weekend else ''}"
        f"{' done' if entry.completed else ''}"
        for entry in task.study_plan
    ]
    return "\n".join([line, *days])


def _parse_setting(raw: str) -> tuple[str, object]:
    key, sep, value = raw.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return key.strip(), lowered == "true"
    return key.strip(), value.strip()


def _report_save(session: StudySession) -> None:
    report = session.last_save
    if report is not None and not report.ok:
        for key, message in report.failed.items():
            print(f"warning: could not save {key}: {message}", file=sys.stderr)


def run(args: argparse.Namespace, session: StudySession) -> int:
    command = args.command
    if command == "add":
        task = session.create_task(
            {
                "title": args.title,
                "dueDate": args.due,
                "subject": args.subject,
                "type": args.type,
                "estimatedHours": args.hours,
                "priority": args.priority,
                "description": args.description,
            }
        )
        print(_format_task(session, task, with_plan=True))
    elif command == "list":
        query = TaskQuery.from_settings(session.settings, search_query=args.search)
        if args.filter:
            query.filter_priority = args.filter
        if args.sort:
            query.sort_by = SortKey(args.sort)
        if args.order:
            query.sort_order = SortOrder(args.order)
        if args.hide_completed:
            query.show_completed = False
        tasks = session.query(query)
        if not tasks:
            print("No tasks.")
        for task in tasks:
            print(_format_task(session, task, with_plan=args.plan))
    elif command == "done":
        print(_format_task(session, session.toggle_complete(args.task_id)))
    elif command == "progress":
        print(_format_task(session, session.set_progress(args.task_id, args.value)))
    elif command == "delete":
        session.delete_task(args.task_id)
        print(f"Deleted {args.task_id}")
    elif command == "replan":
        print(_format_task(session, session.reallocate(args.task_id), with_plan=True))
    elif command == "plan-day":
        print(_format_task(session, session.toggle_plan_day(args.task_id, args.day), with_plan=True))
    elif command == "history":
        snapshots = session.list_history()
        if not snapshots:
            print("No snapshots.")
        for snapshot in snapshots:
            print(f"v{snapshot.version}  {snapshot.timestamp.isoformat()}  {len(snapshot.tasks)} tasks")
    elif command == "restore":
        snapshot = session.restore(args.version)
        print(f"Restored v{snapshot.version} ({len(snapshot.tasks)} tasks)")
    elif command == "export":
        path = session.export_to(args.path)
        print(f"Exported {len(session.store)} tasks to {path}")
    elif command == "import":
        result = session.import_from(args.path)
        print(f"Imported {len(result.tasks)} tasks")
    elif command == "stats":
        for key, value in session.stats().items():
            print(f"{key}: {value:g}" if isinstance(value, float) else f"{key}: {value}")
    elif command == "clear":
        removed = session.clear_all()
        if args.purge:
            session.gateway.purge()
        print(f"Removed {removed} tasks")
    elif command == "settings":
        if args.changes:
            session.update_settings(**dict(_parse_setting(raw) for raw in args.changes))
        for key, value in session.settings.to_dict().items():
            print(f"{key}: {value}")
    _report_save(session)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings(args.data_dir)
    configure_logging(args.log_level, log_dir=settings.logging.log_dir)
    logger.info("Study planner CLI starting: %s", args.command)

    session = StudySession.open(settings=settings)
    for warning in session.load_warnings:
        print(f"warning: {warning}", file=sys.stderr)
    try:
        return run(args, session)
    except (StudyPlannerError, argparse.ArgumentTypeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
