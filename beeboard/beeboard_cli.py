#!/usr/bin/env python3

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from beeboard.board_session import BoardSession
from beeboard.config import BoardSettings, load_settings
from beeboard.logging_config import get_activity_logger, setup_logging
from beeboard.models import BoardTree, SyncState
from beeboard.notifications import Notification, Notifier
from beeboard.offline_projects import OfflineProjectList
from beeboard.organizations import OrganizationService
from beeboard.repository import YamlProjectRepository

logger = logging.getLogger(__name__)


def print_notification(notification: Notification) -> None:
    stream = sys.stderr if notification.is_error else sys.stdout
    line = notification.title
    if notification.description:
        line = f"{line}: {notification.description}"
    print(line, file=stream)


def render_board(tree: BoardTree) -> str:
    lines = [f"{tree.project.title} ({tree.project.id})"]
    if tree.project.description:
        lines.append(f"  {tree.project.description}")
    for column in tree.columns:
        lines.append("")
        lines.append(f"[{column.position}] {column.title} ({column.id}) - {len(column.tasks)} task(s)")
        for task in column.tasks:
            flag = "" if task.sync_state == SyncState.SYNCED else f" [{task.sync_state.value}]"
            due = f" due {task.due_date}" if task.due_date else ""
            lines.append(f"    {task.id:40} {task.priority.value:6} {task.title}{due}{flag}")
    return "\n".join(lines)


def _settings(args: argparse.Namespace) -> BoardSettings:
    settings = load_settings(Path(args.settings) if args.settings else None)
    if args.store:
        settings = settings.model_copy(update={"store_path": Path(args.store)})
    return settings


def _repository(settings: BoardSettings) -> YamlProjectRepository:
    return YamlProjectRepository(settings.store_path)


async def _open_board(args: argparse.Namespace) -> Optional[BoardSession]:
    settings = _settings(args)
    repository = _repository(settings)
    orgs = OrganizationService(repository, default_name=settings.default_organization_name)
    ctx = await orgs.open_session(args.user)

    notifier = Notifier()
    notifier.add_listener(print_notification)
    session = BoardSession(repository, ctx, args.project, settings=settings, notifier=notifier)
    if await session.open() is None:
        return None
    return session


def _failed(session: Optional[BoardSession]) -> bool:
    return session is None or any(n.is_error for n in session.notifier.history)


# Project commands

async def cmd_create_project(args: argparse.Namespace) -> int:
    settings = _settings(args)
    orgs = OrganizationService(_repository(settings), default_name=settings.default_organization_name)
    ctx = await orgs.open_session(args.user)
    project = await orgs.create_project(ctx, args.title, args.description or "")
    print(f"Created project {project.id}: {project.title}")
    return 0


async def cmd_list_projects(args: argparse.Namespace) -> int:
    settings = _settings(args)
    orgs = OrganizationService(_repository(settings), default_name=settings.default_organization_name)
    ctx = await orgs.open_session(args.user)
    projects = await orgs.list_projects(ctx, limit=args.limit)
    if not projects:
        print("No projects.")
        return 0
    for p in projects:
        print(f"{p.id:40} {p.created_at:22} {p.title}")
    return 0


# Board commands

async def cmd_show_board(args: argparse.Namespace) -> int:
    session = await _open_board(args)
    if session is None:
        return 1
    print(render_board(session.tree))
    return 0


async def cmd_add_column(args: argparse.Namespace) -> int:
    session = await _open_board(args)
    if session is not None:
        await session.add_column(args.title)
    return 1 if _failed(session) else 0


async def cmd_delete_column(args: argparse.Namespace) -> int:
    session = await _open_board(args)
    if session is not None:
        await session.remove_column(args.column)
    return 1 if _failed(session) else 0


async def cmd_add_task(args: argparse.Namespace) -> int:
    session = await _open_board(args)
    if session is not None:
        await session.add_task(
            args.column,
            args.title,
            description=args.description or "",
            priority=args.priority,
            assigned_to=args.assignee,
            due_date=args.due_date,
        )
    return 1 if _failed(session) else 0


async def cmd_move_task(args: argparse.Namespace) -> int:
    session = await _open_board(args)
    if session is None:
        return 1
    if args.source == args.target:
        found = session.store.find_task(args.task)
        if found is not None and found[0].id == args.target:
            print(f"Task {args.task} is already in column {args.target}; nothing moved.")
        else:
            print(f"Task {args.task} is not in column {args.source}; nothing moved.")
        return 0
    task = await session.move_task(args.task, args.source, args.target)
    if task is None and not _failed(session):
        print(f"Task {args.task} is not in column {args.source}; nothing moved.")
    elif task is not None:
        print(f"Moved task {task.id} to column {args.target}")
    return 1 if _failed(session) else 0


# Offline project list

async def cmd_offline_list(args: argparse.Namespace) -> int:
    offline = OfflineProjectList(_settings(args).offline_store_path)
    summaries = offline.list()
    if not summaries:
        print("No offline projects.")
    for s in summaries:
        counts = s.task_counts
        print(f"{s.id:34} {s.title} (todo {counts.todo}, in progress {counts.in_progress}, done {counts.done})")
    return 0


async def cmd_offline_add(args: argparse.Namespace) -> int:
    offline = OfflineProjectList(_settings(args).offline_store_path)
    summary = offline.add(args.title, args.description or "")
    print(f"Created offline project {summary.id}: {summary.title}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Project boards with columns and tasks."
    )
    parser.add_argument(
        "--store",
        type=str,
        help="YAML store file (default: store_path from settings)",
    )
    parser.add_argument(
        "--settings",
        type=str,
        help="Settings file (default: ./beeboard.yaml if present)",
    )
    parser.add_argument(
        "--user",
        type=str,
        default=os.environ.get("BEEBOARD_USER", "cli"),
        help="Acting user id (default: $BEEBOARD_USER or 'cli')",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    # Projects
    p_create_project = sub.add_parser("create-project", help="Create a project")
    p_create_project.add_argument("--title", required=True, help="Project title")
    p_create_project.add_argument("--description", help="Project description")
    p_create_project.set_defaults(func=cmd_create_project)

    p_list_projects = sub.add_parser("list-projects", help="List recent projects")
    p_list_projects.add_argument("--limit", type=int, default=10, help="Maximum projects to list")
    p_list_projects.set_defaults(func=cmd_list_projects)

    # Board
    p_show = sub.add_parser("show-board", help="Show a project's columns and tasks")
    p_show.add_argument("--project", required=True, help="Project id")
    p_show.set_defaults(func=cmd_show_board)

    p_add_column = sub.add_parser("add-column", help="Append a column to a board")
    p_add_column.add_argument("--project", required=True, help="Project id")
    p_add_column.add_argument("--title", required=True, help="Column title")
    p_add_column.set_defaults(func=cmd_add_column)

    p_delete_column = sub.add_parser("delete-column", help="Delete a column and its tasks")
    p_delete_column.add_argument("--project", required=True, help="Project id")
    p_delete_column.add_argument("--column", required=True, help="Column id")
    p_delete_column.set_defaults(func=cmd_delete_column)

    p_add_task = sub.add_parser("add-task", help="Create a task in a column")
    p_add_task.add_argument("--project", required=True, help="Project id")
    p_add_task.add_argument("--column", required=True, help="Column id")
    p_add_task.add_argument("--title", required=True, help="Task title")
    p_add_task.add_argument("--description", help="Task description")
    p_add_task.add_argument(
        "--priority",
        choices=["low", "medium", "high"],
        default="medium",
        help="Task priority",
    )
    p_add_task.add_argument("--assignee", help="User id to assign")
    p_add_task.add_argument(
        "--due-date",
        help="Due date (free-form, e.g. 2025-11-30 or 'Dec 15 2025')",
    )
    p_add_task.set_defaults(func=cmd_add_task)

    p_move_task = sub.add_parser("move-task", help="Move a task to another column")
    p_move_task.add_argument("--project", required=True, help="Project id")
    p_move_task.add_argument("--task", required=True, help="Task id")
    p_move_task.add_argument("--from", dest="source", required=True, help="Source column id")
    p_move_task.add_argument("--to", dest="target", required=True, help="Target column id")
    p_move_task.set_defaults(func=cmd_move_task)

    # Offline list
    p_offline_list = sub.add_parser("offline-list", help="List offline project summaries")
    p_offline_list.set_defaults(func=cmd_offline_list)

    p_offline_add = sub.add_parser("offline-add", help="Add an offline project summary")
    p_offline_add.add_argument("--title", required=True, help="Project title")
    p_offline_add.add_argument("--description", help="Project description")
    p_offline_add.set_defaults(func=cmd_offline_add)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = _settings(args)
        setup_logging(level=logging.DEBUG if args.verbose else settings.log_level)
        if settings.log_dir:
            get_activity_logger(settings.log_dir)
        return asyncio.run(args.func(args))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
