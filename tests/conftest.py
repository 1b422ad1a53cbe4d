"""
Shared fixtures for the board core tests.

Async code is driven with asyncio.run() from plain test functions.
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from beeboard.board_init import ColumnBootstrapper
from beeboard.board_store import BoardStateStore
from beeboard.errors import PersistenceError
from beeboard.repository import InMemoryProjectRepository
from beeboard.session import SessionContext


class RecordingRepository(InMemoryProjectRepository):
    """In-memory repository that records calls and can be told to fail some of them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []
        self.fail_on = set()

    async def _call(self, op, *args):
        self.calls.append(op)
        if op in self.fail_on:
            await asyncio.sleep(self.latency)
            raise PersistenceError(f"simulated failure in {op}")
        return await super()._call(op, *args)

    def calls_to(self, op):
        return [c for c in self.calls if c == op]


async def seed_board(repo, column_titles=("Todo", "Doing", "Done"), tasks=None, user_id="alice"):
    """
    Create an organization, a project and the given columns/tasks.

    ``tasks`` maps a column title to task titles, inserted in order.
    Returns (project, {column title: column}).
    """
    org = await repo.create_organization_with_owner("Hive", user_id)
    project = await repo.insert_project(
        {"title": "Website", "organization_id": org.id, "created_by": user_id}
    )
    columns = {}
    for index, title in enumerate(column_titles):
        columns[title] = await repo.insert_column(
            {"title": title, "position": index, "project_id": project.id}
        )
    for column_title, task_titles in (tasks or {}).items():
        for index, task_title in enumerate(task_titles):
            await repo.insert_task(
                {
                    "title": task_title,
                    "column_id": columns[column_title].id,
                    "position": index,
                    "created_by": user_id,
                }
            )
    repo.calls.clear()
    return project, columns


def titles(column):
    return [task.title for task in column.tasks]


@pytest.fixture
def repo():
    return RecordingRepository()


@pytest.fixture
def ctx():
    return SessionContext(user_id="alice")


@pytest.fixture
def store(repo):
    return BoardStateStore(repo, ColumnBootstrapper(repo, locale="en"))


@pytest.fixture
def loaded_board(repo, store):
    """Store loaded with Todo=[T1, T2], Doing=[], Done=[D1]."""
    project, columns = asyncio.run(
        seed_board(repo, tasks={"Todo": ["T1", "T2"], "Done": ["D1"]})
    )
    asyncio.run(store.load(project.id))
    repo.calls.clear()
    return project, columns
