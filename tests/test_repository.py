#!/usr/bin/env python3
"""
Tests for the repository backends.

The YAML store is exercised against a temp directory, the way the board
file tests work against a throwaway board root.
"""

import asyncio
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from beeboard.errors import PersistenceError
from beeboard.file_locking import FileLock
from beeboard.models import Priority
from beeboard.repository import InMemoryProjectRepository, YamlProjectRepository
from conftest import seed_board


@pytest.fixture
def temp_dir():
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def store_path(temp_dir):
    return temp_dir / "store.yaml"


class _SeedableYamlRepository(YamlProjectRepository):
    """seed_board() clears ``calls``; give the YAML backend one."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []


def test_yaml_store_survives_new_instances(store_path):
    """Test data written by one repository is read by another."""
    async def scenario():
        project, columns = await seed_board(
            _SeedableYamlRepository(store_path), tasks={"Todo": ["T1"]}
        )
        reopened = YamlProjectRepository(store_path)
        return project, await reopened.fetch_columns_with_tasks(project.id)

    project, columns = asyncio.run(scenario())

    assert [c.title for c in columns] == ["Todo", "Doing", "Done"]
    assert [t.title for t in columns[0].tasks] == ["T1"]
    data = yaml.safe_load(store_path.read_text(encoding="utf-8"))
    assert data["version"] == 1
    assert len(data["projects"]) == 1


def test_yaml_store_keeps_backup_of_previous_write(store_path):
    """Test .bak backups and temp file cleanup."""
    asyncio.run(seed_board(_SeedableYamlRepository(store_path), column_titles=("A",)))

    assert store_path.with_suffix(".yaml.bak").exists()
    assert not store_path.with_suffix(".yaml.tmp").exists()


def test_yaml_delete_column_cascades_to_tasks(store_path):
    """Test column delete removes task rows in the YAML store."""
    repo = _SeedableYamlRepository(store_path)

    async def scenario():
        project, columns = await seed_board(repo, tasks={"Todo": ["T1", "T2"], "Done": ["D1"]})
        await repo.delete_column(columns["Todo"].id)
        return await repo.fetch_columns_with_tasks(project.id)

    columns = asyncio.run(scenario())

    data = yaml.safe_load(store_path.read_text(encoding="utf-8"))
    assert [c.title for c in columns] == ["Doing", "Done"]
    assert [t["title"] for t in data["tasks"]] == ["D1"]


def test_yaml_conditional_insert_only_on_empty_project(store_path):
    """Test insert_columns_if_empty."""
    repo = _SeedableYamlRepository(store_path)
    rows = [{"title": "One", "position": 0}, {"title": "Two", "position": 1}]

    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        first = await repo.insert_columns_if_empty(project.id, rows)
        second = await repo.insert_columns_if_empty(project.id, rows)
        return first, second, await repo.fetch_columns_with_tasks(project.id)

    first, second, columns = asyncio.run(scenario())

    assert len(first) == 2
    assert second == []
    assert [c.title for c in columns] == ["One", "Two"]


def test_yaml_concurrent_conditional_inserts_insert_once(store_path):
    """Test concurrent conditional inserts against the YAML store."""
    repo = _SeedableYamlRepository(store_path)
    rows = [{"title": "One", "position": 0}]

    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        results = await asyncio.gather(
            *(repo.insert_columns_if_empty(project.id, rows) for _ in range(4))
        )
        return results, await repo.fetch_columns_with_tasks(project.id)

    results, columns = asyncio.run(scenario())

    assert sorted(len(r) for r in results) == [0, 0, 0, 1]
    assert len(columns) == 1


def test_corrupted_store_is_a_persistence_error(store_path):
    """Test a corrupted store file."""
    store_path.write_text("projects: [unclosed\n", encoding="utf-8")

    with pytest.raises(PersistenceError):
        asyncio.run(YamlProjectRepository(store_path).fetch_project("p"))


def test_held_lock_times_out_as_persistence_error(store_path):
    """Test a store lock held by someone else."""
    repo = YamlProjectRepository(store_path, lock_timeout=0.2)

    with FileLock(store_path):
        with pytest.raises(PersistenceError):
            asyncio.run(repo.fetch_project("p"))


def test_missing_store_reads_as_empty(store_path):
    """Test reads before the store file exists."""
    repo = YamlProjectRepository(store_path)

    assert asyncio.run(repo.fetch_project("p")) is None
    assert asyncio.run(repo.fetch_columns_with_tasks("p")) == []
    assert not store_path.exists()


@pytest.mark.parametrize(
    "op, args",
    [
        ("insert_column", ({"title": "X", "position": 0, "project_id": "nope"},)),
        ("insert_task", ({"title": "X", "column_id": "nope"},)),
        ("insert_project", ({"title": "X", "organization_id": "nope"},)),
    ],
)
def test_foreign_key_violations_are_rejected(op, args):
    """Test rows referencing missing parents."""
    repo = InMemoryProjectRepository()

    with pytest.raises(PersistenceError):
        asyncio.run(getattr(repo, op)(*args))


def test_empty_titles_are_rejected_by_the_store(repo):
    """Test the store refuses empty titles."""
    async def scenario():
        project, columns = await seed_board(repo)
        with pytest.raises(PersistenceError):
            await repo.insert_column({"title": " ", "position": 9, "project_id": project.id})
        with pytest.raises(PersistenceError):
            await repo.insert_task({"title": "", "column_id": columns["Todo"].id})

    asyncio.run(scenario())


def test_update_task_rejects_unknown_fields_and_tasks(repo, loaded_board):
    """Test update_task error cases."""
    task_id = repo.data["tasks"][0]["id"]

    with pytest.raises(PersistenceError):
        asyncio.run(repo.update_task(task_id, {"created_by": "mallory"}))
    with pytest.raises(PersistenceError):
        asyncio.run(repo.update_task("missing", {"position": 1}))
    with pytest.raises(PersistenceError):
        asyncio.run(repo.update_task(task_id, {"priority": "urgent"}))


def test_update_task_changes_only_given_fields(repo, loaded_board):
    """Test a partial task update."""
    task_id = repo.data["tasks"][0]["id"]

    task = asyncio.run(repo.update_task(task_id, {"priority": "high"}))

    assert task.priority == Priority.HIGH
    assert task.title == "T1"
    assert repo.data["tasks"][0]["priority"] == "high"


def test_returned_rows_are_copies(repo, loaded_board):
    """Test callers cannot change stored rows through returned models."""
    project, _ = loaded_board

    columns = asyncio.run(repo.fetch_columns_with_tasks(project.id))
    columns[0].tasks[0].title = "changed"

    assert repo.data["tasks"][0]["title"] == "T1"


def test_columns_with_equal_positions_keep_insertion_order(repo):
    """Test ordering of columns sharing a position."""
    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        for title in ("first", "second"):
            await repo.insert_column({"title": title, "position": 0, "project_id": project.id})
        return await repo.fetch_columns_with_tasks(project.id)

    assert [c.title for c in asyncio.run(scenario())] == ["first", "second"]


def test_list_projects_newest_first_and_limited(repo):
    """Test list_projects ordering and limit."""
    async def scenario():
        org = await repo.create_organization_with_owner("Hive", "alice")
        for day in range(1, 13):
            await repo.insert_project(
                {
                    "title": f"P{day}",
                    "organization_id": org.id,
                    "created_at": f"2025-01-{day:02d}T00:00:00Z",
                }
            )
        return await repo.list_projects(org.id)

    projects = asyncio.run(scenario())

    assert len(projects) == 10
    assert projects[0].title == "P12"
    assert projects[-1].title == "P3"
