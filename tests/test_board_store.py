#!/usr/bin/env python3
"""
Tests for loading and observing the in-memory board tree.
"""

import asyncio

import pytest

from beeboard.board_init import DEFAULT_COLUMN_TITLES, ColumnBootstrapper
from beeboard.board_store import BoardStateStore
from beeboard.errors import NotFoundError, PersistenceError
from beeboard.models import Column, SyncState
from conftest import seed_board, titles


def test_load_returns_columns_ordered_by_position(repo, store):
    """Test columns come back ordered by position."""
    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        # inserted out of order on purpose
        for title, position in (("C", 2), ("A", 0), ("B", 1)):
            await repo.insert_column({"title": title, "position": position, "project_id": project.id})
        return await store.load(project.id)

    tree = asyncio.run(scenario())

    assert [c.title for c in tree.columns] == ["A", "B", "C"]
    assert store.tree is tree


def test_load_keeps_task_order_from_store(repo, store):
    """Test task order is taken from the store as is."""
    async def scenario():
        project, columns = await seed_board(repo, tasks={"Todo": ["first", "second", "third"]})
        # positions deliberately not matching insertion order
        await repo.insert_task({"title": "zero", "column_id": columns["Todo"].id, "position": 0})
        return await store.load(project.id)

    tree = asyncio.run(scenario())

    assert titles(tree.columns[0]) == ["first", "second", "third", "zero"]


def test_load_bootstraps_empty_project_and_rereads_once(repo, store):
    """Test loading an empty project bootstraps and reads once more."""
    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        return await store.load(project.id)

    tree = asyncio.run(scenario())

    assert [c.title for c in tree.columns] == DEFAULT_COLUMN_TITLES["en"]
    # initial read, bootstrap's own check, one re-read
    assert len(repo.calls_to("fetch_columns_with_tasks")) == 3
    assert len(repo.calls_to("insert_columns_if_empty")) == 1


def test_second_load_reuses_existing_columns(repo, store):
    """Test reloading does not bootstrap again."""
    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        await store.load(project.id)
        return await store.load(project.id)

    tree = asyncio.run(scenario())

    assert len(tree.columns) == 6
    assert len(repo.calls_to("insert_columns_if_empty")) == 1


def test_empty_result_after_bootstrap_is_accepted(repo):
    """Test an empty board is accepted after the one re-read."""
    class NoopBootstrapper(ColumnBootstrapper):
        async def ensure_default_columns(self, project_id):
            return None

    store = BoardStateStore(repo, NoopBootstrapper(repo))

    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        return await store.load(project.id)

    tree = asyncio.run(scenario())

    assert tree.columns == []
    assert len(repo.calls_to("fetch_columns_with_tasks")) == 2


def test_missing_project_raises_not_found(store):
    """Test loading a missing project."""
    with pytest.raises(NotFoundError):
        asyncio.run(store.load("nope"))
    assert store.tree is None
    assert isinstance(store.last_error, NotFoundError)


def test_failed_load_leaves_no_tree(repo, store, loaded_board):
    """Test a failed load drops the previous tree."""
    project, _ = loaded_board
    assert store.tree is not None

    repo.fail_on.add("fetch_columns_with_tasks")
    with pytest.raises(PersistenceError):
        asyncio.run(store.load(project.id))

    assert store.tree is None


def test_failed_bootstrap_fails_the_load(repo, store):
    """Test bootstrap errors fail the load."""
    async def scenario():
        project, _ = await seed_board(repo, column_titles=())
        repo.fail_on.add("insert_columns_if_empty")
        await store.load(project.id)

    with pytest.raises(PersistenceError):
        asyncio.run(scenario())
    assert store.tree is None


def test_subscribers_see_every_change(store, loaded_board):
    """Test subscribe and unsubscribe."""
    _, columns = loaded_board
    seen = []
    unsubscribe = store.subscribe(lambda tree: seen.append(len(tree.columns)))

    store.append_column(Column(id="x", title="Extra", position=3, project_id="p"))
    store.remove_column("x")
    unsubscribe()
    store.remove_column(columns["Doing"].id)

    assert seen == [4, 3]


def test_broken_subscriber_does_not_break_mutations(store, loaded_board):
    """Test a raising subscriber is logged and skipped."""
    _, columns = loaded_board

    def broken(tree):
        raise RuntimeError("view crashed")

    store.subscribe(broken)
    store.remove_column(columns["Doing"].id)

    assert store.tree.find_column(columns["Doing"].id) is None


def test_return_task_restores_original_place(store, loaded_board):
    """Test return_task."""
    _, columns = loaded_board
    todo, done = columns["Todo"].id, columns["Done"].id
    t1 = store.get_column(todo).tasks[0]

    store.move_task(t1.id, todo, done, position=7)
    store.mark_task(t1.id, SyncState.PENDING)
    store.return_task(t1.id, todo, 0, 0)

    assert titles(store.get_column(todo)) == ["T1", "T2"]
    assert titles(store.get_column(done)) == ["D1"]
    restored = store.get_column(todo).tasks[0]
    assert restored.position == 0
    assert restored.column_id == todo
    assert restored.sync_state == SyncState.SYNCED
