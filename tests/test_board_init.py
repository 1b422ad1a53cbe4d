#!/usr/bin/env python3
"""
Tests for default column bootstrap.
"""

import asyncio
import gc

import pytest

from beeboard.board_init import DEFAULT_COLUMN_TITLES, ColumnBootstrapper, default_columns
from beeboard.errors import PersistenceError
from conftest import RecordingRepository, seed_board


async def _empty_project(repo):
    project, _ = await seed_board(repo, column_titles=())
    return project


def test_default_template_positions_follow_order():
    """Test template positions follow the template order."""
    rows = default_columns("en")
    assert [r["title"] for r in rows] == ["Project", "Status", "To Do", "Review", "Fix", "Approval"]
    assert [r["position"] for r in rows] == [0, 1, 2, 3, 4, 5]


def test_pt_br_template_is_the_default():
    """Test the Portuguese template is used when no locale is given."""
    assert [r["title"] for r in default_columns()] == DEFAULT_COLUMN_TITLES["pt-BR"]


def test_bootstrap_creates_template_on_empty_project(repo):
    """Test bootstrapping an empty project inserts all six columns."""
    async def scenario():
        project = await _empty_project(repo)
        inserted = await ColumnBootstrapper(repo, locale="en").ensure_default_columns(project.id)
        columns = await repo.fetch_columns_with_tasks(project.id)
        return project, inserted, columns

    project, inserted, columns = asyncio.run(scenario())

    assert len(inserted) == 6
    assert [c.title for c in columns] == DEFAULT_COLUMN_TITLES["en"]
    assert [c.position for c in columns] == list(range(6))
    assert all(c.project_id == project.id for c in columns)


def test_bootstrap_twice_inserts_once(repo):
    """Test a second bootstrap of the same project is a no-op."""
    async def scenario():
        project = await _empty_project(repo)
        bootstrapper = ColumnBootstrapper(repo)
        first = await bootstrapper.ensure_default_columns(project.id)
        second = await bootstrapper.ensure_default_columns(project.id)
        return first, second, await repo.fetch_columns_with_tasks(project.id)

    first, second, columns = asyncio.run(scenario())

    assert len(first) == 6
    assert second is None
    assert len(columns) == 6
    assert len(repo.calls_to("insert_columns_if_empty")) == 1


def test_bootstrap_keeps_existing_columns(repo):
    """Test projects that already have columns are left alone."""
    async def scenario():
        project, _ = await seed_board(repo, column_titles=("Backlog",))
        result = await ColumnBootstrapper(repo).ensure_default_columns(project.id)
        return result, await repo.fetch_columns_with_tasks(project.id)

    result, columns = asyncio.run(scenario())

    assert result is None
    assert [c.title for c in columns] == ["Backlog"]
    assert repo.calls_to("insert_columns_if_empty") == []


def test_concurrent_bootstraps_in_one_process_insert_once():
    """Test concurrent bootstraps through one bootstrapper."""
    repo = RecordingRepository(latency=0.01)

    async def scenario():
        project = await _empty_project(repo)
        bootstrapper = ColumnBootstrapper(repo)
        await asyncio.gather(*(bootstrapper.ensure_default_columns(project.id) for _ in range(3)))
        return await repo.fetch_columns_with_tasks(project.id)

    assert len(asyncio.run(scenario())) == 6


def test_concurrent_bootstraps_from_separate_sessions_insert_once():
    """Two bootstrappers (two board screens) race on the same empty project."""
    repo = RecordingRepository(latency=0.01)

    async def scenario():
        project = await _empty_project(repo)
        await asyncio.gather(
            ColumnBootstrapper(repo).ensure_default_columns(project.id),
            ColumnBootstrapper(repo).ensure_default_columns(project.id),
        )
        return await repo.fetch_columns_with_tasks(project.id)

    columns = asyncio.run(scenario())

    # both saw an empty project; the conditional insert let only one through
    assert len(repo.calls_to("insert_columns_if_empty")) == 2
    assert len(columns) == 6


def test_bootstrap_propagates_persistence_failure(repo):
    """Test insert failures reach the caller without a retry."""
    async def scenario():
        project = await _empty_project(repo)
        repo.fail_on.add("insert_columns_if_empty")
        await ColumnBootstrapper(repo).ensure_default_columns(project.id)

    with pytest.raises(PersistenceError):
        asyncio.run(scenario())
    assert len(repo.calls_to("insert_columns_if_empty")) == 1


def test_unknown_locale_is_rejected(repo):
    """Test unknown locales are refused up front."""
    with pytest.raises(ValueError):
        ColumnBootstrapper(repo, locale="xx")


def test_project_locks_are_released_after_bootstrap():
    """Test the per-project lock map does not keep an entry per bootstrapped project."""
    repo = RecordingRepository(latency=0.01)
    bootstrapper = ColumnBootstrapper(repo)

    async def scenario():
        for _ in range(3):
            project = await _empty_project(repo)
            await asyncio.gather(
                bootstrapper.ensure_default_columns(project.id),
                bootstrapper.ensure_default_columns(project.id),
            )

    asyncio.run(scenario())
    gc.collect()

    assert len(bootstrapper._locks) == 0
