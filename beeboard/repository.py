# repository.py

"""
Gateway to persisted boards.

ProjectRepository is the async CRUD/RPC surface the board core consumes.
Two backends share the same table logic (_Tables):

- InMemoryProjectRepository: plain dicts in process memory, optional
  simulated latency so callers see real suspension points.
- YamlProjectRepository: all tables in a single YAML store file. Every call is
  one read-modify-write cycle under the store's .lck file lock, run in a
  worker thread so the event loop is never blocked.

Rows are plain dicts inside the tables and pydantic models at the API.
Deleting a column cascades to its task rows, as a foreign key declared
``ON DELETE CASCADE`` would.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as RowValidationError

from beeboard.errors import LockError, PersistenceError, YAMLError
from beeboard.file_locking import FileLock
from beeboard.models import (
    Column,
    MemberRole,
    Organization,
    OrganizationMember,
    Project,
    Task,
)
from beeboard.utils import generate_id, load_yaml, now_iso, save_yaml

logger = logging.getLogger(__name__)

TABLES = ("organizations", "organization_members", "projects", "columns", "tasks")

TASK_UPDATABLE_FIELDS = {
    "title",
    "description",
    "priority",
    "position",
    "column_id",
    "assigned_to",
    "due_date",
}


def empty_tables() -> Dict[str, List[Dict[str, Any]]]:
    return {name: [] for name in TABLES}


class ProjectRepository(ABC):
    """Async persistence primitives used by the board core."""

    @abstractmethod
    async def fetch_project(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    async def fetch_columns_with_tasks(self, project_id: str) -> List[Column]:
        """Columns of a project ordered by position, each with its tasks nested."""
        ...

    @abstractmethod
    async def insert_column(self, values: Dict[str, Any]) -> Column:
        ...

    @abstractmethod
    async def insert_columns(self, rows: List[Dict[str, Any]]) -> List[Column]:
        ...

    @abstractmethod
    async def insert_columns_if_empty(
        self, project_id: str, rows: List[Dict[str, Any]]
    ) -> List[Column]:
        """
        Insert ``rows`` only if the project has no columns, as one atomic step.
        Returns the inserted columns, or an empty list if columns already existed.
        """
        ...

    @abstractmethod
    async def delete_column(self, column_id: str) -> None:
        ...

    @abstractmethod
    async def insert_task(self, values: Dict[str, Any]) -> Task:
        ...

    @abstractmethod
    async def update_task(self, task_id: str, changes: Dict[str, Any]) -> Task:
        """Apply ``changes`` to one task row. Applying the same changes twice is harmless."""
        ...

    @abstractmethod
    async def fetch_membership(self, user_id: str) -> Optional[OrganizationMember]:
        ...

    @abstractmethod
    async def fetch_organization(self, organization_id: str) -> Optional[Organization]:
        ...

    @abstractmethod
    async def create_organization_with_owner(
        self, name: str, owner_id: str, logo_url: Optional[str] = None
    ) -> Organization:
        ...

    @abstractmethod
    async def insert_project(self, values: Dict[str, Any]) -> Project:
        ...

    @abstractmethod
    async def list_projects(self, organization_id: str, limit: int = 10) -> List[Project]:
        ...


class _Tables:
    """Table operations over a dict of row lists. Never suspends."""

    def __init__(self, data: Dict[str, List[Dict[str, Any]]]):
        for name in TABLES:
            data.setdefault(name, [])
        self.data = data

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _find(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        for row in self.data[table]:
            if row.get("id") == row_id:
                return row
        return None

    def _require(self, table: str, row_id: str, what: str) -> Dict[str, Any]:
        row = self._find(table, row_id)
        if row is None:
            raise PersistenceError(f"{what} '{row_id}' does not exist (foreign key violation)")
        return row

    def _columns_of(self, project_id: str) -> List[Dict[str, Any]]:
        rows = [c for c in self.data["columns"] if c.get("project_id") == project_id]
        # sorted() is stable, so equal positions keep insertion order
        return sorted(rows, key=lambda c: c.get("position", 0))

    def _new_column_row(self, values: Dict[str, Any]) -> Dict[str, Any]:
        title = (values.get("title") or "").strip()
        if not title:
            raise PersistenceError("columns.title must not be empty")
        self._require("projects", values.get("project_id"), "Project")
        return Column(
            id=values.get("id") or generate_id("col"),
            title=title,
            position=int(values.get("position", 0)),
            project_id=values["project_id"],
        ).to_row()

    # ------------------------------------------------------------------
    # projects / columns / tasks
    # ------------------------------------------------------------------

    def fetch_project(self, project_id: str) -> Optional[Project]:
        row = self._find("projects", project_id)
        return Project(**row) if row else None

    def fetch_columns_with_tasks(self, project_id: str) -> List[Column]:
        columns = []
        for row in self._columns_of(project_id):
            tasks = [Task(**t) for t in self.data["tasks"] if t.get("column_id") == row["id"]]
            columns.append(Column(**row, tasks=tasks))
        return columns

    def insert_column(self, values: Dict[str, Any]) -> Column:
        row = self._new_column_row(values)
        self.data["columns"].append(row)
        return Column(**row)

    def insert_columns(self, rows: List[Dict[str, Any]]) -> List[Column]:
        # validate everything first so a bad row inserts nothing
        new_rows = [self._new_column_row(values) for values in rows]
        self.data["columns"].extend(new_rows)
        return [Column(**row) for row in new_rows]

    def insert_columns_if_empty(self, project_id: str, rows: List[Dict[str, Any]]) -> List[Column]:
        if self._columns_of(project_id):
            return []
        return self.insert_columns([dict(values, project_id=project_id) for values in rows])

    def delete_column(self, column_id: str) -> None:
        self.data["columns"] = [c for c in self.data["columns"] if c.get("id") != column_id]
        self.data["tasks"] = [t for t in self.data["tasks"] if t.get("column_id") != column_id]

    def insert_task(self, values: Dict[str, Any]) -> Task:
        title = (values.get("title") or "").strip()
        if not title:
            raise PersistenceError("tasks.title must not be empty")
        self._require("columns", values.get("column_id"), "Column")
        task = Task(**dict(values, id=values.get("id") or generate_id("task")))
        row = task.to_row()
        self.data["tasks"].append(row)
        return Task(**row)

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Task:
        unknown = set(changes) - TASK_UPDATABLE_FIELDS
        if unknown:
            raise PersistenceError(f"Fields not updatable on tasks: {', '.join(sorted(unknown))}")
        row = self._find("tasks", task_id)
        if row is None:
            raise PersistenceError(f"Task '{task_id}' does not exist")
        if "column_id" in changes:
            self._require("columns", changes["column_id"], "Column")
        updated = Task(**dict(row, **changes)).to_row()
        row.clear()
        row.update(updated)
        return Task(**row)

    # ------------------------------------------------------------------
    # organizations / projects
    # ------------------------------------------------------------------

    def fetch_membership(self, user_id: str) -> Optional[OrganizationMember]:
        for row in self.data["organization_members"]:
            if row.get("user_id") == user_id:
                return OrganizationMember(**row)
        return None

    def fetch_organization(self, organization_id: str) -> Optional[Organization]:
        row = self._find("organizations", organization_id)
        return Organization(**row) if row else None

    def create_organization_with_owner(
        self, name: str, owner_id: str, logo_url: Optional[str] = None
    ) -> Organization:
        name = (name or "").strip()
        if not name:
            raise PersistenceError("organizations.name must not be empty")
        organization = Organization(id=generate_id("org"), name=name, logo_url=logo_url)
        member = OrganizationMember(
            user_id=owner_id, organization_id=organization.id, role=MemberRole.OWNER
        )
        self.data["organizations"].append(organization.to_row())
        self.data["organization_members"].append(member.to_row())
        return organization

    def insert_project(self, values: Dict[str, Any]) -> Project:
        title = (values.get("title") or "").strip()
        if not title:
            raise PersistenceError("projects.title must not be empty")
        if values.get("organization_id"):
            self._require("organizations", values["organization_id"], "Organization")
        project = Project(
            **dict(
                values,
                id=values.get("id") or generate_id("prj"),
                title=title,
                created_at=values.get("created_at") or now_iso(),
            )
        )
        self.data["projects"].append(project.to_row())
        return project

    def list_projects(self, organization_id: str, limit: int = 10) -> List[Project]:
        rows = [p for p in self.data["projects"] if p.get("organization_id") == organization_id]
        rows.sort(key=lambda p: p.get("created_at") or "", reverse=True)
        return [Project(**row) for row in rows[:limit]]


class InMemoryProjectRepository(ProjectRepository):
    """
    Repository kept in process memory.

    ``latency`` (seconds) is awaited before every call so that concurrent
    callers interleave the way they would against a remote store. The table
    operation itself runs without suspending, which makes each call atomic.
    """

    def __init__(self, data: Optional[Dict[str, List[Dict[str, Any]]]] = None, latency: float = 0.0):
        self.data = data if data is not None else empty_tables()
        self.latency = latency
        self._tables = _Tables(self.data)

    async def _call(self, op: str, *args):
        await asyncio.sleep(self.latency)
        logger.debug(f"memory repository call {op}")
        try:
            result = getattr(self._tables, op)(*args)
        except RowValidationError as e:
            raise PersistenceError(f"Row rejected by {op}: {e}") from e
        # hand out copies so callers cannot mutate stored rows
        return copy.deepcopy(result)

    async def fetch_project(self, project_id):
        return await self._call("fetch_project", project_id)

    async def fetch_columns_with_tasks(self, project_id):
        return await self._call("fetch_columns_with_tasks", project_id)

    async def insert_column(self, values):
        return await self._call("insert_column", values)

    async def insert_columns(self, rows):
        return await self._call("insert_columns", rows)

    async def insert_columns_if_empty(self, project_id, rows):
        return await self._call("insert_columns_if_empty", project_id, rows)

    async def delete_column(self, column_id):
        return await self._call("delete_column", column_id)

    async def insert_task(self, values):
        return await self._call("insert_task", values)

    async def update_task(self, task_id, changes):
        return await self._call("update_task", task_id, changes)

    async def fetch_membership(self, user_id):
        return await self._call("fetch_membership", user_id)

    async def fetch_organization(self, organization_id):
        return await self._call("fetch_organization", organization_id)

    async def create_organization_with_owner(self, name, owner_id, logo_url=None):
        return await self._call("create_organization_with_owner", name, owner_id, logo_url)

    async def insert_project(self, values):
        return await self._call("insert_project", values)

    async def list_projects(self, organization_id, limit=10):
        return await self._call("list_projects", organization_id, limit)


class YamlProjectRepository(ProjectRepository):
    """
    Repository backed by one YAML store file.

    Each call loads the file, applies one table operation and (for writes)
    saves it back, all under the store's file lock. Storage failures surface
    as PersistenceError.
    """

    def __init__(self, store_path: str | Path, lock_timeout: float = 10.0):
        self.store_path = Path(store_path).resolve()
        self.lock_timeout = lock_timeout

    def _transact(self, op: Callable[[_Tables], Any], write: bool) -> Any:
        try:
            with FileLock(self.store_path, timeout=self.lock_timeout):
                data = load_yaml(self.store_path, default=None, use_lock=False) or empty_tables()
                data.pop("version", None)
                result = op(_Tables(data))
                if write:
                    save_yaml(self.store_path, data, use_lock=False)
                return result
        except RowValidationError as e:
            raise PersistenceError(f"Row rejected by store: {e}") from e
        except (YAMLError, LockError, OSError) as e:
            logger.error(f"Store operation failed on {self.store_path}: {e}")
            raise PersistenceError(f"Store {self.store_path} unavailable: {e}") from e

    async def _read(self, op: str, *args):
        return await asyncio.to_thread(
            self._transact, lambda t: getattr(t, op)(*args), False
        )

    async def _write(self, op: str, *args):
        return await asyncio.to_thread(
            self._transact, lambda t: getattr(t, op)(*args), True
        )

    async def fetch_project(self, project_id):
        return await self._read("fetch_project", project_id)

    async def fetch_columns_with_tasks(self, project_id):
        return await self._read("fetch_columns_with_tasks", project_id)

    async def insert_column(self, values):
        return await self._write("insert_column", values)

    async def insert_columns(self, rows):
        return await self._write("insert_columns", rows)

    async def insert_columns_if_empty(self, project_id, rows):
        return await self._write("insert_columns_if_empty", project_id, rows)

    async def delete_column(self, column_id):
        return await self._write("delete_column", column_id)

    async def insert_task(self, values):
        return await self._write("insert_task", values)

    async def update_task(self, task_id, changes):
        return await self._write("update_task", task_id, changes)

    async def fetch_membership(self, user_id):
        return await self._read("fetch_membership", user_id)

    async def fetch_organization(self, organization_id):
        return await self._read("fetch_organization", organization_id)

    async def create_organization_with_owner(self, name, owner_id, logo_url=None):
        return await self._write("create_organization_with_owner", name, owner_id, logo_url)

    async def insert_project(self, values):
        return await self._write("insert_project", values)

    async def list_projects(self, organization_id, limit=10):
        return await self._read("list_projects", organization_id, limit)

