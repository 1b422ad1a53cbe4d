# models.py

"""
Data model for the board core.

Rows as persisted by a ProjectRepository and nodes as held by the
BoardStateStore share the same pydantic models; ``sync_state`` and a column's
nested ``tasks`` only have meaning on the in-memory tree and are excluded from
rows by ``to_row()``.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field, field_validator

from beeboard.utils import now_iso

DEFAULT_PROJECT_COLOR = "bg-gradient-honey"

# Fields that exist only on BoardStateStore nodes
_NODE_ONLY_FIELDS = {"sync_state", "tasks"}


def parse_due_date(value) -> Optional[str]:
    """Accept free-form dates ("2025-11-30", "Dec 15 2025") and return an ISO date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date_parser.parse(str(value)).date().isoformat()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Unrecognized due date '{value}'") from e


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SyncState(str, Enum):
    """How a node in the board tree relates to the persisted row."""

    SYNCED = "synced"
    PENDING = "pending"
    UNSYNCED = "unsynced"


class MemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


class _Row(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    def to_row(self) -> Dict[str, Any]:
        """Serialize for persistence (JSON-compatible, node-only fields dropped)."""
        return self.model_dump(mode="json", exclude=_NODE_ONLY_FIELDS)


class Organization(_Row):
    id: str
    name: str
    logo_url: Optional[str] = None


class OrganizationMember(_Row):
    user_id: str
    organization_id: str
    role: MemberRole = MemberRole.MEMBER


class Project(_Row):
    id: str
    title: str
    description: Optional[str] = None
    color: str = DEFAULT_PROJECT_COLOR
    organization_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: str = Field(default_factory=now_iso)


class Task(_Row):
    id: str
    title: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    position: int = 0
    column_id: str
    assigned_to: Optional[str] = None
    due_date: Optional[str] = None
    created_by: Optional[str] = None
    sync_state: SyncState = SyncState.SYNCED

    @field_validator("due_date", mode="before")
    @classmethod
    def _normalize_due_date(cls, value):
        return parse_due_date(value)


class Column(_Row):
    id: str
    title: str
    position: int
    project_id: str
    tasks: List[Task] = Field(default_factory=list)

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def next_task_position(self) -> int:
        """One past the highest task position in this column (0 when empty)."""
        if not self.tasks:
            return 0
        return max(task.position for task in self.tasks) + 1


class BoardTree(BaseModel):
    """Project -> Column[] -> Task[] as rendered by the board view."""

    project: Project
    columns: List[Column] = Field(default_factory=list)

    def find_column(self, column_id: str) -> Optional[Column]:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def task_count(self) -> int:
        return sum(len(column.tasks) for column in self.columns)


class TaskCounts(BaseModel):
    todo: int = 0
    in_progress: int = Field(default=0, alias="inProgress")
    done: int = 0

    model_config = ConfigDict(populate_by_name=True)


class ProjectSummary(BaseModel):
    """Flat project entry of the offline (non-authenticated) project list."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    color: str = DEFAULT_PROJECT_COLOR
    created_at: str = Field(default_factory=now_iso, alias="createdAt")
    task_counts: TaskCounts = Field(default_factory=TaskCounts, alias="tasks")
    member_count: int = Field(default=1, alias="members")
