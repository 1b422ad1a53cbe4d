"""
BeeBoard - project boards with ordered columns and tasks.

The board core keeps an in-memory tree (project, columns, tasks) in step with
a ProjectRepository: default columns on first load, optimistic mutations,
and drag-and-drop moves between columns.
"""

from beeboard.board_init import ColumnBootstrapper, default_columns
from beeboard.board_session import BoardSession
from beeboard.board_store import BoardStateStore
from beeboard.column_mutations import ColumnMutationController
from beeboard.config import BoardSettings, load_settings
from beeboard.drag_drop import DragDropMoveProtocol, DragPayload, DragState
from beeboard.errors import BoardError, NotFoundError, PersistenceError, ValidationError
from beeboard.models import BoardTree, Column, Organization, Project, SyncState, Task
from beeboard.organizations import OrganizationService
from beeboard.repository import (
    InMemoryProjectRepository,
    ProjectRepository,
    YamlProjectRepository,
)
from beeboard.session import SessionContext
from beeboard.task_mutations import TaskMutationController

__all__ = [
    "ColumnBootstrapper",
    "default_columns",
    "BoardSession",
    "BoardStateStore",
    "ColumnMutationController",
    "BoardSettings",
    "load_settings",
    "DragDropMoveProtocol",
    "DragPayload",
    "DragState",
    "BoardError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    "BoardTree",
    "Column",
    "Organization",
    "Project",
    "SyncState",
    "Task",
    "OrganizationService",
    "InMemoryProjectRepository",
    "ProjectRepository",
    "YamlProjectRepository",
    "SessionContext",
    "TaskMutationController",
]
