# board_session.py

"""
One open board screen: a project's BoardStateStore plus the controllers that
mutate it, bound to one SessionContext.

Every user action goes through here. Errors never escape: each BoardError
becomes a destructive notification and the action returns None, so the board
stays usable after any single failure.
"""

import logging
from typing import Optional

from beeboard.board_init import ColumnBootstrapper
from beeboard.board_store import BoardStateStore
from beeboard.column_mutations import ColumnMutationController
from beeboard.config import BoardSettings
from beeboard.drag_drop import DragDropMoveProtocol, DragPayload
from beeboard.errors import BoardError, NotFoundError
from beeboard.models import BoardTree, Column, Task
from beeboard.notifications import Notifier
from beeboard.repository import ProjectRepository
from beeboard.session import SessionContext
from beeboard.task_mutations import TaskMutationController

logger = logging.getLogger(__name__)

MESSAGES = {
    "pt-BR": {
        "load_failed": "Erro ao carregar projeto",
        "not_found": "Projeto não encontrado",
        "task_created": "Tarefa criada com sucesso",
        "task_created_detail": '"{title}" foi adicionada à coluna',
        "task_failed": "Erro ao criar tarefa",
        "column_created": "Coluna criada com sucesso",
        "column_created_detail": 'Coluna "{title}" foi adicionada',
        "column_failed": "Erro ao criar coluna",
        "column_removed": "Coluna removida",
        "column_removed_detail": "A coluna foi removida com sucesso",
        "column_remove_failed": "Erro ao remover coluna",
        "move_failed": "Erro ao mover tarefa",
    },
    "en": {
        "load_failed": "Could not load project",
        "not_found": "Project not found",
        "task_created": "Task created",
        "task_created_detail": '"{title}" was added to the column',
        "task_failed": "Could not create task",
        "column_created": "Column created",
        "column_created_detail": 'Column "{title}" was added',
        "column_failed": "Could not create column",
        "column_removed": "Column removed",
        "column_removed_detail": "The column was removed",
        "column_remove_failed": "Could not remove column",
        "move_failed": "Could not move task",
    },
}


class BoardSession:
    def __init__(
        self,
        repository: ProjectRepository,
        ctx: SessionContext,
        project_id: str,
        settings: Optional[BoardSettings] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.settings = settings or BoardSettings()
        self.repository = repository
        self.ctx = ctx
        self.project_id = project_id
        self.notifier = notifier or Notifier()
        self.messages = MESSAGES.get(self.settings.locale, MESSAGES["en"])

        self.bootstrapper = ColumnBootstrapper(repository, locale=self.settings.locale)
        self.store = BoardStateStore(repository, self.bootstrapper)
        self.tasks = TaskMutationController(
            self.store, repository, position_strategy=self.settings.task_position_strategy
        )
        self.columns = ColumnMutationController(self.store, repository)
        self.drag_drop = DragDropMoveProtocol(
            self.store,
            repository,
            persist_moves=self.settings.persist_moves,
            failure_policy=self.settings.failure_policy,
        )

    @property
    def tree(self) -> Optional[BoardTree]:
        return self.store.tree

    def _fail(self, key: str, error: BoardError) -> None:
        logger.warning(f"{key}: {error}")
        self.notifier.error(self.messages[key], str(error))

    async def open(self) -> Optional[BoardTree]:
        """Load the board; None (and a notification) when it cannot be shown."""
        try:
            return await self.store.load(self.project_id)
        except NotFoundError as e:
            self._fail("not_found", e)
        except BoardError as e:
            self._fail("load_failed", e)
        return None

    async def add_task(
        self,
        column_id: str,
        title: str,
        description: str = "",
        priority: str = "medium",
        assigned_to: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Optional[Task]:
        try:
            task = await self.tasks.create_task(
                self.ctx,
                column_id,
                title,
                description=description,
                priority=priority,
                assigned_to=assigned_to,
                due_date=due_date,
            )
        except BoardError as e:
            self._fail("task_failed", e)
            return None
        self.notifier.success(
            self.messages["task_created"],
            self.messages["task_created_detail"].format(title=task.title),
        )
        return task

    async def add_column(self, title: str) -> Optional[Column]:
        try:
            column = await self.columns.create_column(self.ctx, self.project_id, title)
        except BoardError as e:
            self._fail("column_failed", e)
            return None
        self.notifier.success(
            self.messages["column_created"],
            self.messages["column_created_detail"].format(title=column.title),
        )
        return column

    async def remove_column(self, column_id: str) -> bool:
        try:
            await self.columns.delete_column(self.ctx, column_id)
        except BoardError as e:
            self._fail("column_remove_failed", e)
            return False
        self.notifier.success(
            self.messages["column_removed"], self.messages["column_removed_detail"]
        )
        return True

    def start_drag(self, task_id: str, source_column_id: str) -> DragPayload:
        return self.drag_drop.begin_drag(task_id, source_column_id)

    async def drop(self, target_column_id: str, payload: Optional[DragPayload] = None) -> Optional[Task]:
        try:
            return await self.drag_drop.drop(self.ctx, target_column_id, payload)
        except BoardError as e:
            self._fail("move_failed", e)
            return None

    async def move_task(self, task_id: str, source_column_id: str, target_column_id: str) -> Optional[Task]:
        """Drag start and drop in one call."""
        payload = self.start_drag(task_id, source_column_id)
        return await self.drop(target_column_id, payload)
